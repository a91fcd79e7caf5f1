"""
Turns a tool request into the ordered list of directories to search for it.

The search list depends on how the caller selected an SDK and toolchain:

1. `--sdk <name>`: `<devdir>/usr/bin`, the SDK's `usr/bin`, then the
   `usr/bin` of the toolchain the SDK's descriptor declares.
2. `--toolchain <name>` (no SDK): `<devdir>/usr/bin`, the toolchain's `usr/bin`.
3. `--sdk /abs/path`: `<devdir>/usr/bin`, the path's `usr/bin`, and, if the
   path holds an `info.ini`, its declared toolchain's `usr/bin`.
4. `--toolchain /abs/path` (no SDK): `<devdir>/usr/bin`, the path's `usr/bin`.
5. Nothing explicit: the SDK and toolchain named by the system defaults file,
   or failing that by `SDKROOT`/`TOOLCHAINS`. If neither names anything we
   fall back to `<devdir>/usr/bin` followed by `PATH`.

An SDK selector takes precedence over a toolchain selector; when both are
given the toolchain selector is ignored.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import click

import config_store
import constants
import sdk_paths
from config_store import SdkDescriptor
from constants import ENV_SDKROOT, ENV_TOOLCHAINS
from errors import DescriptorUnreadable, InvalidToolchainPath


@dataclass
class ResolutionContext:
    """Everything one invocation knows about what it was asked to do."""

    prog: str = "xcrun"
    sdk: str | None = None
    toolchain: str | None = None
    verbose: bool = False
    logging: bool = False
    find_only: bool = False
    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    # None means the system-wide defaults file.
    defaults_path: Path | None = None
    # Filled in lazily by resolve() when not injected.
    developer_dir: Path | None = None

    @property
    def explicit_sdk(self) -> str | None:
        if self.sdk and not sdk_paths.is_alternate_path(self.sdk):
            return self.sdk
        return None

    @property
    def explicit_toolchain(self) -> str | None:
        if self.toolchain and not sdk_paths.is_alternate_path(self.toolchain):
            return self.toolchain
        return None

    @property
    def alternate_sdk_path(self) -> Path | None:
        if self.sdk and sdk_paths.is_alternate_path(self.sdk):
            return Path(self.sdk)
        return None

    @property
    def alternate_toolchain_path(self) -> Path | None:
        if self.toolchain and sdk_paths.is_alternate_path(self.toolchain):
            return Path(self.toolchain)
        return None

    def info(self, msg: str):
        if self.verbose:
            click.echo(f"{self.prog}: info: {msg}", err=True)


@dataclass
class Resolution:
    developer_dir: Path
    search_dirs: list[Path]
    sdk_path: Path | None = None
    sdk: SdkDescriptor | None = None
    toolchain_path: Path | None = None


def developer_directory(ctx: ResolutionContext) -> Path:
    if ctx.developer_dir is None:
        ctx.info("attempting to retrieve developer path...")
        ctx.developer_dir = Path(config_store.read_selected_directory(ctx.env))
        ctx.info(f"using developer path '{ctx.developer_dir}'")
    return ctx.developer_dir


def declared_toolchain_path(developer_dir: Path, sdk: SdkDescriptor) -> Path:
    if not sdk.toolchain:
        raise InvalidToolchainPath(f"SDK '{sdk.name}' does not declare a toolchain")
    return sdk_paths.toolchain_path(developer_dir, sdk.toolchain)


_VERSION_SUFFIX = re.compile(r"\d+(\.\d+)+$")


def strip_selector_suffix(value: str) -> str:
    """`/x/SDKs/DarwinARM5.0.sdk` -> `DarwinARM`"""
    name = Path(value).name
    for suffix in (constants.SDK_SUFFIX, constants.TOOLCHAIN_SUFFIX):
        name = name.removesuffix(suffix)
    return _VERSION_SUFFIX.sub("", name) or name


def current_sdk_and_toolchain(ctx: ResolutionContext) -> tuple[str | None, str | None]:
    """The SDK and toolchain in effect when the caller selected neither."""
    try:
        defaults = config_store.load_default_config(
            ctx.defaults_path or Path(constants.DEFAULT_CONFIG_PATH)
        )
    except DescriptorUnreadable as e:
        ctx.info(f"no usable defaults: {e}")
        defaults = config_store.DefaultConfig()

    sdk = defaults.sdk
    if not sdk and ctx.env.get(ENV_SDKROOT):
        sdk = strip_selector_suffix(ctx.env[ENV_SDKROOT])
        ctx.info(f"using SDK '{sdk}' from {ENV_SDKROOT}")

    toolchain = defaults.toolchain
    if not toolchain and ctx.env.get(ENV_TOOLCHAINS):
        # TOOLCHAINS is a list; the first entry wins.
        first, *_rest = re.split(r"[\s:]+", ctx.env[ENV_TOOLCHAINS].strip())
        toolchain = strip_selector_suffix(first)
        ctx.info(f"using toolchain '{toolchain}' from {ENV_TOOLCHAINS}")

    return sdk or None, toolchain or None


def resolve(ctx: ResolutionContext) -> Resolution:
    devdir = developer_directory(ctx)
    res = Resolution(developer_dir=devdir, search_dirs=[sdk_paths.usr_bin(devdir)])

    if ctx.sdk and ctx.toolchain:
        ctx.info(f"SDK '{ctx.sdk}' selected; ignoring toolchain '{ctx.toolchain}'")

    if ctx.explicit_sdk:
        res.sdk_path = sdk_paths.sdk_path(devdir, ctx.explicit_sdk)
        res.sdk = config_store.load_sdk_descriptor(res.sdk_path)
        res.toolchain_path = declared_toolchain_path(devdir, res.sdk)
    elif ctx.explicit_toolchain and not ctx.sdk:
        res.toolchain_path = sdk_paths.toolchain_path(devdir, ctx.explicit_toolchain)
    elif ctx.alternate_sdk_path:
        res.sdk_path = sdk_paths.sdk_path(devdir, str(ctx.alternate_sdk_path))
        if config_store.has_descriptor(res.sdk_path):
            res.sdk = config_store.load_sdk_descriptor(res.sdk_path)
            res.toolchain_path = declared_toolchain_path(devdir, res.sdk)
        else:
            ctx.info(f"'{res.sdk_path}' has no descriptor; not treating it as an SDK folder")
    elif ctx.alternate_toolchain_path:
        res.toolchain_path = sdk_paths.toolchain_path(devdir, str(ctx.alternate_toolchain_path))
    else:
        sdk, toolchain = current_sdk_and_toolchain(ctx)
        if sdk is None and toolchain is None:
            ctx.info("no SDK or toolchain selected; falling back to PATH")
            path_var = ctx.env.get("PATH", os.defpath)
            res.search_dirs.extend(Path(p) for p in path_var.split(os.pathsep) if p)
            return res

        if sdk is not None:
            res.sdk_path = sdk_paths.sdk_path(devdir, sdk)
            res.sdk = config_store.load_sdk_descriptor(res.sdk_path)
        if toolchain is not None:
            res.toolchain_path = sdk_paths.toolchain_path(devdir, toolchain)
        elif res.sdk is not None:
            res.toolchain_path = declared_toolchain_path(devdir, res.sdk)

    if res.sdk_path is not None:
        ctx.info(f"using SDK at '{res.sdk_path}'")
        res.search_dirs.append(sdk_paths.usr_bin(res.sdk_path))
    if res.toolchain_path is not None:
        ctx.info(f"using toolchain at '{res.toolchain_path}'")
        res.search_dirs.append(sdk_paths.usr_bin(res.toolchain_path))
    return res
