"""
Reading and writing the small on-disk files that drive tool resolution:

* the per-user cache file holding the selected developer directory,
  written by `xcode-select -switch` and read by every `xcrun` invocation;
* `info.ini` descriptors shipped inside each SDK and toolchain folder;
* the system-wide defaults file naming the fallback SDK and toolchain.

Nothing here is cached between calls; every invocation rebuilds what it needs.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, TypeAlias

from constants import (
    DARWINSDK_CFG,
    DEFAULTS_SCHEMA,
    DEPLOYMENT_TARGET_VARS,
    DESCRIPTOR_FILENAME,
    ENV_DEVELOPER_DIR,
    ENV_HOME,
    SDK_SCHEMA,
    SDK_SUFFIX,
    TOOLCHAIN_SCHEMA,
    TOOLCHAIN_SUFFIX,
)
from errors import ConfigUnreadable, ConfigWriteError, DescriptorUnreadable, NotADirectory

DescriptorSchema: TypeAlias = Mapping[tuple[str, str], str]


@dataclass(frozen=True)
class SdkDescriptor:
    name: str
    version: str | None = None
    toolchain: str | None = None
    default_arch: str | None = None
    ios_deployment_target: str | None = None
    macosx_deployment_target: str | None = None

    @property
    def deployment_target(self) -> tuple[str, str] | None:
        """The (OS family, version) pair this SDK targets, if it declares one."""
        for family in DEPLOYMENT_TARGET_VARS:
            value = getattr(self, f"{family}_deployment_target")
            if value:
                return family, value
        return None


@dataclass(frozen=True)
class ToolchainDescriptor:
    name: str
    version: str | None = None


@dataclass(frozen=True)
class DefaultConfig:
    sdk: str | None = None
    toolchain: str | None = None


def selected_directory_cache_file(env: Mapping[str, str]) -> Path:
    home = env.get(ENV_HOME)
    if not home:
        raise ConfigUnreadable(f"failed to read {ENV_HOME} variable")
    return Path(home) / DARWINSDK_CFG


def read_selected_directory(env: Mapping[str, str] = os.environ) -> str:
    """Returns the active developer directory.

    The `DEVELOPER_DIR` environment variable takes priority over the cache file.
    """
    override = env.get(ENV_DEVELOPER_DIR)
    if override:
        return override

    cfg = selected_directory_cache_file(env)
    try:
        value = cfg.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise ConfigUnreadable(
            f"unable to read configuration file '{cfg}' ({e.strerror or e})"
        ) from e
    if not value:
        raise ConfigUnreadable(f"configuration file '{cfg}' is empty")
    return value


def write_selected_directory(path: str | os.PathLike[str], env: Mapping[str, str] = os.environ):
    if not Path(path).is_dir():
        raise NotADirectory(f"'{path}' is not a directory")

    cfg = selected_directory_cache_file(env)
    try:
        # One absolute path, no trailing newline.
        cfg.write_text(os.path.abspath(path), encoding="utf-8")
    except OSError as e:
        raise ConfigWriteError(
            f"unable to open configuration file '{cfg}' ({e.strerror or e})"
        ) from e


def parse_descriptor(lines: Iterable[str]) -> dict[str, dict[str, str]]:
    """Splits `[section]` / `key = value` lines into a dict per section.

    `;` starts a comment wherever it appears. Lines that are neither a section
    header nor a key assignment, and keys before the first header, are skipped.
    """
    sections: dict[str, dict[str, str]] = {}
    current: dict[str, str] | None = None
    for raw in lines:
        line = raw.partition(";")[0].strip()
        if not line:
            continue
        if line.startswith("[") and line.endswith("]"):
            current = sections.setdefault(line[1:-1].strip(), {})
        elif current is not None and "=" in line:
            key, _, value = line.partition("=")
            current[key.strip()] = value.strip()
    return sections


def read_descriptor(path: str | os.PathLike[str], schema: DescriptorSchema) -> dict[str, str]:
    """Reads the `(section, key)` pairs named by `schema` from an ini-style file.

    Returns a dict keyed by the schema's attribute names, holding only the keys
    actually present. Keys are case-sensitive; those the schema does not mention
    are ignored.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            sections = parse_descriptor(f)
    except OSError as e:
        raise DescriptorUnreadable(
            f"unable to read descriptor '{path}' ({e.strerror or e})"
        ) from e
    except UnicodeDecodeError as e:
        raise DescriptorUnreadable(f"malformed descriptor '{path}': {e}") from e

    wanted_sections = {section for section, _key in schema}
    if not any(section in sections for section in wanted_sections):
        raise DescriptorUnreadable(
            f"descriptor '{path}' has no [{'] or ['.join(sorted(wanted_sections))}] section"
        )

    found = {}
    for (section, key), attr in schema.items():
        if key in sections.get(section, {}):
            found[attr] = sections[section][key]
    return found


def has_descriptor(folder: str | os.PathLike[str]) -> bool:
    return (Path(folder) / DESCRIPTOR_FILENAME).is_file()


def load_sdk_descriptor(sdk_dir: str | os.PathLike[str]) -> SdkDescriptor:
    fields = read_descriptor(Path(sdk_dir) / DESCRIPTOR_FILENAME, SDK_SCHEMA)
    # An SDK that does not name itself is named after its folder.
    fields.setdefault("name", Path(sdk_dir).name.removesuffix(SDK_SUFFIX))
    return SdkDescriptor(**fields)


def load_toolchain_descriptor(toolchain_dir: str | os.PathLike[str]) -> ToolchainDescriptor:
    fields = read_descriptor(Path(toolchain_dir) / DESCRIPTOR_FILENAME, TOOLCHAIN_SCHEMA)
    fields.setdefault("name", Path(toolchain_dir).name.removesuffix(TOOLCHAIN_SUFFIX))
    return ToolchainDescriptor(**fields)


def load_default_config(path: str | os.PathLike[str]) -> DefaultConfig:
    return DefaultConfig(**read_descriptor(path, DEFAULTS_SCHEMA))
