import os
from typing import Mapping

from packaging.version import InvalidVersion, Version

import sdk_paths
from config_store import SdkDescriptor
from constants import DEPLOYMENT_TARGET_VARS, ENV_SDKROOT, ENV_TARGET_TRIPLE
from errors import DescriptorUnreadable
from resolution import Resolution


def darwin_kernel_version(deployment_target: str) -> int:
    """Maps an OS release (`10.7`, `4.3.1`, ...) to the Darwin kernel major version."""
    try:
        release = Version(deployment_target).release
    except InvalidVersion:
        release = (0,)
    major, minor = (release + (0,))[:2]

    match major:
        case 10:
            return minor + 4
        case 9 | 8 | 7:
            return 14
        case 6:
            return 13
        case 5:
            return 11
        case 4:
            return 10 if minor <= 2 else 11
        case 3:
            return 10
        case _:
            return 9


def target_triple(deployment_target: str, arch: str) -> str:
    return f"{arch}-apple-darwin{darwin_kernel_version(deployment_target)}"


def deployment_target(sdk: SdkDescriptor | None, env: Mapping[str, str]) -> tuple[str, str] | None:
    """Returns (variable name, version) for the one deployment target variable to use.

    An override already present in the environment wins outright; otherwise the
    SDK descriptor's tagged value decides both the variable and the version.
    Setting both override variables is not guarded against: the iOS one wins.
    """
    for var in DEPLOYMENT_TARGET_VARS.values():
        if env.get(var):
            return var, env[var]

    if sdk is not None and sdk.deployment_target is not None:
        family, version = sdk.deployment_target
        return DEPLOYMENT_TARGET_VARS[family], version
    return None


def resolved_target_triple(res: Resolution, env: Mapping[str, str]) -> str | None:
    if env.get(ENV_TARGET_TRIPLE):
        return env[ENV_TARGET_TRIPLE]

    target = deployment_target(res.sdk, env)
    if target is None or res.sdk is None or not res.sdk.default_arch:
        return None
    _var, version = target
    return target_triple(version, res.sdk.default_arch)


def require_target_triple(res: Resolution, env: Mapping[str, str]) -> str:
    triple = resolved_target_triple(res, env)
    if triple is None:
        what = f"SDK '{res.sdk.name}'" if res.sdk else "the selected SDK"
        raise DescriptorUnreadable(
            f"{what} does not declare both a deployment target and a default_arch"
        )
    return triple


def compose_env(res: Resolution, env: Mapping[str, str]) -> dict[str, str]:
    child = dict(env)

    if res.sdk_path is not None:
        child[ENV_SDKROOT] = str(res.sdk_path)

    # The inherited PATH and LD_LIBRARY_PATH are replaced, not extended.
    path_elts = [str(sdk_paths.usr_bin(res.developer_dir))]
    if res.toolchain_path is not None:
        path_elts.append(str(sdk_paths.usr_bin(res.toolchain_path)))
    child["PATH"] = os.pathsep.join(path_elts)

    if res.toolchain_path is not None:
        child["LD_LIBRARY_PATH"] = str(sdk_paths.usr_lib(res.toolchain_path))

    target = deployment_target(res.sdk, env)
    if target is not None:
        var, version = target
        child[var] = version

    triple = resolved_target_triple(res, env)
    if triple is not None:
        child[ENV_TARGET_TRIPLE] = triple

    return child
