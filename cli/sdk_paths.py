import os
from pathlib import Path

from constants import SDK_SUFFIX, TOOLCHAIN_SUFFIX
from errors import InvalidSdkPath, InvalidToolchainPath


def sdks_dir(developer_dir: Path) -> Path:
    return developer_dir / "SDKs"


def toolchains_dir(developer_dir: Path) -> Path:
    return developer_dir / "Toolchains"


def usr_bin(root: Path) -> Path:
    return root / "usr" / "bin"


def usr_lib(root: Path) -> Path:
    return root / "usr" / "lib"


def is_alternate_path(selector: str) -> bool:
    """An SDK or toolchain selector naming a folder directly rather than by short name."""
    return os.path.isabs(selector)


def sdk_path(developer_dir: str | os.PathLike[str], sdk: str) -> Path:
    """`sdk` is either a short name, found under `<developer_dir>/SDKs`, or an absolute path."""
    if is_alternate_path(sdk):
        path = Path(sdk)
    else:
        path = sdks_dir(Path(developer_dir)) / (sdk + SDK_SUFFIX)

    if not path.is_dir():
        raise InvalidSdkPath(f"SDK '{sdk}' cannot be located: '{path}' is not a directory")
    return path


def toolchain_path(developer_dir: str | os.PathLike[str], toolchain: str) -> Path:
    if is_alternate_path(toolchain):
        path = Path(toolchain)
    else:
        path = toolchains_dir(Path(developer_dir)) / (toolchain + TOOLCHAIN_SUFFIX)

    if not path.is_dir():
        raise InvalidToolchainPath(
            f"toolchain '{toolchain}' cannot be located: '{path}' is not a directory"
        )
    return path
