TOOL_VERSION = "0.0.1"

# Lives directly under $HOME; holds the selected developer directory.
DARWINSDK_CFG = ".darwinsdk.dat"

DEFAULT_CONFIG_PATH = "/etc/xcrun.ini"
DESCRIPTOR_FILENAME = "info.ini"

SDK_SUFFIX = ".sdk"
TOOLCHAIN_SUFFIX = ".toolchain"

# Note: the keys in this dict are (section, key) pairs as they appear in the
# descriptor files, the values are the attribute names we load them into.
SDK_SCHEMA = {
    ("SDK", "name"): "name",
    ("SDK", "version"): "version",
    ("SDK", "toolchain"): "toolchain",
    ("SDK", "default_arch"): "default_arch",
    ("SDK", "ios_deployment_target"): "ios_deployment_target",
    ("SDK", "macosx_deployment_target"): "macosx_deployment_target",
}
TOOLCHAIN_SCHEMA = {
    ("TOOLCHAIN", "name"): "name",
    ("TOOLCHAIN", "version"): "version",
}
DEFAULTS_SCHEMA = {
    ("xcrun", "default_sdk"): "sdk",
    ("xcrun", "default_toolchain"): "toolchain",
}

# Environment variables we consume.
ENV_DEVELOPER_DIR = "DEVELOPER_DIR"
ENV_HOME = "HOME"
ENV_SDKROOT = "SDKROOT"
ENV_TOOLCHAINS = "TOOLCHAINS"
ENV_TARGET_TRIPLE = "TARGET_TRIPLE"
ENV_IOS_DEPLOYMENT_TARGET = "IOS_DEPLOYMENT_TARGET"
ENV_MACOSX_DEPLOYMENT_TARGET = "MACOSX_DEPLOYMENT_TARGET"

# Maps the OS family tag of a deployment target to the variable that carries it.
DEPLOYMENT_TARGET_VARS = {
    "ios": ENV_IOS_DEPLOYMENT_TARGET,
    "macosx": ENV_MACOSX_DEPLOYMENT_TARGET,
}
