class XcrunError(Exception):
    """Base for every failure that ends an invocation with exit status 1."""


class ConfigUnreadable(XcrunError):
    pass


class ConfigWriteError(XcrunError):
    pass


class NotADirectory(XcrunError):
    pass


class InvalidSdkPath(XcrunError):
    pass


class InvalidToolchainPath(XcrunError):
    pass


class DescriptorUnreadable(XcrunError):
    pass


class ToolNotFound(XcrunError):
    pass


class ExecFailed(XcrunError):
    pass


class MissingArgument(XcrunError):
    pass
