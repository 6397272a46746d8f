"""Channel naming and reply envelope layout shared by every backend"""

from .types import Interface, Method

DEFAULT_CHANNEL_PREFIX = "dev.flutter.pigeon"


class Keys:
    """Keys of the reply envelope"""
    RESULT = "result"
    ERROR = "error"
    ERROR_CODE = "code"
    ERROR_MESSAGE = "message"
    ERROR_DETAILS = "details"


# Error codes produced by the protocol itself rather than by user logic
CHANNEL_ERROR_CODE = "channel-error"
NULL_ERROR_CODE = "null-error"


def channel_name(interface: Interface, method: Method, prefix: str = DEFAULT_CHANNEL_PREFIX) -> str:
    """Name of the channel carrying ``method`` of ``interface``"""
    return f"{prefix}.{interface.name}.{method.name}"


def argument_name(index: int, name: str) -> str:
    """Name used for a positional argument, generating one if it is empty"""
    return name or f"arg{index}"
