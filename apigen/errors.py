"""Exceptions raised while generating bindings and while exchanging messages"""

from typing import Any, Optional

from .channel import CHANNEL_ERROR_CODE, NULL_ERROR_CODE


class ApiGenError(Exception):
    """Base class for every apigen error"""


class ParseError(ApiGenError):
    """Malformed API description"""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class ResolutionError(ApiGenError):
    """Type name that is neither a builtin nor a declared record or enum"""

    def __init__(self, base_name: str, context: str = "", reason: str = "Unknown type"):
        self.base_name = base_name
        self.context = context
        self.reason = reason
        where = f" (in {context})" if context else ""
        super().__init__(f"{reason} '{base_name}'{where}")


class CodecError(ApiGenError):
    """Value or byte sequence the message codec cannot handle"""


class ProtocolError(ApiGenError):
    """Failure of a single channel invocation.

    Every protocol error carries the code/message/details triple of the
    reply envelope, so callers can handle all of them uniformly while still
    telling them apart by type.
    """

    def __init__(self, code: str, message: Optional[str] = None, details: Any = None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"{code}: {message}" if message else code)


class PlatformError(ProtocolError):
    """Application error reported by the receiver in an error envelope"""


class ChannelError(ProtocolError):
    """No reply envelope was received"""

    def __init__(self, channel: str):
        super().__init__(
            CHANNEL_ERROR_CODE,
            f"Unable to establish connection on channel: '{channel}'.",
        )
        self.channel = channel


class NullValueError(ProtocolError):
    """A non-nullable argument or return value was absent"""

    def __init__(self, message: str):
        super().__init__(NULL_ERROR_CODE, message)
