"""
Runtime support for generated Python bindings.

Provides the standard message codec, binary messengers and the channel
helpers that generated receivers and callers are built on.
"""

from .codec import ReadBuffer, StandardMessageCodec, WriteBuffer
from .messenger import (
    BackgroundTaskQueue,
    BinaryMessenger,
    InMemoryBinaryMessenger,
    SerialTaskQueue,
    TaskQueue,
)
from .channels import BasicMessageChannel, Result, require, unwrap_reply, wrap_error, wrap_result

__all__ = [
    'ReadBuffer', 'StandardMessageCodec', 'WriteBuffer',
    'BackgroundTaskQueue', 'BinaryMessenger', 'InMemoryBinaryMessenger',
    'SerialTaskQueue', 'TaskQueue',
    'BasicMessageChannel', 'Result', 'require', 'unwrap_reply', 'wrap_error', 'wrap_result',
]
