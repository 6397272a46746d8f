"""Message channels and the reply envelope helpers used by generated code"""

import logging
import threading
import traceback
from concurrent.futures import Future
from typing import Any, Callable, Generic, Optional, TypeVar

from ..channel import Keys
from ..errors import ChannelError, CodecError, NullValueError, PlatformError, ProtocolError
from .codec import StandardMessageCodec
from .messenger import BinaryMessenger, TaskQueue

logger = logging.getLogger(__name__)

T = TypeVar('T')

Reply = Callable[[Any], None]
MessageHandler = Callable[[Any, Reply], None]


def wrap_result(value: Any) -> dict:
    """Success envelope"""
    return {Keys.RESULT: value}


def wrap_error(exception: BaseException) -> dict:
    """Error envelope for a failure raised while handling a call"""
    if isinstance(exception, ProtocolError):
        code, message, details = exception.code, exception.message, exception.details
    else:
        code = type(exception).__name__
        message = str(exception)
        details = "".join(traceback.format_exception(exception))
    logger.debug("Replying with error %s: %s", code, message)
    return {
        Keys.ERROR: {
            Keys.ERROR_CODE: code,
            Keys.ERROR_MESSAGE: message,
            Keys.ERROR_DETAILS: details,
        }
    }


def unwrap_reply(reply: Any, channel: str, nullable: bool = True) -> Any:
    """Return the result carried by ``reply`` or raise the failure it describes"""
    if reply is None:
        raise ChannelError(channel)
    if not isinstance(reply, dict):
        raise CodecError(f"Malformed reply on channel '{channel}': {reply!r}")
    error = reply.get(Keys.ERROR)
    if error is not None:
        raise PlatformError(
            code=error.get(Keys.ERROR_CODE),
            message=error.get(Keys.ERROR_MESSAGE),
            details=error.get(Keys.ERROR_DETAILS),
        )
    result = reply.get(Keys.RESULT)
    if result is None and not nullable:
        raise NullValueError("Host platform returned null value for non-null return value.")
    return result


def require(value: Optional[T], description: str) -> T:
    """Reject an absent value where the declaration is non-nullable"""
    if value is None:
        raise NullValueError(f"{description} unexpectedly null.")
    return value


class Result(Generic[T]):
    """Completion handed to asynchronous receiver methods.

    Exactly one of ``success`` or ``error`` may be called, from any thread;
    a second completion raises ``ProtocolError``.
    """

    def __init__(self, reply: Reply, channel: str = ""):
        self._reply = reply
        self._channel = channel
        self._lock = threading.Lock()
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def success(self, value: Optional[T] = None) -> None:
        self._complete(wrap_result(value))

    def error(self, exception: BaseException) -> None:
        self._complete(wrap_error(exception))

    def reject(self, exception: BaseException) -> None:
        """Complete with ``exception`` unless a reply was already sent"""
        with self._lock:
            already_done = self._done
        if already_done:
            logger.warning(
                "Dropping %s raised after replying on %s", type(exception).__name__, self._channel
            )
            return
        self.error(exception)

    def _complete(self, envelope: dict) -> None:
        with self._lock:
            if self._done:
                raise ProtocolError("already-replied", f"Reply already sent on channel '{self._channel}'")
            self._done = True
        self._reply(envelope)


class BasicMessageChannel:
    """Named channel whose messages are encoded with ``codec``"""

    def __init__(
        self,
        binary_messenger: BinaryMessenger,
        name: str,
        codec: StandardMessageCodec,
        task_queue: Optional[TaskQueue] = None,
    ):
        self.binary_messenger = binary_messenger
        self.name = name
        self.codec = codec
        self.task_queue = task_queue

    def send(self, message: Any) -> "Future[Any]":
        """Send ``message``; the returned future holds the decoded reply"""
        future: Future = Future()

        def on_reply(raw: Future):
            try:
                future.set_result(self.codec.decode_message(raw.result()))
            except Exception as e:
                future.set_exception(e)

        self.binary_messenger.send(self.name, self.codec.encode_message(message)).add_done_callback(on_reply)
        return future

    def set_message_handler(self, handler: Optional[MessageHandler]) -> None:
        if handler is None:
            self.binary_messenger.set_message_handler(self.name, None)
            return

        def binary_handler(data: Optional[bytes], reply: Callable[[Optional[bytes]], None]):
            def encoded_reply(value: Any):
                reply(self.codec.encode_message(value))

            try:
                message = self.codec.decode_message(data)
            except CodecError as e:
                encoded_reply(wrap_error(e))
                return
            handler(message, encoded_reply)

        self.binary_messenger.set_message_handler(self.name, binary_handler, self.task_queue)
