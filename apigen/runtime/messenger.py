"""Binary messengers and the execution contexts handlers run on"""

import abc
import logging
import threading
from concurrent.futures import Future, InvalidStateError, ThreadPoolExecutor
from typing import Callable, Optional

from ..errors import ProtocolError

logger = logging.getLogger(__name__)

BinaryReply = Callable[[Optional[bytes]], None]
BinaryMessageHandler = Callable[[Optional[bytes], BinaryReply], None]


class TaskQueue(abc.ABC):
    """Execution context for message handlers"""

    @abc.abstractmethod
    def dispatch(self, task: Callable[[], None]) -> None:
        ...

    def shutdown(self, wait: bool = True) -> None:
        pass


class SerialTaskQueue(TaskQueue):
    """Runs handlers one at a time on the sending thread.

    The lock is re-entrant so a handler may itself send on another serial
    channel of the same messenger.
    """

    def __init__(self):
        self._lock = threading.RLock()

    def dispatch(self, task: Callable[[], None]) -> None:
        with self._lock:
            task()


class BackgroundTaskQueue(TaskQueue):
    """Runs handlers in order on a dedicated worker thread"""

    def __init__(self, name: str = "apigen-background"):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)

    def dispatch(self, task: Callable[[], None]) -> None:
        self._executor.submit(task)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class BinaryMessenger(abc.ABC):
    """Transport carrying encoded messages between the two sides of a channel"""

    @abc.abstractmethod
    def send(self, channel: str, message: Optional[bytes]) -> "Future[Optional[bytes]]":
        """Send ``message`` and return a future completed with the encoded reply.

        A future completed with ``None`` means no reply was produced.
        """

    @abc.abstractmethod
    def set_message_handler(
        self,
        channel: str,
        handler: Optional[BinaryMessageHandler],
        task_queue: Optional[TaskQueue] = None,
    ) -> None:
        """Attach ``handler`` to ``channel``; ``None`` detaches the current one"""

    @abc.abstractmethod
    def make_background_task_queue(self) -> TaskQueue:
        ...


class InMemoryBinaryMessenger(BinaryMessenger):
    """Delivers messages to handlers registered in the same process"""

    def __init__(self):
        self._handlers: dict[str, tuple[BinaryMessageHandler, TaskQueue]] = {}
        self._serial_queue = SerialTaskQueue()
        self._background_queues: list[TaskQueue] = []
        self._lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self, wait: bool = True):
        """Shut down every background task queue created by this messenger"""
        with self._lock:
            queues, self._background_queues = self._background_queues, []
        for queue in queues:
            queue.shutdown(wait=wait)

    def has_handler(self, channel: str) -> bool:
        with self._lock:
            return channel in self._handlers

    def make_background_task_queue(self) -> TaskQueue:
        queue = BackgroundTaskQueue()
        with self._lock:
            self._background_queues.append(queue)
        return queue

    def set_message_handler(
        self,
        channel: str,
        handler: Optional[BinaryMessageHandler],
        task_queue: Optional[TaskQueue] = None,
    ) -> None:
        with self._lock:
            if handler is None:
                self._handlers.pop(channel, None)
            else:
                self._handlers[channel] = (handler, task_queue or self._serial_queue)

    def send(self, channel: str, message: Optional[bytes]) -> "Future[Optional[bytes]]":
        future: Future = Future()
        with self._lock:
            entry = self._handlers.get(channel)
        if entry is None:
            logger.debug("No handler registered on %s", channel)
            future.set_result(None)
            return future

        handler, task_queue = entry

        def reply(data: Optional[bytes]):
            try:
                future.set_result(data)
            except InvalidStateError:
                raise ProtocolError(
                    "already-replied", f"Reply already sent on channel '{channel}'"
                ) from None

        def run():
            try:
                handler(message, reply)
            except Exception:
                logger.exception("Uncaught exception in handler for %s", channel)
                if not future.done():
                    future.set_result(None)

        task_queue.dispatch(run)
        return future
