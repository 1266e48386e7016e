"""
Queue and batch scheduling.

Producers append records from any thread. Records leave the queues through
``drain()``, which is triggered in three ways:

* the combined queue length reaching the batch size (immediate, no cooldown),
* ``flush()``, subject to the cooldown,
* the periodic loop, which calls ``flush()`` every flush interval.

Two locks are used and never held at the same time: the queue lock guards the
pending records, the flush lock guards the last drain time and the deferred
flush timer. No lock is held while a batch is delivered.
"""
import logging
import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import ClientClosedError
from .models import Event, IdentifierRecord

logger = logging.getLogger(__name__)

DeliverFn = Callable[[Sequence[Event], Sequence[IdentifierRecord]], None]
ErrorHandler = Callable[[Exception], None]


class BatchScheduler:
    """
    Holds pending events and identifiers and decides when they are sent.

    It is safe to call every method but ``close()`` from multiple threads.
    """

    def __init__(
        self,
        deliver: DeliverFn,
        batch_size: int,
        flush_interval: float,
        flush_cooldown: float,
        error_handler: Optional[ErrorHandler] = None,
    ):
        """
        Args:
            deliver: Sends one batch, raising on failure.
            batch_size: Maximum records per batch, and the queue length that
                forces an immediate drain.
            flush_interval: Seconds between periodic flushes, 0 disables them.
            flush_cooldown: Minimum seconds between drains started by ``flush()``.
            error_handler: Receives errors of drains nobody waits on.
        """
        self._deliver = deliver
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.flush_cooldown = flush_cooldown
        self.error_handler = error_handler

        self._queue_lock = threading.Lock()
        self._event_queue: List[Event] = []
        self._identifier_queue: List[IdentifierRecord] = []

        self._flush_lock = threading.Lock()
        self._last_flush: Optional[float] = None
        self._flush_waiting: Optional[threading.Timer] = None
        self._closed = False

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """
        Start the periodic flush loop.
        """
        if self._thread is not None or self.flush_interval <= 0:
            return

        self._thread = threading.Thread(
            target=self._run, name="earnalliance-batch", daemon=True
        )
        self._thread.start()
        logger.info(f"Periodic flush started (interval={self.flush_interval}s)")

    def flush(self) -> None:
        """
        Flush the queues, honouring the cooldown.

        Only the first case below can raise:

        1. The cooldown has passed: the queues are drained right away and any
           delivery error is raised.
        2. The cooldown is active and no flush is waiting: a timer is started
           that drains once the cooldown is over, and this returns at once.
        3. The cooldown is active and a flush is already waiting: nothing to do,
           the waiting flush will send the records.
        """
        with self._flush_lock:
            now = time.monotonic()
            if self._last_flush is None or now - self._last_flush >= self.flush_cooldown:
                self._last_flush = now
                drain_now = True
            else:
                drain_now = False
                if self._flush_waiting is None and not self._closed:
                    leftover = self.flush_cooldown - (now - self._last_flush)
                    timer = threading.Timer(leftover, self._deferred_flush)
                    timer.daemon = True
                    self._flush_waiting = timer
                    timer.start()
                    logger.debug("Cooldown active, flush deferred by %.3fs", leftover)

        if drain_now:
            self.drain()

    def flush_reporting(self) -> None:
        """
        ``flush()`` for callers that cannot receive errors.
        """
        try:
            self.flush()
        except Exception as e:
            self.report(e)

    def _deferred_flush(self) -> None:
        with self._flush_lock:
            if self._closed:
                return
            self._last_flush = time.monotonic()
            self._flush_waiting = None

        self.drain_reporting()

    def append_event(self, event: Event) -> None:
        with self._queue_lock:
            self._event_queue.append(event)
            queue_size = self._queue_size()

        logger.debug("Queued event %s, queue size %s", event.event, queue_size)
        if queue_size >= self.batch_size:
            self.drain_reporting()

    def append_identifier(self, record: IdentifierRecord) -> None:
        with self._queue_lock:
            self._identifier_queue.append(record)
            queue_size = self._queue_size()

        logger.debug("Queued identifiers, queue size %s", queue_size)
        if queue_size >= self.batch_size:
            self.drain_reporting()

    def _queue_size(self) -> int:
        # Caller holds the queue lock
        return len(self._event_queue) + len(self._identifier_queue)

    def take_batch(self) -> Tuple[List[Event], List[IdentifierRecord]]:
        """
        Remove up to ``batch_size`` records from the front of the queues,
        identifiers first.
        """
        with self._queue_lock:
            identifiers = self._identifier_queue[: self.batch_size]
            del self._identifier_queue[: len(identifiers)]

            remaining = self.batch_size - len(identifiers)
            events = self._event_queue[:remaining] if remaining > 0 else []
            del self._event_queue[: len(events)]

        return events, identifiers

    def drain(self) -> None:
        """
        Send one batch. The records are removed before sending, so a failed
        batch is lost rather than sent twice.

        Raises:
            ClientClosedError: The scheduler was closed, records stay queued.
        """
        if self._closed:
            raise ClientClosedError()

        events, identifiers = self.take_batch()
        if not events and not identifiers:
            logger.debug("Queue empty, skipping flush")
            return

        self._deliver(events, identifiers)

    def drain_reporting(self) -> None:
        try:
            self.drain()
        except Exception as e:
            self.report(e)

    def report(self, error: Exception) -> None:
        """
        Hand an asynchronous error to the error handler, if any.
        """
        logger.warning(f"Asynchronous flush failed: {error}")
        if self.error_handler is None:
            return

        try:
            self.error_handler(error)
        except Exception:
            logger.exception("Error handler raised while reporting a flush error")

    def _run(self) -> None:
        while not self._stop.wait(self.flush_interval):
            self.flush_reporting()
        logger.info("Periodic flush stopped")

    def close(self, timeout: Optional[float] = None) -> None:
        """
        Stop the periodic loop and cancel a waiting flush. Queued records are
        not sent.
        """
        with self._flush_lock:
            if self._closed:
                return
            self._closed = True
            if self._flush_waiting is not None:
                self._flush_waiting.cancel()
                self._flush_waiting = None
                logger.debug("Cancelled deferred flush")

        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

        dropped = self.queue_size
        if dropped:
            logger.info(f"Closed with {dropped} unsent records")

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def deferred_flush_pending(self) -> bool:
        with self._flush_lock:
            return self._flush_waiting is not None

    @property
    def queue_size(self) -> int:
        with self._queue_lock:
            return self._queue_size()

    @property
    def pending_events(self) -> List[Event]:
        with self._queue_lock:
            return list(self._event_queue)

    @property
    def pending_identifiers(self) -> List[IdentifierRecord]:
        with self._queue_lock:
            return list(self._identifier_queue)
