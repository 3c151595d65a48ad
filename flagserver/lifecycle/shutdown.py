"""
Graceful shutdown coordination.

State machine:

    RUNNING --signal--> DRAINING --stop() returned--> STOPPED_GRACEFUL
                                 --grace expired----> STOPPED_FORCED (exit 99)

Signal handlers only enqueue the signal number. A single listener thread
reads the queue and performs the RUNNING -> DRAINING transition once;
later signals are logged and ignored.
"""
import logging
import os
import queue
import signal
import threading
import time
from enum import Enum
from typing import Callable, Dict, Iterable, Optional

from flagserver.errors import ExitCode, FlagServerError, ShutdownTimeoutError
from flagserver.lifecycle.server import ServerLifecycle

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGHUP, signal.SIGINT, signal.SIGTERM, signal.SIGQUIT)

DEFAULT_GRACE_PERIOD = 30.0


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return f"signal {signum}"


class ShutdownState(str, Enum):
    """Lifecycle states of the shutdown sequence."""

    RUNNING = "running"
    DRAINING = "draining"
    STOPPED_GRACEFUL = "stopped_graceful"
    STOPPED_FORCED = "stopped_forced"


class ShutdownCoordinator:
    """
    Turns termination signals into a bounded-time drain of the server.

    Attributes:
        lifecycle: Server to stop; the coordinator never touches its internals
        grace_period: Seconds allowed for in-flight requests before a forced exit
        deadline: Monotonic time at which the grace period ends, set on drain
    """

    def __init__(
        self,
        lifecycle: ServerLifecycle,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        exit_func: Callable[[int], None] = os._exit,
    ):
        self.lifecycle = lifecycle
        self.grace_period = grace_period
        self.deadline: Optional[float] = None
        self._exit_func = exit_func
        self._signals: "queue.Queue[int]" = queue.Queue()
        self._lock = threading.Lock()
        self._state = ShutdownState.RUNNING
        self._done = threading.Event()
        self._timer: Optional[threading.Timer] = None
        self._listener: Optional[threading.Thread] = None
        self._previous_handlers: Dict[int, object] = {}

    @property
    def state(self) -> ShutdownState:
        return self._state

    def register(self, signals: Iterable[int] = TERMINATION_SIGNALS) -> None:
        """
        Install signal handlers and start the listener thread.

        Must be called from the main thread.
        """
        for signum in signals:
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

        if self._listener is None:
            self._listener = threading.Thread(
                target=self._listen, name="shutdown-listener", daemon=True
            )
            self._listener.start()

    def unregister(self) -> None:
        """Restore the signal handlers that were active before register()."""
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _handle_signal(self, signum: int, frame) -> None:
        self._signals.put_nowait(signum)

    def trigger(self, signum: int = signal.SIGTERM) -> None:
        """Request a shutdown as if signum had been received."""
        self._signals.put_nowait(signum)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the shutdown sequence completes. Returns False on timeout."""
        return self._done.wait(timeout)

    def _listen(self) -> None:
        while True:
            signum = self._signals.get()
            name = _signal_name(signum)

            with self._lock:
                if self._state is not ShutdownState.RUNNING:
                    logger.info(f"Received {name} while {self._state.value}, ignoring")
                    continue
                self._state = ShutdownState.DRAINING

            logger.info(f"Received {name}")
            threading.Thread(target=self._drain, name="shutdown-drain", daemon=True).start()

    def _drain(self) -> None:
        logger.info("Initializing Server Shutdown ...")

        self.deadline = time.monotonic() + self.grace_period
        self._timer = threading.Timer(self.grace_period, self._force_exit)
        self._timer.daemon = True
        self._timer.start()

        try:
            self.lifecycle.stop(self.grace_period)
        except ShutdownTimeoutError as e:
            logger.error(e.message)
            self._force_exit()
            return
        except FlagServerError as e:
            logger.error(e.message)

        with self._lock:
            if self._state is not ShutdownState.DRAINING:
                return
            self._timer.cancel()
            self._state = ShutdownState.STOPPED_GRACEFUL

        self._done.set()

    def _force_exit(self) -> None:
        with self._lock:
            if self._state is not ShutdownState.DRAINING:
                return
            self._state = ShutdownState.STOPPED_FORCED

        logger.critical("Graceful Server Shutdown Timeout - Forcing an Exit ...")
        self._exit_func(ExitCode.FORCED_SHUTDOWN)
        self._done.set()
