# Monitoring the chamber's progress towards a setpoint
import logging
import threading
from collections import namedtuple
from typing import Callable, Optional

import serial

from temperature_chamber.drivers.chamber.constants import (
    POLL_INTERVAL_SECONDS,
    SECONDS_PER_MINUTE,
    TEMP_TOLERANCE,
    WAIT_FOREVER,
)
from temperature_chamber.drivers.chamber.exceptions import ChamberError

logger = logging.getLogger(__name__)


TemperatureReached = namedtuple("TemperatureReached", ["actual_temperature"])
TemperatureTimeout = namedtuple(
    "TemperatureTimeout", ["desired_temperature", "actual_temperature"]
)

# Errors that mean "couldn't read the chamber this time"; the next tick gets another go
_EXPECTED_POLL_EXCEPTIONS = (ChamberError, serial.SerialException, OSError)


class TemperatureMonitor:
    """ Tracks the chamber's temperature against a setpoint, one tick at a time

    Once armed, each call to tick() reads the temperature and either:
     * finds it within tolerance of the setpoint: disarms and reports TemperatureReached
     * finds that the timeout has elapsed: disarms and reports TemperatureTimeout
     * otherwise counts another poll interval towards the timeout and asks to be ticked again

    Ticking is driven from outside (see PeriodicTicker) so that this can be exercised without waiting around.
    """

    def __init__(
        self,
        get_temperature: Callable[[], int],
        on_outcome: Callable,
        log: Optional[Callable[[str], None]] = None,
        tolerance: int = TEMP_TOLERANCE,
        poll_interval_seconds: int = POLL_INTERVAL_SECONDS,
    ):
        self._get_temperature = get_temperature
        self._on_outcome = on_outcome
        self._log = log if log is not None else logger.info
        self.tolerance = tolerance
        self.poll_interval_seconds = poll_interval_seconds

        self.is_armed = False
        self.desired_temperature = None
        self.timeout_minutes = WAIT_FOREVER
        self.elapsed_seconds = 0

    def arm(self, desired_temperature: int, timeout_minutes: int = WAIT_FOREVER):
        """ Start tracking a new setpoint from scratch

        Args:
            desired_temperature: setpoint in degrees C
            timeout_minutes: give up after this many minutes. WAIT_FOREVER (0) means never give up.
        """
        self.desired_temperature = desired_temperature
        self.timeout_minutes = timeout_minutes
        self.elapsed_seconds = 0
        self.is_armed = True

    def disarm(self):
        self.is_armed = False

    def _finish(self, outcome):
        self.disarm()
        self._on_outcome(outcome)

    def tick(self) -> bool:
        """ Do one poll of the chamber

        Returns:
            True if the chamber should be polled again, False once disarmed
        """
        if not self.is_armed:
            return False

        try:
            actual_temperature = self._get_temperature()
        except _EXPECTED_POLL_EXCEPTIONS as e:
            self._log(f"Exception in chamber poll: {e}")
            return True

        if abs(actual_temperature - self.desired_temperature) <= self.tolerance:
            self._finish(TemperatureReached(actual_temperature=actual_temperature))
            return False

        self.elapsed_seconds += self.poll_interval_seconds

        if self.elapsed_seconds % SECONDS_PER_MINUTE == 0:
            self._log(
                f"Current chamber temp: {actual_temperature} (Desired: {self.desired_temperature})"
            )

        if self.timeout_minutes != WAIT_FOREVER:
            elapsed_minutes = self.elapsed_seconds // SECONDS_PER_MINUTE
            if elapsed_minutes >= self.timeout_minutes:
                self._finish(
                    TemperatureTimeout(
                        desired_temperature=self.desired_temperature,
                        actual_temperature=actual_temperature,
                    )
                )
                return False

        return True


class PeriodicTicker:
    """ Calls tick() every interval seconds on a background thread until it returns False or stop() is called

    Each tick runs while holding lock. Stopping the ticker while holding the same lock guarantees that no further
    ticks start once stop() returns, even one that was already waiting on the lock.
    """

    def __init__(
        self,
        tick: Callable[[], bool],
        interval: float = POLL_INTERVAL_SECONDS,
        lock=None,
        name: str = "ChamberPoll",
    ):
        self._tick = tick
        self.interval = interval
        self._lock = lock if lock is not None else threading.RLock()
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    @property
    def is_running(self) -> bool:
        return self.is_alive() and not self._stop_event.is_set()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()
        logger.debug(f"Started {self._thread.name} thread, ticking every {self.interval}s")

    def stop(self) -> None:
        self._stop_event.set()

    def join(self, timeout: float = None) -> None:
        # A tick that stops its own ticker (e.g. via an outcome callback) can't wait for itself
        if self._thread is threading.current_thread() or not self.is_alive():
            return
        self._thread.join(timeout)

    def _run(self) -> None:
        # Event.wait doubles as a sleep that stop() can interrupt
        while not self._stop_event.wait(timeout=self.interval):
            with self._lock:
                if self._stop_event.is_set():
                    break
                try:
                    keep_ticking = self._tick()
                except Exception:
                    # Keep polling: there's nobody on this thread to report to
                    logger.exception("Unexpected error in chamber poll tick")
                    keep_ticking = True

            if not keep_ticking:
                break

        logger.debug(f"{self._thread.name} thread stopped")
