"""
A driver for the Associated Environmental Systems temperature test chamber

Typical use:

    with ChamberSession(on_temperature_reached=print) as chamber:
        chamber.open_serial_port("COM9", 9600)
        chamber.ping_until_awake(10000)
        chamber.set_temp(-40, notify=True, timeout_minutes=30)
        # ...on_temperature_reached gets called from the poll thread once the chamber gets there

Pass connected=False to get a simulated chamber that never touches a serial port: it "reaches" every setpoint
immediately, which is handy for exercising a test sequence on a bench with no chamber attached.
"""
import logging
import math
import threading
from typing import Callable, Optional

import serial

from temperature_chamber.drivers.chamber.constants import (
    DEFAULT_BAUD_RATE,
    DEFAULT_COM_PORT,
    PING_INTERVAL_MS,
    POLL_INTERVAL_SECONDS,
    READ_RETRY_INTERVAL,
    SET_TEMP_MAX_TRIES,
    SETTLE_INTERVAL,
    TICKER_JOIN_TIMEOUT_SECONDS,
    WAIT_FOREVER,
    Register,
)
from temperature_chamber.drivers.chamber.exceptions import (
    ChamberError,
    ChamberUnresponsive,
    OutOfRange,
    PortNotOpen,
    PortOpenFailed,
    SetTempFailed,
)
from temperature_chamber.drivers.chamber.exchange import Expectation, exchange
from temperature_chamber.drivers.chamber.frame import (
    build_read_temperature,
    build_write,
)
from temperature_chamber.drivers.chamber.poll import (
    PeriodicTicker,
    TemperatureMonitor,
    TemperatureReached,
    TemperatureTimeout,
)
from temperature_chamber.drivers.chamber.setpoint import (
    get_temperature_validation_errors,
)
from temperature_chamber.drivers.serial_port import SerialTransport
from temperature_chamber.retry import retry_on_exception

logger = logging.getLogger(__name__)

# Things that can go wrong in a single exchange with the chamber and may go away if we try again.
# OSError covers transports that let OS level port errors through unwrapped
_EXPECTED_EXCHANGE_EXCEPTIONS = (ChamberError, serial.SerialException, OSError)


class ChamberSession:
    """ Owns the serial connection to one chamber and everything we know about it

    Only one exchange can be in flight on the serial line at a time. Every exchange, and every tick of the
    temperature monitor, happens while holding this session's lock.
    """

    def __init__(
        self,
        connected: bool = True,
        log: Optional[Callable[[str], None]] = None,
        on_temperature_reached: Optional[Callable[[int], None]] = None,
        on_timeout: Optional[Callable[[int, int], None]] = None,
        on_outcome: Optional[Callable] = None,
        settle_interval: float = SETTLE_INTERVAL,
        read_retry_interval: float = READ_RETRY_INTERVAL,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        transport_factory: Callable = SerialTransport,
    ):
        """
        Args:
            connected: True to talk to a real chamber. False for a simulated chamber (no serial I/O at all).
            log: called with one line of text for progress and poll errors. Defaults to logging at info level.
            on_temperature_reached: called with the actual temperature when a monitored setpoint is reached
            on_timeout: called with the desired and actual temperatures when a monitored setpoint times out
            on_outcome: called with the TemperatureReached or TemperatureTimeout outcome of monitoring
            settle_interval: seconds to give the chamber to reply to a command
            read_retry_interval: seconds between reads while waiting for the rest of a reply
            poll_interval: seconds between temperature polls while monitoring. The timeout count assumes
                POLL_INTERVAL_SECONDS, so only change this for testing.
            transport_factory: called with (port, baud_rate) to create the transport
        """
        self._connected = connected
        self._log = log if log is not None else logger.info
        self._on_temperature_reached = on_temperature_reached
        self._on_timeout = on_timeout
        self._on_outcome = on_outcome
        self.settle_interval = settle_interval
        self.read_retry_interval = read_retry_interval
        self.poll_interval = poll_interval
        self._transport_factory = transport_factory

        self._transport = None
        self._is_serial_port_open = False
        self._desired_temperature = 0

        self._lock = threading.RLock()
        self.monitor = TemperatureMonitor(
            get_temperature=self.get_temp,
            on_outcome=self._dispatch_outcome,
            log=self._log,
        )
        self._ticker: Optional[PeriodicTicker] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close_serial_port()

    @property
    def is_connected(self) -> bool:
        """ False for a simulated chamber """
        return self._connected

    @property
    def is_serial_port_open(self) -> bool:
        return self._is_serial_port_open

    @property
    def desired_temperature(self) -> int:
        return self._desired_temperature

    @property
    def is_monitoring(self) -> bool:
        return self.monitor.is_armed

    def open_serial_port(
        self, port: str = DEFAULT_COM_PORT, baud_rate: int = DEFAULT_BAUD_RATE
    ) -> None:
        """ Open the serial connection to the chamber, closing any connection that's already open

        Args:
            port: serial port to connect to, e.g. COM9 on Windows and /dev/ttyUSB0 on linux
            baud_rate: baud rate configured on the chamber's controller

        Raises:
            PortOpenFailed if the port can't be opened
        """
        if not self._connected:
            self._is_serial_port_open = True
            return

        if self._is_serial_port_open:
            self.close_serial_port()

        with self._lock:
            transport = self._transport_factory(port, baud_rate)
            try:
                transport.open()
            except (serial.SerialException, ValueError) as e:
                raise PortOpenFailed(
                    f"Problem opening chamber serial port {port} at {baud_rate} baud: {e}"
                ) from e

            if not transport.is_open:
                raise PortOpenFailed(
                    f"Problem opening chamber serial port {port} at {baud_rate} baud"
                )

            self._transport = transport
            self._is_serial_port_open = True
            logger.info(f"Opened chamber serial port {port} at {baud_rate} baud")

    def close_serial_port(self) -> None:
        """ Stop any temperature monitoring and close the serial connection. Does nothing if already closed """
        with self._lock:
            stopped_ticker = self._close()

        _join_ticker(stopped_ticker)

    def _close(self) -> Optional[PeriodicTicker]:
        stopped_ticker = self._disarm()

        if self._transport is not None:
            self._transport.close()
            self._transport = None

        self._is_serial_port_open = False
        return stopped_ticker

    def _exchange(self, frame, expect: Expectation):
        with self._lock:
            if not self._is_serial_port_open:
                raise PortNotOpen()

            return exchange(
                self._transport,
                frame,
                expect,
                settle_interval=self.settle_interval,
                retry_interval=self.read_retry_interval,
            )

    def _write_register(self, register: Register, value: int) -> None:
        """ Write a register and make sure the chamber echoes the command back. No-op when simulated. """
        if not self._is_serial_port_open:
            raise PortNotOpen()

        if not self._connected:
            return

        self._exchange(build_write(register, value), Expectation.ECHO)

    def get_temp(self) -> int:
        """ Read the chamber's current temperature

        Returns:
            The temperature in degrees C. A simulated chamber always reports the last accepted setpoint.

        Raises:
            PortNotOpen if the serial port isn't open
            TempMsgNotReceived or TempMsgTooLong if the chamber's reply is the wrong length
        """
        if not self._is_serial_port_open:
            raise PortNotOpen()

        if not self._connected:
            return self._desired_temperature

        return self._exchange(
            build_read_temperature(), Expectation.READ_TEMPERATURE
        ).temperature

    def set_temp(
        self,
        temperature: int,
        notify: bool = False,
        timeout_minutes: int = WAIT_FOREVER,
    ) -> None:
        """ Change the chamber's setpoint, optionally monitoring its progress towards it

        Any monitoring of a previous setpoint is stopped first.

        Args:
            temperature: new setpoint in degrees C, MIN_TEMP to MAX_TEMP
            notify: if True, poll the chamber until it reaches the setpoint or times out, and call the
                on_temperature_reached / on_timeout / on_outcome callbacks with the result
            timeout_minutes: how long to wait for the chamber to reach the setpoint when notify is True.
                WAIT_FOREVER (0) never times out.

        Raises:
            OutOfRange if the temperature is beyond the chamber's capability
            SetTempFailed if the chamber didn't accept the setpoint after SET_TEMP_MAX_TRIES tries
        """
        validation_errors = get_temperature_validation_errors(temperature)
        if validation_errors:
            raise OutOfRange(
                f"Requested temp ({temperature}) is beyond range of chamber capability: "
                f"{', '.join(validation_errors)}"
            )

        stopped_ticker = None
        try:
            with self._lock:
                stopped_ticker = self._disarm()
                self._write_setpoint(temperature)

                self._desired_temperature = temperature
                logger.info(f"Chamber setpoint: {temperature} C")

                if notify:
                    self._arm(timeout_minutes)
        finally:
            _join_ticker(stopped_ticker)

    def _write_setpoint(self, temperature: int) -> None:
        if not self._connected:
            return

        write_register_with_retry = retry_on_exception(
            _EXPECTED_EXCHANGE_EXCEPTIONS, max_tries=SET_TEMP_MAX_TRIES
        )(self._write_register)
        try:
            write_register_with_retry(Register.TEMPERATURE, temperature)
        except _EXPECTED_EXCHANGE_EXCEPTIONS as e:
            raise SetTempFailed(SET_TEMP_MAX_TRIES, e) from e

    def open_purge_valve(self) -> None:
        self._write_register(Register.PURGE_VALVE, 1)

    def close_purge_valve(self) -> None:
        self._write_register(Register.PURGE_VALVE, 0)

    def ping_until_awake(self, timeout_ms: int, interval_ms: int = PING_INTERVAL_MS) -> int:
        """ Keep asking the chamber for its temperature until it answers. Call this after powering on the chamber.

        Args:
            timeout_ms: give up once we've waited this long, in milliseconds
            interval_ms: wait between attempts, in milliseconds

        Returns:
            The chamber's temperature, from the first successful read

        Raises:
            ChamberUnresponsive once the waiting adds up to timeout_ms without a successful read
        """
        max_waits = max(0, math.ceil(timeout_ms / interval_ms))

        get_temp_with_retry = retry_on_exception(
            _EXPECTED_EXCHANGE_EXCEPTIONS,
            max_tries=max_waits + 1,
            interval=interval_ms / 1000,
            on_backoff=None,
        )(self.get_temp)

        try:
            return get_temp_with_retry()
        except _EXPECTED_EXCHANGE_EXCEPTIONS as e:
            raise ChamberUnresponsive(max_waits * interval_ms, e) from e

    def _arm(self, timeout_minutes: int) -> None:
        self.monitor.arm(self._desired_temperature, timeout_minutes)
        self._ticker = PeriodicTicker(
            self.monitor.tick, interval=self.poll_interval, lock=self._lock
        )
        self._ticker.start()

    def _disarm(self) -> Optional[PeriodicTicker]:
        """ Stop monitoring. Returns the stopped ticker, if there was one, for joining once the lock is released """
        self.monitor.disarm()
        stopped_ticker, self._ticker = self._ticker, None
        if stopped_ticker is not None:
            stopped_ticker.stop()
        return stopped_ticker

    def _dispatch_outcome(self, outcome) -> None:
        self._ticker = None

        if isinstance(outcome, TemperatureReached):
            logger.info(f"Chamber reached {outcome.actual_temperature} C")
            if self._on_temperature_reached is not None:
                self._on_temperature_reached(outcome.actual_temperature)

        elif isinstance(outcome, TemperatureTimeout):
            logger.warning(
                f"Timed out waiting for chamber to reach {outcome.desired_temperature} C "
                f"(currently {outcome.actual_temperature} C)"
            )
            if self._on_timeout is not None:
                self._on_timeout(
                    outcome.desired_temperature, outcome.actual_temperature
                )

        if self._on_outcome is not None:
            self._on_outcome(outcome)


def _join_ticker(ticker: Optional[PeriodicTicker]) -> None:
    """ Wait for a stopped ticker's thread to finish. Call without holding the session lock """
    if ticker is not None:
        ticker.join(timeout=TICKER_JOIN_TIMEOUT_SECONDS)
