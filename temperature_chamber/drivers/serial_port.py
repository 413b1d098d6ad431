import logging
import os
from contextlib import contextmanager
from typing import Optional

import serial

logger = logging.getLogger(__name__)

# pyserial lets raw OS errors through when a port disappears from under it, e.g. a USB adapter being unplugged
if os.name == "posix":
    import termios

    _OS_PORT_ERRORS = (OSError, termios.error)
else:
    _OS_PORT_ERRORS = (OSError,)


class SerialTransport:
    """ A duplex byte channel over a serial port that stays open between commands

    Reads never block: read() returns whatever bytes have arrived so far, which may be none at all.

    Example usage:
    >>> with SerialTransport("COM9", baud_rate=9600) as transport:
    >>>     transport.write(command_bytes)
    >>>     response = transport.read()
    """

    def __init__(self, port: str, baud_rate: int = 9600):
        self.port = port
        self.baud_rate = baud_rate
        self._connection: Optional[serial.Serial] = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @property
    def is_open(self) -> bool:
        return self._connection is not None and self._connection.is_open

    def open(self) -> None:
        """ Open the serial port

        Raises:
            serial.SerialException if serial port can't be opened
            ValueError if parameters are out of range, e.g. baud rate etc.
        """
        logger.debug(f"Opening serial port {self.port} at {self.baud_rate} baud")
        # timeout=0: non-blocking reads. The exchange protocol does its own waiting.
        self._connection = serial.Serial(self.port, baudrate=self.baud_rate, timeout=0)

    def close(self) -> None:
        if self._connection is not None:
            logger.debug(f"Closing serial port {self.port}")
            self._connection.close()
            self._connection = None

    @contextmanager
    def _os_errors_as_serial_exceptions(self, action: str):
        try:
            yield
        except serial.SerialException:
            raise
        except _OS_PORT_ERRORS as e:
            raise serial.SerialException(
                f"Error trying to {action} serial port {self.port}: {e}"
            ) from e

    def discard_input_buffer(self) -> None:
        with self._os_errors_as_serial_exceptions("discard input on"):
            self._connection.reset_input_buffer()

    def write(self, command: bytes) -> None:
        logger.debug(f"Serial command on {self.port}: {command!r}")
        with self._os_errors_as_serial_exceptions("write to"):
            self._connection.write(command)

    def read(self) -> bytes:
        """ Read whatever is waiting in the input buffer. Returns b"" if nothing has arrived

        Raises:
            serial.SerialException if the port has gone away, including OS level errors
        """
        with self._os_errors_as_serial_exceptions("read from"):
            response = self._connection.read(self._connection.in_waiting)
        logger.debug(f"Serial response on {self.port}: {response!r}")
        return response
