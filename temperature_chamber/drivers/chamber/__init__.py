from .chamber import ChamberSession  # noqa: F401 unused imports
from .constants import (  # noqa: F401 unused imports
    DEFAULT_BAUD_RATE,
    DEFAULT_COM_PORT,
    MAX_TEMP,
    MIN_TEMP,
    WAIT_FOREVER,
    Register,
)
from .crc import crc16  # noqa: F401 unused imports
from .exceptions import (  # noqa: F401 unused imports
    ChamberError,
    ChamberUnresponsive,
    EchoMismatch,
    EchoTooLong,
    EchoTooShort,
    OutOfRange,
    PortNotOpen,
    PortOpenFailed,
    SetTempFailed,
    TempMsgNotReceived,
    TempMsgTooLong,
    TempMsgTooShort,
)
from .exchange import Expectation, ExchangeResult  # noqa: F401 unused imports
from .frame import (  # noqa: F401 unused imports
    CommandFrame,
    build_read_temperature,
    build_write,
)
from .poll import TemperatureReached, TemperatureTimeout  # noqa: F401 unused imports
from .setpoint import get_temperature_validation_errors  # noqa: F401 unused imports
