"""
Constants for the Associated Environmental Systems temperature chamber

The chamber's controller speaks a Modbus-RTU-like protocol over RS-232. The
host is the master and the controller is slave #1. Only two function codes are
used:

    0x03  Read register       (we only ever read the temperature register)
    0x06  Write single register

A write is acknowledged by the controller echoing the command back byte for
byte. A read is answered with a 7 byte reply carrying the temperature as a
signed byte at offset 4. There is no length field in either reply: the only
thing we can check is how many bytes arrived.
"""
from enum import IntEnum


# Temperature limits of the chamber, degrees C
MIN_TEMP = -60
MAX_TEMP = 80

# |actual - desired| <= TEMP_TOLERANCE counts as "reached", degrees C
TEMP_TOLERANCE = 1

# When a run finishes below this temperature, warm the chamber back up so that
# the devices under test don't collect condensation when the door is opened
HEAT_UPON_COMPLETION_THRESHOLD_TEMP = 5
ROOM_TEMPERATURE = 23
DEFAULT_TEST_TEMP = 35
DEFAULT_COMPLETION_TEMP = ROOM_TEMPERATURE

# timeout_minutes value that means "never time out"
WAIT_FOREVER = 0

DEFAULT_COM_PORT = "COM9"
DEFAULT_BAUD_RATE = 9600


class Register(IntEnum):
    TEMPERATURE = 300
    PURGE_VALVE = 2000


SLAVE_ADDRESS = 1
WRITE_SINGLE_REGISTER_FUNCTION_CODE = 6
READ_REGISTER_FUNCTION_CODE = 3

WRITE_FRAME_LENGTH = 8
TEMPERATURE_RESPONSE_LENGTH = 7
TEMPERATURE_RESPONSE_OFFSET = 4

# The only read we ever do: register 100 (0x64), one word. CRC is pre-computed.
READ_TEMPERATURE_FRAME_BYTES = bytes([1, 3, 0, 100, 0, 1, 197, 213])

CRC16_POLYNOMIAL = 0xA001
CRC16_INITIAL_VALUE = 0xFFFF

# Exchange timing, seconds
SETTLE_INTERVAL = 0.1
READ_RETRY_INTERVAL = 0.2
MAX_READ_RETRIES = 3

SET_TEMP_MAX_TRIES = 3

# ping_until_awake cadence, milliseconds
PING_INTERVAL_MS = 250

POLL_INTERVAL_SECONDS = 2
# Long enough for a tick that was already mid-exchange to finish
TICKER_JOIN_TIMEOUT_SECONDS = 2
SECONDS_PER_MINUTE = 60
