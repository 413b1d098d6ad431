# Command framing for the Associated Environmental Systems temperature chamber
from temperature_chamber.drivers.chamber.constants import (
    READ_REGISTER_FUNCTION_CODE,
    READ_TEMPERATURE_FRAME_BYTES,
    SLAVE_ADDRESS,
    TEMPERATURE_RESPONSE_LENGTH,
    TEMPERATURE_RESPONSE_OFFSET,
    WRITE_FRAME_LENGTH,
    WRITE_SINGLE_REGISTER_FUNCTION_CODE,
)
from temperature_chamber.drivers.chamber.crc import crc16_bytes
from temperature_chamber.drivers.chamber.exceptions import (
    InvalidFrame,
    TempMsgTooShort,
)

_MAX_WORD = 0xFFFF


def _to_word(value: int) -> int:
    """ Encode a signed value as the 16 bit word the chamber controller expects

        Negative values are sent as the 16 bit two's complement of their magnitude,
        e.g. -40 (0x28) -> 0xFFD8.
    """
    if value < 0:
        value = (abs(value) ^ _MAX_WORD) + 1

    if not 0 <= value <= _MAX_WORD:
        raise InvalidFrame(f"Value {value} doesn't fit in a 16 bit register")

    return value


class CommandFrame:
    """
    The framing of a command to the chamber is:

    Slave address       Always 0x01
    Function code       0x03 (read register) or 0x06 (write single register)
    Register MSB
    Register LSB
    Value MSB           For a read, the number of registers to read
    Value LSB
    CRC LSB             CRC-16 (see crc16) of the 6 preceding bytes, least significant byte first
    CRC MSB

    On a successful write the chamber echoes this frame back verbatim.
    """

    def __init__(
        self,
        slave_address: int,
        function_code: int,
        register: int,
        value: int,
        crc: bytes = None,
    ):
        self.slave_address = slave_address
        self.function_code = function_code
        self.register = register
        self.value = value

        self._crc = crc if crc is not None else crc16_bytes(self._message_bytes)

        self.validate()

    def __str__(self):
        bytes_as_hex = " ".join((f"0x{byte:02X}" for byte in self.to_bytes()))
        return f"bytes: {bytes_as_hex}, attributes: {str(self.__dict__)}"

    def __repr__(self):
        return f"CommandFrame({self.to_bytes().hex(' ').upper()})"

    def __eq__(self, other):
        return isinstance(other, CommandFrame) and self.to_bytes() == other.to_bytes()

    def __hash__(self):
        return hash(self.to_bytes())

    @classmethod
    def from_bytes(cls, frame_bytes: bytes):
        """ Constructs a CommandFrame by parsing a byte string (e.g. an echo from the chamber)
        """
        if len(frame_bytes) != WRITE_FRAME_LENGTH:
            raise InvalidFrame(
                f"Expected {WRITE_FRAME_LENGTH} bytes but got {len(frame_bytes)}: {frame_bytes!r}"
            )

        return cls(
            slave_address=frame_bytes[0],
            function_code=frame_bytes[1],
            register=int.from_bytes(frame_bytes[2:4], byteorder="big"),
            value=int.from_bytes(frame_bytes[4:6], byteorder="big"),
            crc=bytes(frame_bytes[6:8]),
        )

    def to_bytes(self) -> bytes:
        return self._message_bytes + self._crc

    @property
    def is_read(self) -> bool:
        return self.function_code == READ_REGISTER_FUNCTION_CODE

    @property
    def expected_response_length(self) -> int:
        """ Writes are echoed back in full; the only read we do gets a fixed length reply """
        return TEMPERATURE_RESPONSE_LENGTH if self.is_read else WRITE_FRAME_LENGTH

    @property
    def _message_bytes(self) -> bytes:
        """ Everything except the last two (CRC) bytes. Used to compute the CRC
        """
        return (
            bytes([self.slave_address, self.function_code])
            + self.register.to_bytes(2, byteorder="big")
            + self.value.to_bytes(2, byteorder="big")
        )

    def validate(self):
        checks = (
            # (name, actual, expected)
            ("slave address", self.slave_address, SLAVE_ADDRESS),
            (
                "function code",
                self.function_code in (
                    READ_REGISTER_FUNCTION_CODE,
                    WRITE_SINGLE_REGISTER_FUNCTION_CODE,
                ),
                True,
            ),
            ("register is 16 bit", 0 <= self.register <= _MAX_WORD, True),
            ("value is 16 bit", 0 <= self.value <= _MAX_WORD, True),
        )
        errors = [
            f"{check_name} actual ({actual}) != expected ({expected})"
            for check_name, actual, expected in checks
            if actual != expected
        ]
        if errors:
            raise InvalidFrame(f"\nCommand frame invalid. \nErrors: {errors}.")

        expected_crc = crc16_bytes(self._message_bytes)
        if self._crc != expected_crc:
            raise InvalidFrame(
                f"\nCommand frame invalid. \nErrors: ['crc actual ({self._crc.hex()}) "
                f"!= expected ({expected_crc.hex()})']."
            )


def build_write(register: int, value: int) -> CommandFrame:
    """ Build a "write single register" command

        Args:
            register: the register to write, e.g. Register.TEMPERATURE
            value: the value to write. Negative values are sent as 16 bit two's complement.

        Returns:
            an 8 byte CommandFrame
    """
    return CommandFrame(
        slave_address=SLAVE_ADDRESS,
        function_code=WRITE_SINGLE_REGISTER_FUNCTION_CODE,
        register=int(register),
        value=_to_word(value),
    )


_READ_TEMPERATURE_FRAME = CommandFrame.from_bytes(READ_TEMPERATURE_FRAME_BYTES)


def build_read_temperature() -> CommandFrame:
    """ The read-temperature request never changes, so it is a pre-built literal """
    return _READ_TEMPERATURE_FRAME


def parse_temperature_response(response_bytes: bytes) -> int:
    """ Pull the temperature out of the chamber's reply to a read-temperature request

        Byte 4 of the reply holds the temperature in degrees C as a signed 8 bit integer.
        Checking that the whole reply arrived is up to the caller (see exchange).
    """
    if len(response_bytes) <= TEMPERATURE_RESPONSE_OFFSET:
        raise TempMsgTooShort(
            f"Chamber temp return msg too short to hold a temperature: {response_bytes!r}"
        )

    return int.from_bytes(
        response_bytes[TEMPERATURE_RESPONSE_OFFSET : TEMPERATURE_RESPONSE_OFFSET + 1],
        byteorder="big",
        signed=True,
    )
