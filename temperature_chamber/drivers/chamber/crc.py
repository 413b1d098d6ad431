from temperature_chamber.drivers.chamber.constants import (
    CRC16_INITIAL_VALUE,
    CRC16_POLYNOMIAL,
)

# Only the first 6 bytes of a command frame (everything but the CRC itself) are checksummed
_CRC_MESSAGE_LENGTH = 6


def crc16(message_bytes: bytes) -> int:
    """ Calculate the CRC of the "message bytes" of a command frame

        This is the bit-reversed CRC-16 used by Modbus RTU (polynomial 0xA001, initial value 0xFFFF):
            XOR each byte into the low 8 bits of the register, then 8 times: shift the register right
            by one, XORing in the polynomial whenever the bit shifted out was a 1.

        Args:
            message_bytes: a command frame. Only the first 6 bytes are used.

        Returns:
            The 16 bit CRC. On the wire it is sent low byte first.
    """
    crc = CRC16_INITIAL_VALUE

    for byte in message_bytes[:_CRC_MESSAGE_LENGTH]:
        crc ^= byte
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ CRC16_POLYNOMIAL
            else:
                crc >>= 1

    return crc


def crc16_bytes(message_bytes: bytes) -> bytes:
    """ The CRC of message_bytes as it appears on the wire: low byte, then high byte """
    return crc16(message_bytes).to_bytes(2, byteorder="little")
