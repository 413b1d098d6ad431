import pytest

from temperature_chamber.drivers.chamber import crc as module


def _table_driven_modbus_crc(message_bytes):
    """ An independent, table-driven implementation of CRC-16/MODBUS to check against """
    table = []
    for index in range(256):
        value = index
        for _ in range(8):
            value = (value >> 1) ^ 0xA001 if value & 1 else value >> 1
        table.append(value)

    crc = 0xFFFF
    for byte in message_bytes:
        crc = (crc >> 8) ^ table[(crc ^ byte) & 0xFF]
    return crc


class TestCrc16:
    @pytest.mark.parametrize(
        "message_bytes, expected_crc_bytes",
        [
            # The read-temperature request the chamber documentation gives with its CRC
            (bytes([1, 3, 0, 100, 0, 1]), b"\xC5\xD5"),
            # The usual Modbus RTU example: read 10 holding registers from slave 1
            (bytes([1, 3, 0, 0, 0, 10]), b"\xC5\xCD"),
        ],
    )
    def test_known_vectors(self, message_bytes, expected_crc_bytes):
        assert module.crc16_bytes(message_bytes) == expected_crc_bytes

    def test_set_temperature_35_matches_independent_implementation(self):
        message_bytes = bytes([1, 6, 1, 44, 0, 35])

        assert module.crc16(message_bytes) == _table_driven_modbus_crc(message_bytes)

    def test_only_first_6_bytes_are_used(self):
        message_bytes = bytes([1, 6, 1, 44, 0, 35])

        assert module.crc16(message_bytes + b"\xAB\xCD") == module.crc16(message_bytes)

    def test_is_deterministic(self):
        message_bytes = bytes([1, 6, 7, 208, 0, 1])

        assert module.crc16(message_bytes) == module.crc16(bytes(message_bytes))

    def test_crc_bytes_are_low_byte_first(self):
        message_bytes = bytes([1, 6, 1, 44, 0, 35])
        crc = module.crc16(message_bytes)

        assert module.crc16_bytes(message_bytes) == bytes([crc & 0xFF, crc >> 8])
