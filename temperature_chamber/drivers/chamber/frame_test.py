import pytest

from temperature_chamber.drivers.chamber import frame as module
from temperature_chamber.drivers.chamber.constants import MAX_TEMP, MIN_TEMP, Register
from temperature_chamber.drivers.chamber.crc import crc16
from temperature_chamber.drivers.chamber.exceptions import (
    InvalidFrame,
    TempMsgTooShort,
)


class TestToWord:
    @pytest.mark.parametrize(
        "value, expected_word",
        [
            (0, 0x0000),
            (35, 0x0023),
            (-1, 0xFFFF),
            (-40, 0xFFD8),
            (-60, 0xFFC4),
            (2000, 0x07D0),
        ],
    )
    def test_to_word(self, value, expected_word):
        assert module._to_word(value) == expected_word

    def test_raises_if_value_doesnt_fit(self):
        with pytest.raises(InvalidFrame):
            module._to_word(0x10000)


class TestBuildWrite:
    def test_set_temperature_frame_layout(self):
        frame_bytes = module.build_write(Register.TEMPERATURE, 35).to_bytes()

        assert frame_bytes[:6] == bytes([1, 6, 1, 44, 0, 35])
        assert len(frame_bytes) == 8

    def test_purge_valve_frame_layout(self):
        frame_bytes = module.build_write(Register.PURGE_VALVE, 1).to_bytes()

        assert frame_bytes[:6] == bytes([1, 6, 0x07, 0xD0, 0, 1])

    def test_negative_value_is_twos_complement(self):
        frame_bytes = module.build_write(Register.TEMPERATURE, -40).to_bytes()

        assert frame_bytes[4:6] == b"\xFF\xD8"

    @pytest.mark.parametrize("temperature", range(MIN_TEMP, MAX_TEMP + 1))
    def test_crc_checks_out_for_every_valid_temperature(self, temperature):
        frame_bytes = module.build_write(Register.TEMPERATURE, temperature).to_bytes()

        crc = crc16(frame_bytes[:6])
        assert frame_bytes[6] == crc & 0xFF
        assert frame_bytes[7] == crc >> 8

    def test_frames_with_same_contents_are_equal(self):
        assert module.build_write(Register.TEMPERATURE, 10) == module.build_write(
            Register.TEMPERATURE, 10
        )
        assert module.build_write(Register.TEMPERATURE, 10) != module.build_write(
            Register.TEMPERATURE, 11
        )


class TestBuildReadTemperature:
    def test_is_fixed_literal(self):
        assert module.build_read_temperature().to_bytes() == bytes(
            [0x01, 0x03, 0x00, 0x64, 0x00, 0x01, 0xC5, 0xD5]
        )

    def test_is_read(self):
        frame = module.build_read_temperature()

        assert frame.is_read
        assert frame.expected_response_length == 7

    def test_write_frames_expect_full_echo(self):
        frame = module.build_write(Register.TEMPERATURE, 20)

        assert not frame.is_read
        assert frame.expected_response_length == 8


class TestCommandFrame:
    def test_from_bytes_round_trips(self):
        frame = module.build_write(Register.TEMPERATURE, -12)

        assert module.CommandFrame.from_bytes(frame.to_bytes()) == frame

    @pytest.mark.parametrize(
        "name, frame_bytes",
        [
            ("incorrect slave address", b"\x02\x03\x00\x64\x00\x01\xC5\xD5"),
            ("incorrect crc", b"\x01\x03\x00\x64\x00\x01\xC5\xD6"),
            ("unknown function code", b"\x01\x10\x00\x64\x00\x01\xC5\xD5"),
            ("too short", b"\x01\x03\x00\x64\x00\x01\xC5"),
            ("too long", b"\x01\x03\x00\x64\x00\x01\xC5\xD5\x00"),
        ],
    )
    def test_from_bytes_raises_if_invalid(self, name, frame_bytes):
        with pytest.raises(InvalidFrame):
            module.CommandFrame.from_bytes(frame_bytes)

    def test_str_shows_hex_bytes(self):
        assert "bytes: 0x01 0x03 0x00 0x64 0x00 0x01 0xC5 0xD5" in str(
            module.build_read_temperature()
        )


class TestParseTemperatureResponse:
    @pytest.mark.parametrize(
        "response_bytes, expected_temperature",
        [
            (b"\x01\x03\x02\x00\x23\x00\x00", 35),
            (b"\x01\x03\x02\xFF\xD8\x00\x00", -40),
            (b"\x01\x03\x02\x00\x00\x00\x00", 0),
            (b"\x01\x03\x02\xFF\x80\x00\x00", -128),
        ],
    )
    def test_reads_signed_byte_at_offset_4(self, response_bytes, expected_temperature):
        assert module.parse_temperature_response(response_bytes) == expected_temperature

    def test_raises_if_reply_stops_before_temperature_byte(self):
        with pytest.raises(TempMsgTooShort):
            module.parse_temperature_response(b"\x01\x03\x02\x00")
