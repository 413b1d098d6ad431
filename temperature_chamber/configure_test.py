import pandas as pd
import pytest

from . import configure as module


class TestParseArgs:
    def test_all_args_parsed_appropriately(self):
        args_in = [
            "--temperature",
            "-40",
            "--hold-time",
            "600",
            "--timeout-minutes",
            "45",
            "--port",
            "/dev/ttyUSB0",
            "--baud-rate",
            "19200",
            "--simulated",
            "--ping-timeout",
            "5000",
            "--purge",
        ]

        expected_args_out = {
            "temperature": -40,
            "setpoint_sequence_csv_filepath": None,
            "hold_time": 600,
            "timeout_minutes": 45,
            "port": "/dev/ttyUSB0",
            "baud_rate": 19200,
            "simulated": True,
            "ping_timeout_ms": 5000,
            "purge": True,
        }

        assert module._parse_args(args_in) == expected_args_out

    def test_defaults(self):
        expected_args_out = {
            "temperature": 35,
            "setpoint_sequence_csv_filepath": None,
            "hold_time": 0,
            "timeout_minutes": 0,
            "port": "COM9",
            "baud_rate": 9600,
            "simulated": False,
            "ping_timeout_ms": 10000,
            "purge": False,
        }

        assert module._parse_args([]) == expected_args_out

    def test_temperature_and_sequence_file_are_mutually_exclusive(self):
        with pytest.raises(SystemExit):
            module._parse_args(["-t", "20", "-s", "sequence.csv"])


class TestGetChamberConfiguration:
    def test_single_setpoint(self):
        configuration = module.get_chamber_configuration(
            ["-t", "-20", "--timeout-minutes", "30", "--simulated"]
        )

        assert not configuration.connected
        assert configuration.port == "COM9"
        pd.testing.assert_frame_equal(
            configuration.setpoints,
            pd.DataFrame(
                [{"temperature": -20, "hold_time": 0.0, "timeout_minutes": 30}]
            ),
        )

    def test_reads_sequence_file(self, tmp_path):
        sequence_file = tmp_path / "sequence.csv"
        sequence_file.write_text("temperature,hold_time,timeout_minutes\n-40,60,30\n23,0,0\n")

        configuration = module.get_chamber_configuration(["-s", str(sequence_file)])

        assert configuration.connected
        assert configuration.setpoints["temperature"].tolist() == [-40, 23]

    def test_raises_on_invalid_setpoints(self):
        with pytest.raises(ValueError, match="Invalid setpoints"):
            module.get_chamber_configuration(["-t", "100"])
