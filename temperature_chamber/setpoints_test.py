import pandas as pd
import pytest

from . import setpoints as module


class TestGetValidationErrors:
    def test_returns_only_invalid_setpoints(self):
        setpoints = pd.DataFrame(
            [
                {"temperature": 25, "hold_time": 0, "timeout_minutes": 0},
                {"temperature": 81, "hold_time": 0, "timeout_minutes": 0},
                {"temperature": -40, "hold_time": -1, "timeout_minutes": 0},
            ]
        )

        setpoint_errors = module.get_validation_errors(setpoints)

        assert setpoint_errors.to_dict() == {
            1: ["temperature > 80 C"],
            2: ["hold_time < 0"],
        }

    def test_flags_fractional_temperatures(self):
        setpoints = pd.DataFrame(
            [{"temperature": 25.5, "hold_time": 0, "timeout_minutes": 0}]
        )

        setpoint_errors = module.get_validation_errors(setpoints)

        assert setpoint_errors.to_dict() == {
            0: ["temperature is not a whole number of degrees C"]
        }

    def test_valid_setpoints_have_no_errors(self):
        setpoints = module.create_setpoints(35, hold_time=60, timeout_minutes=30)

        assert len(module.get_validation_errors(setpoints)) == 0


class TestReadSetpointSequenceFile:
    def test_fills_in_optional_columns(self, tmp_path):
        sequence_file = tmp_path / "sequence.csv"
        sequence_file.write_text("temperature,hold_time\n-40,600\n25,\n")

        setpoints = module.read_setpoint_sequence_file(sequence_file)

        assert setpoints["temperature"].tolist() == [-40, 25]
        assert setpoints["hold_time"].tolist() == [600, 0]
        assert setpoints["timeout_minutes"].tolist() == [0, 0]

    def test_raises_without_temperature_column(self, tmp_path):
        sequence_file = tmp_path / "sequence.csv"
        sequence_file.write_text("hold_time\n600\n")

        with pytest.raises(ValueError, match="temperature"):
            module.read_setpoint_sequence_file(sequence_file)
