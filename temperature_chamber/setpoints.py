import pandas as pd

from .drivers.chamber import WAIT_FOREVER, get_temperature_validation_errors

_REQUIRED_COLUMN = "temperature"

# Optional columns and the value used when a sequence file leaves them out
_COLUMN_DEFAULTS = {"hold_time": 0, "timeout_minutes": WAIT_FOREVER}


def _get_setpoint_validation_errors(setpoint: pd.Series) -> list:
    temperature = setpoint["temperature"]
    if pd.isna(temperature):
        return ["temperature missing"]

    all_errors = get_temperature_validation_errors(temperature)
    if temperature != int(temperature):
        all_errors.append("temperature is not a whole number of degrees C")
    if setpoint["hold_time"] < 0:
        all_errors.append("hold_time < 0")
    if setpoint["timeout_minutes"] < 0:
        all_errors.append("timeout_minutes < 0")

    return all_errors


def get_validation_errors(setpoints: pd.DataFrame) -> pd.Series:
    """ Run validation checks against all setpoints and return all errors

        Args:
            setpoints: A DataFrame with setpoint definitions

        Returns:
            A Series of lists of errors, only containing the setpoints that have errors.
            The index of the input DataFrame is preserved.
    """
    setpoint_errors = setpoints.apply(_get_setpoint_validation_errors, axis=1)

    errors_present_selector = setpoint_errors.apply(lambda errors: len(errors) > 0)
    return setpoint_errors[errors_present_selector]


def create_setpoints(
    temperature: int, hold_time: float = 0, timeout_minutes: int = WAIT_FOREVER
) -> pd.DataFrame:
    """ A sequence with a single setpoint in it """
    return pd.DataFrame(
        [
            {
                "temperature": temperature,
                "hold_time": hold_time,
                "timeout_minutes": timeout_minutes,
            }
        ]
    )


def read_setpoint_sequence_file(sequence_csv_filepath: str) -> pd.DataFrame:
    """ Read a setpoint sequence csv. Columns:
        temperature: setpoint in degrees C (required)
        hold_time: seconds to hold the setpoint once it's reached (default 0)
        timeout_minutes: how long to wait for the chamber to get there (default 0: forever)
    """
    setpoints = pd.read_csv(sequence_csv_filepath)

    if _REQUIRED_COLUMN not in setpoints.columns:
        raise ValueError(
            f'Setpoint sequence file {sequence_csv_filepath} has no "{_REQUIRED_COLUMN}" column'
        )

    for column, default in _COLUMN_DEFAULTS.items():
        if column not in setpoints.columns:
            setpoints[column] = default

    return setpoints.fillna(_COLUMN_DEFAULTS)
