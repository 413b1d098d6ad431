# Verification of setpoint validity for the temperature chamber
from typing import List

from temperature_chamber.drivers.chamber.constants import MAX_TEMP, MIN_TEMP


def get_temperature_validation_errors(setpoint_temperature: float) -> List:
    """ Validate that a given temperature is attainable by the chamber.
        Args:
            setpoint_temperature: The desired setpoint temperature in C
        Returns:
            List of descriptions of what's wrong with this temperature. Empty if it's fine.
    """
    validation_errors = {
        f"temperature < {MIN_TEMP} C": setpoint_temperature < MIN_TEMP,
        f"temperature > {MAX_TEMP} C": setpoint_temperature > MAX_TEMP,
    }

    return [error for error, has_error in validation_errors.items() if has_error]
