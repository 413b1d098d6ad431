import logging
import queue
import sys
import time

from .configure import get_chamber_configuration
from .drivers.chamber import ChamberSession, TemperatureTimeout
from .drivers.chamber.constants import (
    DEFAULT_COMPLETION_TEMP,
    HEAT_UPON_COMPLETION_THRESHOLD_TEMP,
)


class SetpointTimeout(Exception):
    # Raised when the chamber doesn't reach a setpoint in the time allowed
    pass


def _wait_for_outcome(outcomes: queue.Queue):
    """ Block until the chamber reports reaching (or failing to reach) its setpoint """
    while True:
        try:
            # Wake up regularly so that KeyboardInterrupt gets a look in
            return outcomes.get(timeout=1)
        except queue.Empty:
            continue


def _needs_warming_up(last_temperature) -> bool:
    return (
        last_temperature is not None
        and last_temperature < HEAT_UPON_COMPLETION_THRESHOLD_TEMP
    )


def _shut_down(chamber: ChamberSession, purge: bool, last_temperature):
    """Close the purge valve, bring the chamber back to room temperature if it's cold, and disconnect"""
    logging.info("Shutting down temperature chamber.")
    try:
        if not chamber.is_serial_port_open:
            return

        if purge:
            logging.info("Closing purge valve...")
            chamber.close_purge_valve()
            logging.info("Purge valve closed.")

        # Don't leave the chamber cold: the devices under test would collect condensation when it's opened
        if _needs_warming_up(last_temperature):
            logging.info(
                f"Returning chamber to {DEFAULT_COMPLETION_TEMP} C "
                f"(last setpoint {last_temperature} C was below {HEAT_UPON_COMPLETION_THRESHOLD_TEMP} C)"
            )
            chamber.set_temp(DEFAULT_COMPLETION_TEMP, notify=False)
    finally:
        # Ensure that the serial port gets closed even if the chamber errors
        chamber.close_serial_port()
        logging.info("Temperature chamber disconnected.")


def run(cli_args=None):
    logging_format = "%(asctime)s [%(levelname)s]--- %(message)s"
    logging.basicConfig(
        level=logging.INFO, format=logging_format, handlers=[logging.StreamHandler()]
    )

    if cli_args is None:
        # First argument is the name of the command itself, not an "argument" we want to parse
        cli_args = sys.argv[1:]
    # Parse the configuration parameters from cli args
    configuration = get_chamber_configuration(cli_args)

    outcomes: queue.Queue = queue.Queue()
    chamber = ChamberSession(
        connected=configuration.connected, on_outcome=outcomes.put
    )
    last_temperature = None

    try:
        chamber.open_serial_port(configuration.port, configuration.baud_rate)
        current_temperature = chamber.ping_until_awake(configuration.ping_timeout_ms)
        logging.info(f"Chamber is awake. Current temperature: {current_temperature} C")

        if configuration.purge:
            chamber.open_purge_valve()
            logging.info("Purge valve opened.")

        for _, setpoint in configuration.setpoints.iterrows():
            logging.info(f"Setting setpoint: {setpoint.to_dict()}")
            last_temperature = int(setpoint["temperature"])
            chamber.set_temp(
                last_temperature,
                notify=True,
                timeout_minutes=int(setpoint["timeout_minutes"]),
            )

            outcome = _wait_for_outcome(outcomes)
            if isinstance(outcome, TemperatureTimeout):
                raise SetpointTimeout(
                    f"Chamber didn't reach {outcome.desired_temperature} C within "
                    f"{int(setpoint['timeout_minutes'])} minutes "
                    f"(last reading {outcome.actual_temperature} C)"
                )

            logging.info(
                f"Chamber reached {outcome.actual_temperature} C. "
                f"Holding for {setpoint['hold_time']} seconds."
            )
            time.sleep(setpoint["hold_time"])

    # Log interrupts and unexpected errors on the way out.
    # Re-raise so that we still get the stack traces
    except KeyboardInterrupt as e:
        logging.warning("Keyboard interrupt! Shutting down... (please wait)")
        raise e

    except Exception as e:
        logging.warning(f"Chamber run ended with error! {e} Shutting down... (please wait)")
        raise e

    else:
        logging.info("Chamber run ended successfully!")

    # Ensure the chamber gets shut down regardless of any unexpected errors
    finally:
        _shut_down(chamber, configuration.purge, last_temperature)
