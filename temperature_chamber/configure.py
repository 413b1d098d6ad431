import argparse
from collections import namedtuple
from typing import Dict, List

from .drivers.chamber import DEFAULT_BAUD_RATE, DEFAULT_COM_PORT, WAIT_FOREVER
from .drivers.chamber.constants import DEFAULT_TEST_TEMP
from .setpoints import (
    create_setpoints,
    get_validation_errors,
    read_setpoint_sequence_file,
)

DEFAULT_PING_TIMEOUT_MS = 10000

ChamberConfiguration = namedtuple(
    "ChamberConfiguration",
    [
        "port",
        "baud_rate",
        "connected",
        "setpoints",
        "ping_timeout_ms",
        "purge",
    ],
)


def _parse_args(args: List[str]) -> Dict:
    arg_parser = argparse.ArgumentParser(
        description="Run the temperature chamber through one or more setpoints",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    setpoint_group = arg_parser.add_mutually_exclusive_group()

    setpoint_group.add_argument(
        "-t",
        "--temperature",
        type=int,
        default=DEFAULT_TEST_TEMP,
        help=f"single setpoint temperature in degrees C. Default: {DEFAULT_TEST_TEMP}",
    )

    setpoint_group.add_argument(
        "-s",
        "--setpoint-sequence-filepath",
        dest="setpoint_sequence_csv_filepath",
        help=(
            "setpoint sequence csv filepath. Columns: temperature, hold_time (seconds), timeout_minutes.\n"
            "Overrides --temperature, --hold-time and --timeout-minutes"
        ),
    )

    arg_parser.add_argument(
        "--hold-time",
        type=float,
        default=0.0,
        help="time in seconds to hold the setpoint once it's reached. Default: 0",
    )

    arg_parser.add_argument(
        "--timeout-minutes",
        type=int,
        default=WAIT_FOREVER,
        help="minutes to wait for the chamber to reach the setpoint. Default: 0 (wait forever)",
    )

    arg_parser.add_argument(
        "--port",
        required=False,
        default=DEFAULT_COM_PORT,
        help=f"override chamber COM port address. Default: {DEFAULT_COM_PORT}",
    )

    arg_parser.add_argument(
        "--baud-rate",
        type=int,
        default=DEFAULT_BAUD_RATE,
        help=f"override chamber baud rate. Default: {DEFAULT_BAUD_RATE}",
    )

    arg_parser.add_argument(
        "--simulated",
        required=False,
        action="store_true",
        default=False,
        help="don't talk to a real chamber. Every setpoint is reached immediately",
    )

    arg_parser.add_argument(
        "--ping-timeout",
        dest="ping_timeout_ms",
        type=int,
        default=DEFAULT_PING_TIMEOUT_MS,
        help=(
            "milliseconds to wait for the chamber to respond before giving up. "
            f"Default: {DEFAULT_PING_TIMEOUT_MS}"
        ),
    )

    arg_parser.add_argument(
        "--purge",
        required=False,
        action="store_true",
        default=False,
        help="open the purge valve for the duration of the run",
    )

    chamber_arg_namespace = arg_parser.parse_args(args)

    return vars(chamber_arg_namespace)


def get_chamber_configuration(cli_args: List[str]) -> ChamberConfiguration:
    args = _parse_args(cli_args)

    if args["setpoint_sequence_csv_filepath"]:
        setpoints = read_setpoint_sequence_file(args["setpoint_sequence_csv_filepath"])
    else:
        setpoints = create_setpoints(
            args["temperature"], args["hold_time"], args["timeout_minutes"]
        )

    setpoint_errors = get_validation_errors(setpoints)
    if len(setpoint_errors):
        raise ValueError(f"Invalid setpoints detected:\n{setpoint_errors}")

    return ChamberConfiguration(
        port=args["port"],
        baud_rate=args["baud_rate"],
        connected=not args["simulated"],
        setpoints=setpoints,
        ping_timeout_ms=args["ping_timeout_ms"],
        purge=args["purge"],
    )
