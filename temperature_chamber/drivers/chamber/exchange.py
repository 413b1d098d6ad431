from collections import namedtuple
from enum import Enum
from time import sleep

from temperature_chamber.drivers.chamber.constants import (
    MAX_READ_RETRIES,
    READ_RETRY_INTERVAL,
    SETTLE_INTERVAL,
    TEMPERATURE_RESPONSE_LENGTH,
)
from temperature_chamber.drivers.chamber.exceptions import (
    EchoMismatch,
    EchoTooLong,
    EchoTooShort,
    PortNotOpen,
    TempMsgNotReceived,
    TempMsgTooLong,
)
from temperature_chamber.drivers.chamber.frame import (
    CommandFrame,
    parse_temperature_response,
)
from temperature_chamber.retry import retry_on_predicate


class Expectation(Enum):
    """ What kind of reply a command gets """

    ECHO = "echo"
    READ_TEMPERATURE = "read temperature"


# temperature is None for echoed commands
ExchangeResult = namedtuple("ExchangeResult", ["response_bytes", "temperature"])


def _read_response(
    transport, expected_length: int, retry_interval: float, max_retries: int
) -> bytes:
    """ Accumulate reply bytes until we have at least expected_length of them or we run out of retries.

    A read that returns nothing isn't an error in itself: the chamber may just not have answered yet.
    """
    response = bytearray()

    def read_more():
        response.extend(transport.read())
        return len(response)

    read_until_expected_length = retry_on_predicate(
        lambda response_length: response_length < expected_length,
        max_tries=max_retries + 1,  # The first read isn't a retry
        interval=retry_interval,
    )(read_more)
    read_until_expected_length()

    return bytes(response)


def _validate_echo(command_bytes: bytes, response_bytes: bytes) -> None:
    if len(response_bytes) < len(command_bytes):
        raise EchoTooShort(
            f"Chamber msg echo not received. Max read retry exceeded. "
            f"Sent: {command_bytes!r}, received: {response_bytes!r}"
        )
    if len(response_bytes) > len(command_bytes):
        raise EchoTooLong(
            f"Chamber echo exceeds msg length. "
            f"Sent: {command_bytes!r}, received: {response_bytes!r}"
        )
    if response_bytes != command_bytes:
        raise EchoMismatch(
            f"Chamber echo msg didn't match. "
            f"Sent: {command_bytes!r}, received: {response_bytes!r}"
        )


def _validate_temperature_response_length(response_bytes: bytes) -> None:
    if len(response_bytes) < TEMPERATURE_RESPONSE_LENGTH:
        raise TempMsgNotReceived(
            f"Chamber temp return msg not received. Max read retry exceeded. "
            f"Received: {response_bytes!r}"
        )
    if len(response_bytes) > TEMPERATURE_RESPONSE_LENGTH:
        raise TempMsgTooLong(
            f"Chamber temp return exceeds msg length. Received: {response_bytes!r}"
        )


def exchange(
    transport,
    frame: CommandFrame,
    expect: Expectation,
    settle_interval: float = SETTLE_INTERVAL,
    retry_interval: float = READ_RETRY_INTERVAL,
    max_retries: int = MAX_READ_RETRIES,
) -> ExchangeResult:
    """ Send a command frame to the chamber and collect and validate its reply

    There's no acknowledgement in this protocol other than the reply itself, and no length field in the reply,
    so all we can go on is how many bytes arrived and, for writes, whether they're the same bytes we sent.

    Args:
        transport: an open SerialTransport (or anything with the same read/write/discard_input_buffer interface)
        frame: the CommandFrame to send
        expect: Expectation.ECHO for writes, Expectation.READ_TEMPERATURE for the temperature read
        settle_interval: seconds to give the chamber to respond before the first read
        retry_interval: seconds to wait between reads when the reply is incomplete
        max_retries: how many extra reads to do before giving up on an incomplete reply

    Returns:
        ExchangeResult with the raw reply and, for Expectation.READ_TEMPERATURE, the temperature in degrees C

    Raises:
        PortNotOpen if the transport isn't open
        EchoTooShort, EchoTooLong or EchoMismatch if a write isn't echoed back correctly
        TempMsgNotReceived or TempMsgTooLong if the temperature reply is the wrong length
    """
    if transport is None or not transport.is_open:
        raise PortNotOpen()

    command_bytes = frame.to_bytes()
    expected_length = frame.expected_response_length

    # Anything already sitting in the buffer is left over from an earlier exchange
    transport.discard_input_buffer()
    transport.write(command_bytes)

    sleep(settle_interval)

    response_bytes = _read_response(
        transport, expected_length, retry_interval, max_retries
    )

    if expect == Expectation.ECHO:
        _validate_echo(command_bytes, response_bytes)
        return ExchangeResult(response_bytes=response_bytes, temperature=None)

    _validate_temperature_response_length(response_bytes)
    return ExchangeResult(
        response_bytes=response_bytes,
        temperature=parse_temperature_response(response_bytes),
    )
