class ChamberError(Exception):
    # Base class for everything that can go wrong talking to the chamber
    pass


class PortNotOpen(ChamberError):
    def __init__(self):
        super().__init__("Chamber serial port not open")


class PortOpenFailed(ChamberError):
    # Error class used when the serial port can't be opened
    pass


class OutOfRange(ChamberError, ValueError):
    # Error class used when a requested setpoint is beyond the chamber's capability
    pass


class InvalidFrame(ChamberError, ValueError):
    # Error class used when bytes can't be interpreted as a command frame
    pass


class EchoError(ChamberError):
    # Error class used when the chamber doesn't echo back the command we sent it
    pass


class EchoTooShort(EchoError):
    pass


class EchoTooLong(EchoError):
    pass


class EchoMismatch(EchoError):
    pass


class TempMsgError(ChamberError):
    # Error class used when we can't interpret the chamber's reply to a temperature read
    pass


class TempMsgNotReceived(TempMsgError):
    pass


class TempMsgTooLong(TempMsgError):
    pass


class TempMsgTooShort(TempMsgError):
    pass


class SetTempFailed(ChamberError):
    def __init__(self, tries, last_error):
        super().__init__(
            f"Unable to set chamber temp after {tries} tries. Error: {last_error}"
        )
        self.tries = tries
        self.last_error = last_error


class ChamberUnresponsive(ChamberError):
    def __init__(self, elapsed_ms, last_error):
        super().__init__(
            f"Unable to communicate with chamber after waiting {elapsed_ms} milliseconds.\n\n"
            "Make sure the chamber is powered on and its serial cable is connected.\n\n"
            f"Last returned error: {last_error}"
        )
        self.elapsed_ms = elapsed_ms
        self.last_error = last_error
