import time

import pytest

from temperature_chamber.drivers.chamber.constants import READ_TEMPERATURE_FRAME_BYTES


class FakeTransport:
    """ Stands in for a SerialTransport. Each read() returns the next scripted chunk, then nothing.

    A scripted exception is raised from read() instead of being returned.
    """

    def __init__(self, reads=()):
        self.is_open = True
        self.reads = list(reads)
        self.written = []
        self.read_count = 0
        self.discard_count = 0

    def open(self):
        self.is_open = True

    def close(self):
        self.is_open = False

    def discard_input_buffer(self):
        self.discard_count += 1

    def write(self, command):
        self.written.append(bytes(command))

    def read(self):
        self.read_count += 1
        chunk = self.reads.pop(0) if self.reads else b""
        if isinstance(chunk, Exception):
            raise chunk
        return chunk


class RespondingTransport(FakeTransport):
    """ Answers each command the way the chamber does: writes are echoed, temperature reads get a 7 byte reply.

    Counts exchanges that start while another one is still waiting for its reply.
    """

    def __init__(self, temperature=20, write_delay=0):
        super().__init__()
        self.temperature = temperature
        self.write_delay = write_delay
        self.overlapping_exchanges = 0
        self._exchanges_in_flight = 0
        self._pending_reply = b""

    def discard_input_buffer(self):
        super().discard_input_buffer()
        if self._exchanges_in_flight:
            self.overlapping_exchanges += 1
        self._exchanges_in_flight += 1
        self._pending_reply = b""

    def write(self, command):
        super().write(command)
        time.sleep(self.write_delay)
        if bytes(command) == READ_TEMPERATURE_FRAME_BYTES:
            self._pending_reply = bytes([0x01, 0x03, 0x02, 0x00, self.temperature & 0xFF, 0x00, 0x00])
        else:
            self._pending_reply = bytes(command)

    def read(self):
        self.read_count += 1
        reply, self._pending_reply = self._pending_reply, b""
        if reply:
            self._exchanges_in_flight -= 1
        return reply


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def responding_transport():
    return RespondingTransport(temperature=20, write_delay=0.0005)
