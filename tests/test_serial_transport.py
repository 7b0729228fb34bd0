"""Tests for the serial ELM327 transport."""

import pytest
import serial

from obd_monitor.connection.base import TransportState
from obd_monitor.connection.errors import (
    CloseError,
    ConnectError,
    ExchangeError,
    ExchangeTimeoutError,
)
from obd_monitor.connection.serial_transport import SerialTransport

from .conftest import FakeSerialPort, INIT_REPLIES


def make_transport(port_factory, timeout: float = 0.2) -> SerialTransport:
    return SerialTransport("COM1", 115200, timeout=timeout, port_factory=port_factory)


class TestConnect:
    def test_init_sequence_yields_connected(self, fake_port, port_factory, no_init_delay):
        transport = make_transport(port_factory)

        transport.connect()

        assert transport.state == TransportState.CONNECTED
        assert transport.is_connected
        assert transport.init_responses == ["OK", "OK", "OK", "OK"]
        assert fake_port.written == [b"ATZ\r", b"ATE0\r", b"ATL0\r", b"ATSP0\r"]

    def test_each_init_command_followed_by_pause(self, port_factory, no_init_delay):
        transport = make_transport(port_factory)

        transport.connect()

        assert no_init_delay == [0.1, 0.1, 0.1, 0.1]

    def test_opens_configured_port(self, fake_port, port_factory, no_init_delay):
        make_transport(port_factory).connect()

        assert fake_port.open_kwargs["port"] == "COM1"
        assert fake_port.open_kwargs["baudrate"] == 115200

    def test_open_failure_raises_connect_error(self, no_init_delay):
        def failing_factory(**kwargs):
            raise serial.SerialException("failed to open port")

        transport = make_transport(failing_factory)

        with pytest.raises(ConnectError, match="failed to open port"):
            transport.connect()
        assert transport.state == TransportState.DISCONNECTED

    def test_init_failure_stops_sequence_and_releases_port(self, no_init_delay):
        port = FakeSerialPort([INIT_REPLIES[0], b"ATE0\r"])
        transport = make_transport(lambda **kw: port, timeout=0.05)

        with pytest.raises(ConnectError, match="initialization failed"):
            transport.connect()

        assert port.written == [b"ATZ\r", b"ATE0\r"]
        assert not port.is_open
        assert transport.state == TransportState.DISCONNECTED

    def test_connect_when_connected_is_noop(self, fake_port, port_factory, no_init_delay):
        transport = make_transport(port_factory)
        transport.connect()

        transport.connect()

        assert len(fake_port.written) == 4

    def test_connect_after_close_fails(self, port_factory, no_init_delay):
        transport = make_transport(port_factory)
        transport.connect()
        transport.close()

        with pytest.raises(ConnectError):
            transport.connect()


class TestExchange:
    @pytest.fixture
    def transport(self, port_factory, no_init_delay):
        transport = make_transport(port_factory)
        transport.connect()
        return transport

    def test_returns_cleaned_response(self, transport, fake_port):
        fake_port.reply(b"41 0C 1A F8\r>")

        assert transport.exchange("010C") == "41 0C 1A F8"
        assert fake_port.written[-1] == b"010C\r"
        assert fake_port.flush_count >= 5

    def test_strips_echo_and_padding(self, transport, fake_port):
        fake_port.reply(b"010D\r 41 0D 32 \r\r>")

        assert transport.exchange("010D") == "41 0D 32"

    def test_multiline_response_has_no_carriage_returns(self, transport, fake_port):
        fake_port.reply(b"SEARCHING...\r41 05 7B\r\r>")

        response = transport.exchange("0105")

        assert "\r" not in response
        assert response == "SEARCHING...\n41 05 7B"

    def test_missing_terminator_times_out(self, transport, fake_port):
        fake_port.reply(b"41 0C 1A")

        with pytest.raises(ExchangeTimeoutError):
            transport.exchange("010C")

    def test_late_reply_not_returned_for_next_command(self, transport, fake_port):
        fake_port.reply(b"")
        with pytest.raises(ExchangeTimeoutError):
            transport.exchange("010C")

        # The adapter answers 010C only after the exchange gave up
        fake_port.feed(b"41 0C 1A F8\r>")
        fake_port.reply(b"41 0D 32\r>")

        assert transport.exchange("010D") == "41 0D 32"
        assert fake_port.reset_count == 6

    def test_write_failure(self, transport, fake_port):
        fake_port.write_error = serial.SerialException("write failed")

        with pytest.raises(ExchangeError, match="Write failed"):
            transport.exchange("010C")

    def test_read_failure(self, transport, fake_port):
        fake_port.read_error = OSError("device gone")

        with pytest.raises(ExchangeError, match="Read failed"):
            transport.exchange("010C")

    def test_not_connected_fails_without_io(self, fake_port, port_factory):
        transport = make_transport(port_factory)

        with pytest.raises(ExchangeError, match="Not connected"):
            transport.exchange("010C")
        assert fake_port.written == []


class TestClose:
    def test_close_is_idempotent(self, fake_port, port_factory, no_init_delay):
        transport = make_transport(port_factory)
        transport.connect()

        transport.close()
        transport.close()

        assert not fake_port.is_open
        assert transport.state == TransportState.CLOSED

    def test_close_never_opened(self, port_factory):
        transport = make_transport(port_factory)

        transport.close()

        assert transport.state == TransportState.CLOSED

    def test_close_failure_raises_close_error(self, fake_port, port_factory, no_init_delay):
        transport = make_transport(port_factory)
        transport.connect()
        fake_port.close_error = OSError("busy")

        with pytest.raises(CloseError):
            transport.close()
        assert transport.state == TransportState.CLOSED

    def test_context_manager(self, fake_port, port_factory, no_init_delay):
        with make_transport(port_factory) as transport:
            assert transport.is_connected

        assert transport.state == TransportState.CLOSED
        assert not fake_port.is_open
