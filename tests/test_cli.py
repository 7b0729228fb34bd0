"""Tests for the command-line interface."""

from types import SimpleNamespace
from unittest.mock import patch

from typer.testing import CliRunner

from obd_monitor import __version__, cli
from obd_monitor.connection import adapter as adapter_module
from obd_monitor.connection.serial_transport import SerialTransport

runner = CliRunner()


class TestCli:
    def test_version(self):
        result = runner.invoke(cli.app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_bluetooth_without_address_is_rejected(self):
        result = runner.invoke(cli.app, ["send", "010C", "--bluetooth"])

        assert result.exit_code == 1
        assert "address" in result.output

    def test_non_positive_interval_is_rejected(self):
        result = runner.invoke(cli.app, ["monitor", "--interval", "0"])

        assert result.exit_code == 1

    def test_unknown_preset(self):
        result = runner.invoke(cli.app, ["monitor", "--preset", "turbo"])

        assert result.exit_code == 1
        assert "Unknown preset" in result.output

    def test_send_prints_response(self, monkeypatch, fake_port, port_factory, no_init_delay):
        fake_port.reply(b"41 0C 1A F8\r\r>")
        created = []

        def fake_create(config):
            transport = SerialTransport(config.port, config.baudrate, timeout=0.2, port_factory=port_factory)
            created.append(transport)
            return transport

        monkeypatch.setattr(cli, "create_transport", fake_create)

        result = runner.invoke(cli.app, ["send", "rpm", "--port", "/dev/ttyUSB1"])

        assert result.exit_code == 0, result.output
        assert "41 0C 1A F8" in result.output
        assert fake_port.written[-1] == b"010C\r"
        assert fake_port.open_kwargs["port"] == "/dev/ttyUSB1"
        assert not fake_port.is_open
        assert created[0].state.value == "closed"

    def test_send_connect_failure(self, monkeypatch, no_init_delay):
        def failing_factory(**kwargs):
            raise OSError("No such file or directory")

        monkeypatch.setattr(
            cli,
            "create_transport",
            lambda config: SerialTransport(config.port, port_factory=failing_factory),
        )

        result = runner.invoke(cli.app, ["send", "010C"])

        assert result.exit_code == 1
        assert "Connection failed" in result.output

    def test_send_exchange_timeout(self, monkeypatch, fake_port, port_factory, no_init_delay):
        monkeypatch.setattr(
            cli,
            "create_transport",
            lambda config: SerialTransport(config.port, timeout=0.05, port_factory=port_factory),
        )

        result = runner.invoke(cli.app, ["send", "010C"])

        assert result.exit_code == 1
        assert not fake_port.is_open

    def test_list_serial_ports(self):
        ports = [SimpleNamespace(device="/dev/ttyUSB0", description="USB Serial", hwid="", manufacturer="FTDI")]

        with patch.object(adapter_module.serial.tools.list_ports, "comports", return_value=ports):
            result = runner.invoke(cli.app, ["list"])

        assert result.exit_code == 0
        assert "/dev/ttyUSB0" in result.output
