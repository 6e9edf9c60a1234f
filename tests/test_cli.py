"""Tests for the netshape command-line interface."""

import pytest

from netshape import cli
from netshape.exceptions import PermissionDeniedError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, mocker):
    """Isolate CLI runs from the caller's environment and .env files."""
    for name in ("NETSHAPE_CONFIG", "NETSHAPE_INTERFACE", "NETSHAPE_USE_SUDO"):
        monkeypatch.delenv(name, raising=False)
    mocker.patch("netshape.cli.load_dotenv")


class TestSplitTokens:
    """Tests for positional token handling."""

    def test_empty(self):
        assert cli.split_tokens([]) == ("apply", None)

    def test_preset_only(self):
        assert cli.split_tokens(["4g"]) == ("apply", "4g")

    def test_command_and_preset(self):
        assert cli.split_tokens(["apply", "dsl"]) == ("apply", "dsl")

    def test_last_preset_wins(self):
        assert cli.split_tokens(["3g", "vsat-busy"]) == ("apply", "vsat-busy")

    def test_command_only(self):
        assert cli.split_tokens(["status"]) == ("status", None)


class TestMain:
    """Tests for cli.main."""

    def test_list_presets(self, capsys):
        """Test listing presets with their aliases."""
        assert cli.main(["--list-presets"]) == 0

        out = capsys.readouterr().out
        assert "2.5g, gprs, edge" in out
        assert "vsat-busy" in out

    def test_apply_dry_run(self, capsys):
        """Test that a preset with an override prints the tc commands."""
        assert cli.main(["4g", "-i", "eth1", "-d", "50", "--dry-run"]) == 0

        out = capsys.readouterr().out
        assert "tc qdisc replace dev eth1 root handle 1: htb default 1" in out
        assert "htb rate 4500kbit ceil 4500kbit mtu 1200" in out
        assert "netem limit 10000 delay 50ms 25% loss 1% 25%" in out

    def test_apply_defaults(self, capsys):
        """Test applying with no preset and no values."""
        assert cli.main(["apply", "--dry-run"]) == 0

        out = capsys.readouterr().out
        assert "dev eth0" in out
        assert "htb rate 5000kbit" in out
        assert "netem limit 1000" in out

    def test_explicit_values(self, capsys):
        """Test every shaping flag."""
        argv = ["-i", "eth0", "-r", "9.6", "-d", "200", "-j", "20", "-l", "0.5", "--dry-run"]

        assert cli.main(argv) == 0

        out = capsys.readouterr().out
        assert "htb rate 9.6kbit ceil 9.6kbit" in out
        assert "delay 200ms 20ms 25% loss 0.5% 25%" in out

    def test_last_preset_wins(self, capsys):
        """Test that the last preset token is applied."""
        assert cli.main(["3g", "4g", "--dry-run"]) == 0

        assert "rate 4500kbit" in capsys.readouterr().out

    def test_reset_dry_run(self, capsys):
        """Test the reset command."""
        assert cli.main(["reset", "-i", "wlan0", "--dry-run"]) == 0

        assert "tc qdisc del dev wlan0 root" in capsys.readouterr().out

    def test_status_needs_no_interface(self, capsys):
        """Test the status command."""
        assert cli.main(["status", "--dry-run"]) == 0

        assert "tc -s qdisc show" in capsys.readouterr().out

    def test_unknown_preset(self, capsys):
        """Test exit status and message for an unknown preset."""
        assert cli.main(["5g", "--dry-run"]) == 2

        assert "Unknown preset: 5g" in capsys.readouterr().err

    @pytest.mark.parametrize(
        "argv",
        [["-l", "150"], ["-d", "-1"], ["-r", "0"], ["-r", "fast"], ["-j", "1.5"]],
    )
    def test_invalid_values(self, capsys, argv):
        """Test exit status for malformed or out-of-range values."""
        assert cli.main([*argv, "--dry-run"]) == 2

        assert "netshape: error: Invalid" in capsys.readouterr().err

    def test_reset_rejects_presets(self):
        """Test that reset does not accept shaping arguments."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["reset", "4g"])

        assert exc_info.value.code == 2

    def test_config_file(self, capsys, sample_config_yaml):
        """Test that the config file supplies interface, sudo and presets."""
        assert cli.main(["office", "--config", sample_config_yaml, "--dry-run"]) == 0

        out = capsys.readouterr().out
        assert "sudo -n tc qdisc replace dev enp0s3 root" in out
        assert "htb rate 20000kbit" in out

    def test_environment_interface(self, capsys, monkeypatch):
        """Test that NETSHAPE_INTERFACE sets the default interface."""
        monkeypatch.setenv("NETSHAPE_INTERFACE", "veth7")

        assert cli.main(["--dry-run"]) == 0

        assert "dev veth7" in capsys.readouterr().out

    def test_bad_config(self, capsys):
        """Test exit status for an unreadable config file."""
        assert cli.main(["--config", "/nonexistent.yaml", "--dry-run"]) == 2

        assert "file not found" in capsys.readouterr().err

    def test_backend_failure(self, capsys, mocker):
        """Test exit status when the backend refuses the change."""
        mocker.patch("netshape.cli.TcBackend.check_privileges", return_value=True)
        mocker.patch(
            "netshape.cli.TcBackend.apply_shaping", side_effect=PermissionDeniedError()
        )

        assert cli.main(["4g", "-i", "eth0"]) == 1

        assert "Insufficient privileges" in capsys.readouterr().err

    def test_unprivileged_warning(self, mocker, caplog):
        """Test that a missing privilege is warned about before applying."""
        mocker.patch("netshape.cli.TcBackend.check_privileges", return_value=False)
        mocker.patch("netshape.cli.TcBackend.apply_shaping")

        assert cli.main(["4g", "-i", "eth0"]) == 0

        assert "Not running as root" in caplog.text
