"""Pytest configuration and fixtures for netshape tests."""

import subprocess

import pytest

from netshape.backend import ShapingBackend


class RecordingBackend(ShapingBackend):
    """In-memory backend keeping one shaping entry per interface."""

    def __init__(self):
        self.state = {}
        self.calls = []

    def apply_shaping(self, interface, profile, derived):
        self.calls.append(("apply", interface))
        self.state[interface] = (profile, derived)

    def reset_shaping(self, interface):
        self.calls.append(("reset", interface))
        self.state.pop(interface, None)

    def query_shaping(self):
        self.calls.append(("query", None))
        return "\n".join(
            f"{name}: {profile.rate_kbps}kbit" for name, (profile, _) in sorted(self.state.items())
        )


@pytest.fixture
def recording_backend():
    """Backend that records calls instead of running tc."""
    return RecordingBackend()


@pytest.fixture
def sysfs_net(tmp_path):
    """Fake /sys/class/net containing eth0 and wlan0."""
    net = tmp_path / "net"
    for name in ("eth0", "wlan0"):
        (net / name).mkdir(parents=True)
    return str(net)


@pytest.fixture
def completed():
    """Factory for subprocess.CompletedProcess results."""

    def _make(returncode=0, stdout="", stderr=""):
        return subprocess.CompletedProcess(
            args=[], returncode=returncode, stdout=stdout, stderr=stderr
        )

    return _make


@pytest.fixture
def sample_config_yaml(tmp_path):
    """Create a temporary config YAML file with user presets."""
    content = """
default_interface: "enp0s3"
use_sudo: true

presets:
  office:
    description: "Office uplink"
    aliases: [office-lan, hq]
    rate_kbps: 20000
    delay_ms: 5
    loss_pct: 0.1

  ham-radio:
    rate_kbps: 1.2
    delay_ms: 900
"""
    config_file = tmp_path / "netshape.yaml"
    config_file.write_text(content)
    return str(config_file)
