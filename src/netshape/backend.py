"""
Shaping backends for netshape.

A ShapingBackend applies, clears and reports egress shaping state. TcBackend
implements it on Linux with an HTB rate-limiting class feeding a netem leaf
qdisc, driven through the ``tc`` command.
"""

import abc
import logging
import os
import re
import shlex
import subprocess
from pathlib import Path
from typing import Optional

from .exceptions import (
    BackendUnavailableError,
    CommandFailedError,
    InterfaceNotFoundError,
    NetShapeError,
    PermissionDeniedError,
)
from .profile import DerivedParameters, ShapingProfile

logger = logging.getLogger(__name__)

# stderr fragments from tc/sudo, mapped to error types
_PERMISSION_MARKERS = ("Operation not permitted", "a password is required", "Permission denied")
_NO_DEVICE_MARKERS = ("Cannot find device",)
_UNAVAILABLE_MARKERS = ("Unknown qdisc", "Specified qdisc kind is unknown", "Unknown class")
# "nothing to delete" answers from `tc qdisc del`
_NO_QDISC_MARKERS = (
    "No such file or directory",
    "Cannot delete qdisc with handle of zero",
    "Cannot find specified qdisc on specified device",
)

_HTB_ROOT_RE = re.compile(r"^qdisc htb 1: dev (\S+) root")


def format_number(value: float) -> str:
    """Format a number for a tc argument: ``4500`` or ``9.6``."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


class ShapingBackend(abc.ABC):
    """
    Capability interface for egress shaping.

    Implementations must make apply_shaping idempotent per interface and
    reset_shaping a no-op when no shaping state exists.
    """

    @abc.abstractmethod
    def apply_shaping(
        self, interface: str, profile: ShapingProfile, derived: DerivedParameters
    ) -> None:
        """Create or update rate limiting and impairment on an interface."""

    @abc.abstractmethod
    def reset_shaping(self, interface: str) -> None:
        """Remove all shaping state from an interface."""

    @abc.abstractmethod
    def query_shaping(self) -> str:
        """Describe all active shaping state in backend-native form."""


class TcBackend(ShapingBackend):
    """
    Egress shaping through Linux tc (HTB + netem).

    Every mutation uses ``tc ... replace`` so applying a second profile to
    the same interface updates the existing qdiscs and class.

    Example:
        >>> backend = TcBackend(use_sudo=True)
        >>> backend.apply_shaping("eth0", profile, derive_parameters(profile))
        >>> backend.reset_shaping("eth0")
    """

    def __init__(
        self,
        use_sudo: bool = False,
        dry_run: bool = False,
        timeout: float = 10,
        tc_binary: str = "tc",
        sysfs_net: str = "/sys/class/net",
    ):
        """
        Initialize the backend.

        Args:
            use_sudo: Prefix every command with ``sudo -n``.
            dry_run: Log and record commands without executing them.
            timeout: Seconds to wait for each command.
            tc_binary: Name or path of the tc executable.
            sysfs_net: Directory listing network devices, used to check
                that an interface exists.
        """
        self.use_sudo = use_sudo
        self.dry_run = dry_run
        self.timeout = timeout
        self.tc_binary = tc_binary
        self.sysfs_net = Path(sysfs_net)
        self.history: list[str] = []
        self._privileged: Optional[bool] = None

    def check_privileges(self) -> bool:
        """
        Check whether tc mutations are likely to be permitted.

        Returns:
            True if running as root, or if use_sudo is set and passwordless
            sudo is available.
        """
        if self._privileged is not None:
            return self._privileged

        if os.geteuid() == 0:
            self._privileged = True
        elif self.use_sudo:
            try:
                result = subprocess.run(
                    ["sudo", "-n", "true"], capture_output=True, timeout=5
                )
                self._privileged = result.returncode == 0
            except (OSError, subprocess.TimeoutExpired):
                self._privileged = False
        else:
            self._privileged = False

        return self._privileged

    def build_apply_commands(
        self, interface: str, profile: ShapingProfile, derived: DerivedParameters
    ) -> list[str]:
        """Build the tc command lines that apply a profile to an interface."""
        tc = self.tc_binary
        rate = f"{format_number(profile.rate_kbps)}kbit"
        return [
            f"{tc} qdisc replace dev {interface} root handle 1: htb default 1",
            (
                f"{tc} class replace dev {interface} parent 1: classid 1:1 "
                f"htb rate {rate} ceil {rate} mtu {derived.htb_mtu_bytes}"
            ),
            (
                f"{tc} qdisc replace dev {interface} parent 1:1 handle 10: "
                f"netem {' '.join(self.build_netem_params(profile, derived))}"
            ),
        ]

    def build_netem_params(
        self, profile: ShapingProfile, derived: DerivedParameters
    ) -> list[str]:
        """Build the netem parameter list for a profile."""
        params = [f"limit {derived.queue_limit_packets}"]
        correlation = f"{format_number(profile.correlation_pct)}%"

        if profile.delay_ms > 0 or profile.jitter_ms > 0:
            delay_parts = [f"delay {profile.delay_ms}ms"]
            if profile.jitter_ms > 0:
                delay_parts.append(f"{profile.jitter_ms}ms")
            delay_parts.append(correlation)
            params.append(" ".join(delay_parts))

        if profile.loss_pct > 0:
            params.append(f"loss {format_number(profile.loss_pct)}% {correlation}")

        return params

    def apply_shaping(
        self, interface: str, profile: ShapingProfile, derived: DerivedParameters
    ) -> None:
        self._check_interface(interface)
        for cmd in self.build_apply_commands(interface, profile, derived):
            self._run(cmd, interface=interface)
        logger.info(
            f"Shaping {interface}: rate={format_number(profile.rate_kbps)}kbit "
            f"delay={profile.delay_ms}ms jitter={profile.jitter_ms}ms "
            f"loss={format_number(profile.loss_pct)}% limit={derived.queue_limit_packets}"
        )

    def reset_shaping(self, interface: str) -> None:
        self._check_interface(interface)
        cmd = f"{self.tc_binary} qdisc del dev {interface} root"
        self._run(cmd, interface=interface, tolerate=_NO_QDISC_MARKERS)
        logger.info(f"Cleared shaping on {interface}")

    def query_shaping(self) -> str:
        """
        Return ``tc -s qdisc show`` for all devices, followed by the HTB
        classes of every device that carries an HTB root.
        """
        qdiscs = self._run(f"{self.tc_binary} -s qdisc show")
        sections = [qdiscs.rstrip("\n")] if qdiscs else []

        for interface in self.shaped_interfaces(qdiscs):
            classes = self._run(f"{self.tc_binary} class show dev {interface}")
            sections.append(f"# {interface} classes:\n{classes.rstrip()}")

        return "\n".join(sections)

    @staticmethod
    def shaped_interfaces(qdisc_output: str) -> list[str]:
        """Return devices whose root qdisc is the HTB handle 1: we install."""
        found = []
        for line in qdisc_output.splitlines():
            match = _HTB_ROOT_RE.match(line.strip())
            if match and match.group(1) not in found:
                found.append(match.group(1))
        return found

    def _check_interface(self, interface: str) -> None:
        if self.dry_run:
            return
        if not (self.sysfs_net / interface).exists():
            raise InterfaceNotFoundError(interface)

    def _run(
        self, cmd: str, interface: Optional[str] = None, tolerate: tuple = ()
    ) -> str:
        """Execute a tc command and return its stdout."""
        argv = shlex.split(cmd)
        if self.use_sudo:
            argv = ["sudo", "-n", *argv]

        self.history.append(shlex.join(argv))
        logger.debug(f"Running: {shlex.join(argv)}")

        if self.dry_run:
            return ""

        try:
            result = subprocess.run(
                argv, capture_output=True, text=True, timeout=self.timeout
            )
        except FileNotFoundError:
            raise BackendUnavailableError(f"Executable not found: {argv[0]}")
        except PermissionError:
            raise PermissionDeniedError(f"Not allowed to execute: {argv[0]}")
        except subprocess.TimeoutExpired:
            logger.error(f"tc command timed out: {cmd}")
            raise CommandFailedError(cmd, -1, f"timed out after {self.timeout}s")

        if result.returncode != 0:
            stderr = result.stderr.strip()
            if any(marker in stderr for marker in tolerate):
                logger.debug(f"Ignoring: {stderr}")
                return result.stdout
            logger.error(f"tc command failed: {stderr}")
            raise self._classify_failure(cmd, result.returncode, stderr, interface)

        return result.stdout

    @staticmethod
    def _classify_failure(
        cmd: str, returncode: int, stderr: str, interface: Optional[str]
    ) -> NetShapeError:
        if any(marker in stderr for marker in _PERMISSION_MARKERS):
            return PermissionDeniedError(stderr)
        if interface and any(marker in stderr for marker in _NO_DEVICE_MARKERS):
            return InterfaceNotFoundError(interface)
        if any(marker in stderr for marker in _UNAVAILABLE_MARKERS):
            return BackendUnavailableError(stderr)
        return CommandFailedError(cmd, returncode, stderr)
