"""
Shaping profile data classes for netshape.

Defines the ShapingProfile dataclass holding the resolved shaping intent for
one interface, and DerivedParameters holding the values a backend needs on
top of it.
"""

import math
from dataclasses import dataclass

from .exceptions import InvalidValueError

DEFAULT_RATE_KBPS = 5000.0
DEFAULT_DELAY_MS = 0
DEFAULT_JITTER_MS = 0
DEFAULT_LOSS_PCT = 0.0

# Probability that a packet repeats the delay/loss outcome of the previous one.
CORRELATION_PCT = 25.0

# Sized for real-time media packets, not the interface MTU.
HTB_MTU_BYTES = 1200

ASSUMED_PACKET_SIZE_BYTES = 1500
QUEUE_SAFETY_FACTOR = 1.5
QUEUE_LIMIT_NO_DELAY = 1000
MIN_DELAYED_QUEUE_LIMIT = 10000


def check_number(field: str, value) -> None:
    """Raise InvalidValueError unless value is a finite int or float (not bool)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidValueError(field, value, "not a number")
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    if not finite:
        raise InvalidValueError(field, value, "must be finite")


@dataclass(frozen=True)
class ShapingProfile:
    """
    Fully resolved shaping intent for one interface.

    Attributes:
        interface: Network device the profile applies to.
        rate_kbps: Maximum sustained egress throughput in kbit/s. Fractional
            values are allowed (e.g. 9.6).
        delay_ms: Base one-way latency to inject in milliseconds.
        jitter_ms: Variation applied around delay_ms in milliseconds.
        loss_pct: Per-packet drop probability (0-100).
        correlation_pct: Burst correlation for delay and loss (0-100).
            Must be non-zero whenever any impairment is active.

    Raises:
        InvalidValueError: If any attribute violates its range.
    """

    interface: str
    rate_kbps: float = DEFAULT_RATE_KBPS
    delay_ms: int = DEFAULT_DELAY_MS
    jitter_ms: int = DEFAULT_JITTER_MS
    loss_pct: float = DEFAULT_LOSS_PCT
    correlation_pct: float = CORRELATION_PCT

    def __post_init__(self):
        if not isinstance(self.interface, str) or not self.interface.strip():
            raise InvalidValueError("interface", self.interface, "must be a non-empty string")
        for field in ("rate_kbps", "delay_ms", "jitter_ms", "loss_pct", "correlation_pct"):
            check_number(field, getattr(self, field))
        for field in ("delay_ms", "jitter_ms"):
            value = getattr(self, field)
            if value != int(value):
                raise InvalidValueError(field, value, "must be a whole number of milliseconds")
        if self.rate_kbps <= 0:
            raise InvalidValueError("rate_kbps", self.rate_kbps, "must be positive")
        if self.delay_ms < 0:
            raise InvalidValueError("delay_ms", self.delay_ms, "must be non-negative")
        if self.jitter_ms < 0:
            raise InvalidValueError("jitter_ms", self.jitter_ms, "must be non-negative")
        if not 0 <= self.loss_pct <= 100:
            raise InvalidValueError("loss_pct", self.loss_pct, "must be between 0 and 100")
        if not 0 <= self.correlation_pct <= 100:
            raise InvalidValueError(
                "correlation_pct", self.correlation_pct, "must be between 0 and 100"
            )
        if self.is_impaired and self.correlation_pct == 0:
            raise InvalidValueError(
                "correlation_pct",
                self.correlation_pct,
                "must be non-zero when delay, jitter or loss is active",
            )

    @property
    def is_impaired(self) -> bool:
        """True if the profile injects delay, jitter or loss."""
        return self.delay_ms > 0 or self.jitter_ms > 0 or self.loss_pct > 0

    def to_dict(self) -> dict:
        return {
            "interface": self.interface,
            "rate_kbps": self.rate_kbps,
            "delay_ms": self.delay_ms,
            "jitter_ms": self.jitter_ms,
            "loss_pct": self.loss_pct,
            "correlation_pct": self.correlation_pct,
        }


@dataclass(frozen=True)
class DerivedParameters:
    """
    Backend-facing values computed from a ShapingProfile.

    Attributes:
        queue_limit_packets: Packets the impairment stage may hold while
            delaying them before it starts dropping.
        htb_mtu_bytes: Transmission unit used for rate-class bucketing.
    """

    queue_limit_packets: int
    htb_mtu_bytes: int = HTB_MTU_BYTES
