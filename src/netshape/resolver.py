"""
Policy resolution for netshape.

Turns a preset name and/or explicit values into a validated ShapingProfile,
then derives the parameters a backend needs. Both steps are pure.
"""

import math
from typing import Mapping, Optional

from .exceptions import InvalidSelectionError, InvalidValueError
from .presets import PRESETS, Preset, normalize_name
from .profile import (
    ASSUMED_PACKET_SIZE_BYTES,
    CORRELATION_PCT,
    DEFAULT_DELAY_MS,
    DEFAULT_JITTER_MS,
    DEFAULT_LOSS_PCT,
    DEFAULT_RATE_KBPS,
    HTB_MTU_BYTES,
    MIN_DELAYED_QUEUE_LIMIT,
    QUEUE_LIMIT_NO_DELAY,
    QUEUE_SAFETY_FACTOR,
    DerivedParameters,
    ShapingProfile,
)


def _to_float(field: str, value) -> float:
    if isinstance(value, bool):
        raise InvalidValueError(field, value, "not a number")
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidValueError(field, value, "not a number")
    if not math.isfinite(number):
        raise InvalidValueError(field, value, "must be finite")
    return number


def _to_int(field: str, value) -> int:
    number = _to_float(field, value)
    if not number.is_integer():
        raise InvalidValueError(field, value, "must be a whole number of milliseconds")
    return int(number)


def lookup_preset(name: str, presets: Optional[Mapping[str, Preset]] = None) -> Preset:
    """
    Look up a preset by any of its names.

    Raises:
        InvalidSelectionError: If the name is not in the index.
    """
    index = PRESETS if presets is None else presets
    if not isinstance(name, str):
        raise InvalidSelectionError(repr(name), tuple(index))
    preset = index.get(normalize_name(name))
    if preset is None:
        raise InvalidSelectionError(name, tuple(index))
    return preset


def resolve_profile(
    interface: str,
    preset: Optional[str] = None,
    *,
    rate_kbps=None,
    delay_ms=None,
    jitter_ms=None,
    loss_pct=None,
    presets: Optional[Mapping[str, Preset]] = None,
) -> ShapingProfile:
    """
    Resolve a preset and explicit overrides into a ShapingProfile.

    Values are layered as defaults, then the preset's rate/delay/loss, then
    each explicit override independently. An override left as None keeps
    the value from the previous layer.

    Args:
        interface: Network device the profile is for.
        preset: Preset name, or None for defaults only.
        rate_kbps: Rate limit in kbit/s (number or numeric string).
        delay_ms: Delay in whole milliseconds.
        jitter_ms: Jitter in whole milliseconds.
        loss_pct: Loss percentage (0-100).
        presets: Name index to resolve against. Defaults to the built-in table.

    Returns:
        A validated, immutable ShapingProfile.

    Raises:
        InvalidSelectionError: If the preset name is unknown.
        InvalidValueError: If an override is non-numeric or out of range.

    Example:
        >>> resolve_profile("eth0", "4g", delay_ms=50).rate_kbps
        4500.0
    """
    values = {
        "rate_kbps": DEFAULT_RATE_KBPS,
        "delay_ms": DEFAULT_DELAY_MS,
        "jitter_ms": DEFAULT_JITTER_MS,
        "loss_pct": DEFAULT_LOSS_PCT,
    }

    if preset is not None:
        entry = lookup_preset(preset, presets)
        values["rate_kbps"] = float(entry.rate_kbps)
        values["delay_ms"] = int(entry.delay_ms)
        values["loss_pct"] = float(entry.loss_pct)

    if rate_kbps is not None:
        values["rate_kbps"] = _to_float("rate_kbps", rate_kbps)
    if delay_ms is not None:
        values["delay_ms"] = _to_int("delay_ms", delay_ms)
    if jitter_ms is not None:
        values["jitter_ms"] = _to_int("jitter_ms", jitter_ms)
    if loss_pct is not None:
        values["loss_pct"] = _to_float("loss_pct", loss_pct)

    return ShapingProfile(interface=interface, correlation_pct=CORRELATION_PCT, **values)


def queue_limit_for(rate_kbps: float, delay_ms: int) -> int:
    """
    Compute the netem queue limit needed to hold delayed packets.

    Without delay the backend baseline of 1000 packets is enough. With
    delay, the bandwidth-delay product in packets is scaled by the safety
    factor and floored, because real traffic carries many packets smaller
    than the assumed size.
    """
    if delay_ms == 0:
        return QUEUE_LIMIT_NO_DELAY

    bytes_per_second = rate_kbps * 1000 / 8
    packets_per_second = bytes_per_second / ASSUMED_PACKET_SIZE_BYTES
    delay_seconds = delay_ms / 1000
    limit = round(packets_per_second * delay_seconds * QUEUE_SAFETY_FACTOR)
    return max(limit, MIN_DELAYED_QUEUE_LIMIT)


def derive_parameters(profile: ShapingProfile) -> DerivedParameters:
    """Derive backend parameters from a resolved profile."""
    return DerivedParameters(
        queue_limit_packets=queue_limit_for(profile.rate_kbps, profile.delay_ms),
        htb_mtu_bytes=HTB_MTU_BYTES,
    )
