"""
Named presets approximating real-world network technologies.

Each Preset is one row of the table; every alias in ``names`` resolves to
that same row. Presets carry rate, delay and loss only. Jitter keeps its
default and correlation uses the fixed constant.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from .exceptions import InvalidValueError
from .profile import check_number


@dataclass(frozen=True)
class Preset:
    """
    A named bundle of rate/delay/loss values.

    Attributes:
        names: All names this entry answers to. The first one is canonical.
        rate_kbps: Egress rate limit in kbit/s.
        delay_ms: One-way delay in milliseconds.
        loss_pct: Packet loss percentage (0-100).
        description: Human-readable description.
    """

    names: tuple
    rate_kbps: float
    delay_ms: int
    loss_pct: float
    description: str = ""

    @property
    def name(self) -> str:
        return self.names[0]

    @property
    def aliases(self) -> tuple:
        return self.names[1:]

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "Preset":
        """
        Create a Preset from a configuration dictionary.

        Args:
            name: Canonical preset name.
            data: Dictionary with ``rate_kbps`` and optionally ``delay_ms``,
                ``loss_pct``, ``aliases`` and ``description``.

        Returns:
            Preset instance.

        Raises:
            InvalidValueError: If a value is missing or out of range.

        Example:
            >>> Preset.from_dict("office", {"rate_kbps": 20000, "delay_ms": 5}).delay_ms
            5
        """
        if "rate_kbps" not in data:
            raise InvalidValueError("rate_kbps", None, f"preset {name} has no rate")
        aliases = data.get("aliases") or []
        if isinstance(aliases, str):
            aliases = [aliases]
        if not isinstance(aliases, list) or not all(isinstance(a, str) for a in aliases):
            raise InvalidValueError("aliases", aliases, f"preset {name} aliases must be strings")
        preset = cls(
            names=(name, *aliases),
            rate_kbps=data["rate_kbps"],
            delay_ms=data.get("delay_ms", 0),
            loss_pct=data.get("loss_pct", 0.0),
            description=data.get("description", ""),
        )
        preset.validate()
        return preset

    def validate(self) -> None:
        """Check value types and ranges, raising InvalidValueError."""
        for field in ("rate_kbps", "delay_ms", "loss_pct"):
            check_number(field, getattr(self, field))
        if self.rate_kbps <= 0:
            raise InvalidValueError("rate_kbps", self.rate_kbps, "must be positive")
        if self.delay_ms < 0 or self.delay_ms != int(self.delay_ms):
            raise InvalidValueError("delay_ms", self.delay_ms, "must be a non-negative integer")
        if not 0 <= self.loss_pct <= 100:
            raise InvalidValueError("loss_pct", self.loss_pct, "must be between 0 and 100")


PRESET_TABLE = (
    Preset(("gsm", "2g", "csd"), 9.6, 650, 2.0, "GSM circuit-switched data"),
    Preset(("2.5g", "gprs", "edge"), 200, 500, 1.5, "GPRS / EDGE packet data"),
    Preset(("3g", "umts"), 750, 300, 1.5, "UMTS"),
    Preset(("3.5g", "hspa"), 2000, 150, 1.0, "HSPA"),
    Preset(("4g", "lte"), 4500, 80, 1.0, "LTE"),
    Preset(("modem", "56k", "dialup"), 56, 120, 0.5, "V.90 dial-up modem"),
    Preset(("dsl", "adsl"), 2000, 40, 0.5, "ADSL uplink"),
    Preset(("cable",), 8000, 25, 0.2, "DOCSIS cable uplink"),
    Preset(("wifi",), 20000, 10, 0.5, "Wi-Fi, good signal"),
    Preset(("wifi-busy",), 4000, 60, 3.0, "Congested Wi-Fi"),
    Preset(("vsat", "satellite"), 1000, 600, 0.5, "Geostationary satellite"),
    Preset(("vsat-busy",), 500, 800, 3.0, "Congested geostationary satellite"),
)


def normalize_name(name: str) -> str:
    """Normalize a preset name for lookup."""
    return name.strip().lower()


def build_preset_index(presets: Iterable[Preset]) -> Mapping[str, Preset]:
    """
    Build a read-only name -> Preset index covering every alias.

    Raises:
        InvalidValueError: If two entries claim the same name.
    """
    index: dict[str, Preset] = {}
    for preset in presets:
        for name in preset.names:
            key = normalize_name(name)
            if not key:
                raise InvalidValueError("name", name, "preset names must be non-empty")
            if key in index and index[key] is not preset:
                raise InvalidValueError(
                    "name", name, f"already used by preset {index[key].name}"
                )
            index[key] = preset
    return MappingProxyType(index)


PRESETS = build_preset_index(PRESET_TABLE)


def canonical_presets(index: Mapping[str, Preset]) -> list[Preset]:
    """Return each distinct entry of an index once, in insertion order."""
    seen: list[Preset] = []
    for preset in index.values():
        if not any(preset is p for p in seen):
            seen.append(preset)
    return seen
