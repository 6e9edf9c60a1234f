"""
High-level traffic shaper.

Provides the Shaper class that runs the apply/reset/status commands: resolve
a profile, derive backend parameters, then hand both to a ShapingBackend.
"""

import logging
from typing import Mapping, Optional

from .backend import ShapingBackend, TcBackend
from .exceptions import InterfaceNotFoundError, InvalidValueError
from .presets import PRESETS, Preset, canonical_presets
from .profile import DerivedParameters, ShapingProfile
from .resolver import derive_parameters, resolve_profile

logger = logging.getLogger(__name__)


class Shaper:
    """
    Egress traffic shaper for one or more interfaces.

    Resolution and derivation finish before the backend is called, so a
    rejected preset or value never leaves an interface half-configured.

    Example:
        >>> shaper = Shaper(default_interface="eth0")
        >>> profile, derived = shaper.apply(preset="3g", jitter_ms=20)
        >>> shaper.reset()

    Context manager usage:
        >>> with Shaper() as shaper:
        ...     shaper.apply("eth0", "vsat-busy")
        ...     # Interfaces shaped here are reset on exit
    """

    def __init__(
        self,
        backend: Optional[ShapingBackend] = None,
        presets: Optional[Mapping[str, Preset]] = None,
        default_interface: str = "eth0",
    ):
        """
        Initialize the shaper.

        Args:
            backend: Backend that performs the system changes. Defaults to
                a TcBackend.
            presets: Preset name index. Defaults to the built-in table.
            default_interface: Interface used when a call names none.
        """
        self.backend = backend if backend is not None else TcBackend()
        self.presets = presets if presets is not None else PRESETS
        self.default_interface = default_interface
        self.active: dict[str, ShapingProfile] = {}

    def __enter__(self) -> "Shaper":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """
        Exit context manager, resetting every interface shaped by this instance.

        Every interface is attempted even if one fails. A reset failure is
        raised only when the block itself exited cleanly.
        """
        failure: Optional[Exception] = None
        for interface in list(self.active):
            error = self._try_reset(interface)
            if failure is None:
                failure = error

        if failure is not None and exc_type is None:
            raise failure

    def _try_reset(self, interface: str) -> Optional[Exception]:
        """Reset an interface, logging and returning any error instead of raising."""
        try:
            self.reset(interface)
        except Exception as e:
            logger.error(f"Failed to reset shaping on {interface}: {e}")
            return e
        return None

    def _interface(self, interface: Optional[str]) -> str:
        name = interface or self.default_interface
        if not name:
            raise InvalidValueError("interface", name, "no interface given and no default set")
        return name

    def resolve(
        self, interface: Optional[str] = None, preset: Optional[str] = None, **overrides
    ) -> tuple[ShapingProfile, DerivedParameters]:
        """
        Resolve and derive without touching the backend.

        Args:
            interface: Target interface, or None for the default.
            preset: Preset name, or None.
            **overrides: rate_kbps, delay_ms, jitter_ms, loss_pct.

        Returns:
            Tuple of (ShapingProfile, DerivedParameters).
        """
        profile = resolve_profile(
            self._interface(interface), preset, presets=self.presets, **overrides
        )
        return profile, derive_parameters(profile)

    def apply(
        self, interface: Optional[str] = None, preset: Optional[str] = None, **overrides
    ) -> tuple[ShapingProfile, DerivedParameters]:
        """
        Apply a preset and/or explicit values to an interface.

        Raises:
            InvalidSelectionError: Unknown preset name.
            InvalidValueError: Malformed or out-of-range value.
            BackendError: The backend could not apply the shaping.
        """
        profile, derived = self.resolve(interface, preset, **overrides)
        label = preset or "custom"
        logger.debug(f"Resolved {label} -> {profile} {derived}")

        try:
            self.backend.apply_shaping(profile.interface, profile, derived)
        except InterfaceNotFoundError:
            raise
        except Exception as e:
            # earlier tc commands may have succeeded; drop the partial setup
            logger.error(f"Failed to apply {label} shaping to {profile.interface}: {e}")
            self._try_reset(profile.interface)
            raise
        self.active[profile.interface] = profile
        logger.info(f"Applied {label} shaping to {profile.interface}")
        return profile, derived

    def reset(self, interface: Optional[str] = None) -> None:
        """Remove all shaping from an interface."""
        name = self._interface(interface)
        self.backend.reset_shaping(name)
        self.active.pop(name, None)

    def status(self) -> str:
        """Return the backend's description of all active shaping state."""
        return self.backend.query_shaping()

    def list_presets(self) -> list[Preset]:
        """List each preset entry once, aliases included on the entry."""
        return canonical_presets(self.presets)
