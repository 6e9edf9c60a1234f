"""
netshape - egress traffic-shaping policy engine for Linux tc.

Resolves a named preset or explicit rate/delay/jitter/loss values into a
validated shaping profile, derives the queue limit and HTB parameters, and
applies them with HTB + netem. Useful for testing networked applications
under degraded conditions.

Example:
    >>> from netshape import Shaper
    >>> shaper = Shaper(default_interface="eth0")
    >>> profile, derived = shaper.apply(preset="4g", delay_ms=50)
    >>> profile.rate_kbps, profile.delay_ms, profile.loss_pct
    (4500.0, 50, 1.0)
    >>> shaper.reset()

Pure resolution, no system changes:
    >>> from netshape import resolve_profile, derive_parameters
    >>> derive_parameters(resolve_profile("eth0", rate_kbps=700, delay_ms=300))
    DerivedParameters(queue_limit_packets=10000, htb_mtu_bytes=1200)
"""

from .backend import ShapingBackend, TcBackend
from .config import ShaperConfig, load_config, resolve_config
from .exceptions import (
    BackendError,
    BackendUnavailableError,
    CommandFailedError,
    ConfigLoadError,
    InterfaceNotFoundError,
    InvalidSelectionError,
    InvalidValueError,
    NetShapeError,
    PermissionDeniedError,
)
from .presets import PRESET_TABLE, PRESETS, Preset
from .profile import DerivedParameters, ShapingProfile
from .resolver import derive_parameters, resolve_profile
from .shaper import Shaper

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "Shaper",
    "ShapingProfile",
    "DerivedParameters",
    "Preset",
    "PRESET_TABLE",
    "PRESETS",
    # Resolution
    "resolve_profile",
    "derive_parameters",
    # Backends
    "ShapingBackend",
    "TcBackend",
    # Configuration
    "ShaperConfig",
    "load_config",
    "resolve_config",
    # Exceptions
    "NetShapeError",
    "InvalidSelectionError",
    "InvalidValueError",
    "BackendError",
    "BackendUnavailableError",
    "PermissionDeniedError",
    "InterfaceNotFoundError",
    "CommandFailedError",
    "ConfigLoadError",
    # Version
    "__version__",
]
