"""
Custom exceptions for the netshape package.
"""


class NetShapeError(Exception):
    """Base exception for all netshape errors."""

    pass


class InvalidSelectionError(NetShapeError):
    """
    Raised when a requested preset name is not in the preset table.

    Run ``netshape --list-presets`` to see the names that are accepted.
    """

    def __init__(self, name: str, available: tuple = ()):
        self.name = name
        self.available = tuple(available)
        message = f"Unknown preset: {name}"
        if self.available:
            message += f" (choices: {', '.join(self.available)})"
        super().__init__(message)


class InvalidValueError(NetShapeError):
    """
    Raised when a shaping value is malformed or out of range.
    """

    def __init__(self, field: str, value, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}: {value!r} ({reason})")


class BackendError(NetShapeError):
    """Base exception for failures reported by a shaping backend."""

    pass


class BackendUnavailableError(BackendError):
    """
    Raised when the traffic-control facility is not present.

    Install iproute2 and make sure the sch_htb and sch_netem kernel
    modules are available.
    """

    def __init__(self, message: str = "Traffic control facility is not available"):
        super().__init__(message)


class PermissionDeniedError(BackendError):
    """
    Raised when the process lacks the privilege to change queueing disciplines.

    Run as root, grant CAP_NET_ADMIN, or configure passwordless sudo for tc
    and pass ``--sudo``.
    """

    def __init__(self, message: str = "Insufficient privileges for traffic control"):
        super().__init__(message)


class InterfaceNotFoundError(BackendError):
    """Raised when the named network device does not exist."""

    def __init__(self, interface: str):
        self.interface = interface
        super().__init__(f"Network interface not found: {interface}")


class CommandFailedError(BackendError):
    """
    Raised when a tc command fails for any other reason.
    """

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed (exit {returncode}): {command}"
        if stderr:
            message += f"\nStderr: {stderr}"
        super().__init__(message)


class ConfigLoadError(NetShapeError):
    """
    Raised when the configuration file cannot be loaded.

    Check that the file exists, is valid YAML, and has the expected structure.
    """

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Failed to load configuration from: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
