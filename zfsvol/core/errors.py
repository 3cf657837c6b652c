"""Error types raised by the volume driver and its collaborators."""
from typing import List, Optional


class VolumeError(Exception):
    """Base class for errors reported back to the container runtime."""
    pass


class VolumeValidationError(VolumeError):
    """Raised when a request carries a forbidden or malformed option."""
    pass


class VolumeExistsError(VolumeError):
    """Raised when the target dataset already exists in the pool."""

    def __init__(self, message: str = "volume already exists"):
        super().__init__(message)


class VolumeNotFoundError(VolumeError):
    """Raised when a volume name is not in the registry."""

    def __init__(self, name: str):
        self.name = name
        super().__init__("volume not found")


class ZFSError(VolumeError):
    """Raised when a zfs command fails.

    Attributes:
        cmd: The command line that failed (if any)
        stderr: Output captured from zfs
    """

    def __init__(self, message: str, cmd: Optional[List[str]] = None, stderr: str = ""):
        self.cmd = cmd
        self.stderr = stderr.strip() if stderr else ""
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)


class StartupError(Exception):
    """Raised when the plugin cannot start serving."""
    pass


class StateError(StartupError):
    """Raised when the state file exists but cannot be read back."""
    pass


class ConfigError(StartupError):
    """Raised for an invalid configuration file or missing settings."""
    pass
