"""Volume registry, state persistence and ZFS translation."""
from zfsvol.core.driver import Volume, VolumeDriver, ZFSVolumeDriver
from zfsvol.core.errors import (
    StartupError,
    StateError,
    VolumeError,
    VolumeExistsError,
    VolumeNotFoundError,
    VolumeValidationError,
    ZFSError,
)

__all__ = [
    'Volume',
    'VolumeDriver',
    'ZFSVolumeDriver',
    'StartupError',
    'StateError',
    'VolumeError',
    'VolumeExistsError',
    'VolumeNotFoundError',
    'VolumeValidationError',
    'ZFSError',
]
