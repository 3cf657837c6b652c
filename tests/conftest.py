"""Shared test fixtures for docker-zfs-plugin tests."""
import pytest

from zfsvol.core.driver import ZFSVolumeDriver
from zfsvol.core.zfs_manager import ZFSManager

ROOT_DATASET = 'pool/docker'


@pytest.fixture
def zfs():
    """ZFSManager in mock mode with the root dataset present."""
    return ZFSManager(mock=True, datasets=[ROOT_DATASET])


@pytest.fixture
def volume_base(tmp_path):
    """Base directory for mountpoints and the state file."""
    return tmp_path / 'docker'


@pytest.fixture
def driver(zfs, volume_base):
    """Driver on the mock pool using the direct mountpoint strategy."""
    return ZFSVolumeDriver(ROOT_DATASET, str(volume_base), zfs=zfs)
