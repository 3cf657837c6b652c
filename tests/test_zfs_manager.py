"""Tests for ZFSManager command construction and parsing."""
import subprocess
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from zfsvol.core.errors import ZFSError
from zfsvol.core.zfs_manager import ZFSManager


def completed(stdout=''):
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout, stderr='')


def failed(cmd, stderr):
    return subprocess.CalledProcessError(1, cmd, output='', stderr=stderr)


@pytest.fixture
def zfs(monkeypatch):
    monkeypatch.delenv('ZFSVOL_MOCK', raising=False)
    return ZFSManager()


class TestCommands:
    """Commands sent to the zfs CLI."""

    def test_create_recursive(self, zfs):
        with patch('subprocess.run', return_value=completed()) as mock_run:
            dataset = zfs.create_dataset_recursive(
                'pool/docker/volumes/data',
                {'mountpoint': '/docker/volumes/data', 'com.sun:auto-snapshot': 'true'},
            )

        cmd = mock_run.call_args[0][0]
        assert cmd[:3] == ['zfs', 'create', '-p']
        assert '-o' in cmd
        assert 'mountpoint=/docker/volumes/data' in cmd
        assert 'com.sun:auto-snapshot=true' in cmd
        assert cmd[-1] == 'pool/docker/volumes/data'
        assert dataset.name == 'pool/docker/volumes/data'

    def test_create_failure_raises(self, zfs):
        error = failed(['zfs', 'create'], "cannot create 'pool/x': permission denied")
        with patch('subprocess.run', side_effect=error):
            with pytest.raises(ZFSError, match='permission denied'):
                zfs.create_dataset_recursive('pool/x', {})

    def test_dataset_exists(self, zfs):
        with patch('subprocess.run', return_value=completed('pool/docker\n')) as mock_run:
            assert zfs.dataset_exists('pool/docker') is True

        assert mock_run.call_args[0][0] == ['zfs', 'list', '-H', '-o', 'name', 'pool/docker']

    def test_dataset_missing(self, zfs):
        error = failed(['zfs', 'list'], "cannot open 'pool/nope': dataset does not exist")
        with patch('subprocess.run', side_effect=error):
            assert zfs.dataset_exists('pool/nope') is False

    def test_zfs_not_installed(self, zfs):
        with patch('subprocess.run', side_effect=FileNotFoundError('zfs')):
            assert zfs.dataset_exists('pool/docker') is False
            with pytest.raises(ZFSError, match='zfs command not found'):
                zfs.destroy_dataset('pool/docker')

    def test_destroy(self, zfs):
        with patch('subprocess.run', return_value=completed()) as mock_run:
            zfs.destroy_dataset('pool/docker/volumes/data')

        assert mock_run.call_args[0][0] == ['zfs', 'destroy', 'pool/docker/volumes/data']


class TestDataset:
    """Property reads through Dataset handles."""

    def test_mountpoint_and_creation(self, zfs):
        responses = {
            'name': completed('pool/data\n'),
            'mountpoint': completed('/docker/volumes/data\n'),
            'creation': completed('1700000000\n'),
        }

        def fake_run(cmd, **kwargs):
            if cmd[1] == 'list':
                return responses['name']
            return responses[cmd[-2]]

        with patch('subprocess.run', side_effect=fake_run):
            dataset = zfs.get_dataset('pool/data')
            assert dataset.get_mountpoint() == '/docker/volumes/data'
            assert dataset.get_creation() == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    def test_unset_property_raises(self, zfs):
        with patch('subprocess.run', return_value=completed('-\n')):
            with pytest.raises(ZFSError, match="property 'creation' not available"):
                zfs.get_property('pool/data', 'creation')

    def test_get_missing_dataset(self, zfs):
        with patch('subprocess.run', side_effect=failed(['zfs', 'list'], 'does not exist')):
            with pytest.raises(ZFSError, match='dataset does not exist'):
                zfs.get_dataset('pool/nope')


class TestMockMode:
    """In-memory pool used by tests and dry runs."""

    def test_env_enables_mock(self, monkeypatch):
        monkeypatch.setenv('ZFSVOL_MOCK', '1')

        assert ZFSManager().mock is True

    def test_create_and_destroy(self):
        zfs = ZFSManager(mock=True)

        with patch('subprocess.run', MagicMock()) as mock_run:
            zfs.create_dataset_recursive('pool/docker/volumes/data', {'compression': 'lz4'})
            assert zfs.dataset_exists('pool/docker')
            assert zfs.get_property('pool/docker/volumes/data', 'compression') == 'lz4'
            zfs.destroy_dataset('pool/docker/volumes/data')

        mock_run.assert_not_called()
        assert not zfs.dataset_exists('pool/docker/volumes/data')

    def test_create_existing_fails(self):
        zfs = ZFSManager(mock=True, datasets=['pool/data'])

        with pytest.raises(ZFSError, match='already exists'):
            zfs.create_dataset_recursive('pool/data', {})
