"""Tests for mountpoint resolution strategies."""
import pytest

from zfsvol.core.mountpoint import MountStrategy, MountpointResolver, escape_prefix

ANCHOR = '/var/lib/docker/plugins/abc123/propagated-mount'


def test_direct_returns_path_unchanged():
    resolver = MountpointResolver(MountStrategy.DIRECT)

    assert resolver.resolve('/docker/volumes/data') == '/docker/volumes/data'


def test_escape_prefix_walks_to_root():
    assert escape_prefix(ANCHOR) == '../../../../../..'
    assert escape_prefix('/mnt/') == '..'


def test_escaped_prefixes_path():
    """Escaped paths walk up from the anchor and back down to the zfs path."""
    resolver = MountpointResolver.for_propagated_mount(ANCHOR)

    assert resolver.strategy == MountStrategy.ESCAPED
    assert resolver.resolve('/docker/volumes/data') == '../../../../../../docker/volumes/data'


def test_no_propagated_mount_is_direct():
    assert MountpointResolver.for_propagated_mount(None).strategy == MountStrategy.DIRECT
    assert MountpointResolver.for_propagated_mount('/').strategy == MountStrategy.DIRECT


def test_escaped_requires_prefix():
    with pytest.raises(ValueError):
        MountpointResolver(MountStrategy.ESCAPED)
