"""Tests for socket activation handling."""
from unittest.mock import patch

from zfsvol.services.activation import listen_fds


def test_no_sockets():
    with patch('zfsvol.services.activation.systemd_listen_fds', return_value=[]) as mock_fds:
        assert listen_fds() == []

    mock_fds.assert_called_once_with(unset_environment=True)


def test_handed_over_sockets():
    """Each descriptor from systemd is wrapped in a socket object."""
    with patch('zfsvol.services.activation.systemd_listen_fds', return_value=[3, 4]), \
            patch('zfsvol.services.activation.socket.socket') as mock_socket:
        sockets = listen_fds(unset_environment=False)

    assert len(sockets) == 2
    assert [c.kwargs['fileno'] for c in mock_socket.call_args_list] == [3, 4]
