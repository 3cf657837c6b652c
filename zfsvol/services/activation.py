"""Sockets handed over by the service manager (systemd socket activation)."""
import socket
from typing import List

from systemd.daemon import listen_fds as systemd_listen_fds

from zfsvol.core.logger import get_logger

logger = get_logger(__name__)


def listen_fds(unset_environment: bool = True) -> List[socket.socket]:
    """Return the listening sockets passed to this process, if any."""
    sockets = [
        socket.socket(fileno=fd)
        for fd in systemd_listen_fds(unset_environment=unset_environment)
    ]
    if sockets:
        logger.debug(f"Received {len(sockets)} socket(s) from the service manager")
    return sockets
