"""Map zfs-reported mountpoints to paths the Docker host can use."""
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional


class MountStrategy(str, Enum):
    """How the plugin's filesystem view relates to the host's."""

    DIRECT = "direct"
    ESCAPED = "escaped"


def escape_prefix(propagated_mount: str) -> str:
    """Relative path walking up from the propagated-mount anchor to /.

    '/var/lib/docker/plugins/abc/propagated-mount' -> '../../../../../..'
    """
    parts = [p for p in PurePosixPath(propagated_mount).parts if p != "/"]
    return "/".join([".."] * len(parts))


class MountpointResolver:
    """Resolve dataset mountpoints for the caller.

    DIRECT returns paths unchanged. ESCAPED is for a managed plugin whose
    mount namespace is rooted below the host root: zfs reports paths in the
    plugin's view, so they are prefixed with a relative walk back to the
    host root.
    """

    def __init__(self, strategy: MountStrategy = MountStrategy.DIRECT, escape: str = ""):
        if strategy == MountStrategy.ESCAPED and not escape:
            raise ValueError("escaped strategy requires an escape prefix")
        self.strategy = strategy
        self.escape = escape.rstrip("/") if strategy == MountStrategy.ESCAPED else ""

    @classmethod
    def for_propagated_mount(cls, propagated_mount: Optional[str]) -> "MountpointResolver":
        escape = escape_prefix(propagated_mount) if propagated_mount else ""
        if not escape:
            return cls(MountStrategy.DIRECT)
        return cls(MountStrategy.ESCAPED, escape)

    def resolve(self, mountpoint: str) -> str:
        if self.strategy == MountStrategy.DIRECT:
            return mountpoint
        return f"{self.escape}/{mountpoint.lstrip('/')}"

    def __repr__(self) -> str:
        if self.strategy == MountStrategy.DIRECT:
            return "MountpointResolver(direct)"
        return f"MountpointResolver(escaped, {self.escape!r})"
