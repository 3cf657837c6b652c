"""Volume lifecycle management backed by ZFS datasets."""
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from zfsvol.core.errors import StartupError, VolumeExistsError, VolumeNotFoundError
from zfsvol.core.failure_policy import run_step
from zfsvol.core.logger import get_logger
from zfsvol.core.mountpoint import MountpointResolver
from zfsvol.core.registry import VolumeRegistry
from zfsvol.core.state_store import StateStore, VolumeProperties
from zfsvol.core.translator import translate_options
from zfsvol.core.zfs_manager import ZFSManager

logger = get_logger(__name__)


@dataclass
class Volume:
    """A volume as reported to the container runtime."""

    name: str
    mountpoint: str
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"Name": self.name, "Mountpoint": self.mountpoint}
        if self.created_at:
            data["CreatedAt"] = self.created_at
        return data


class VolumeDriver(ABC):
    """Operations the plugin API dispatches to."""

    @abstractmethod
    def create(self, name: str, options: Optional[Dict[str, str]] = None) -> None:
        pass

    @abstractmethod
    def list(self) -> List[Volume]:
        pass

    @abstractmethod
    def get(self, name: str) -> Volume:
        pass

    @abstractmethod
    def remove(self, name: str) -> None:
        pass

    @abstractmethod
    def path(self, name: str) -> str:
        pass

    @abstractmethod
    def mount(self, name: str, mount_id: Optional[str] = None) -> str:
        pass

    @abstractmethod
    def unmount(self, name: str, mount_id: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def capabilities(self) -> Dict[str, str]:
        pass


class ZFSVolumeDriver(VolumeDriver):
    """Maps Docker volumes onto ZFS datasets.

    Datasets are created under `<root_dataset>/volumes/<name>` (or under the
    per-volume driver_zfsRootDataset override) with their mountpoint at
    `<volume_base>/volumes/<name>`. zfs keeps datasets mounted, so mount and
    unmount are path lookups only.

    The registry is persisted to `<volume_base>/state.json` after every
    create and remove. A crash between the zfs call and the state write
    leaves the two out of sync until fixed by hand.
    """

    def __init__(
        self,
        root_dataset: str,
        volume_base: str = "/docker",
        zfs: Optional[ZFSManager] = None,
        resolver: Optional[MountpointResolver] = None,
    ):
        self.zfs = zfs or ZFSManager()
        self.resolver = resolver or MountpointResolver()

        if not self.zfs.dataset_exists(root_dataset):
            raise StartupError(f"root dataset '{root_dataset}' does not exist")

        self.default_root_dataset = root_dataset
        self.volumes_mount_path = Path(volume_base) / "volumes"
        self.state_store = StateStore(Path(volume_base) / "state.json")

        try:
            self.volumes_mount_path.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise StartupError(
                f"could not create volume mount base path '{self.volumes_mount_path}': {e}"
            ) from e

        logger.info(
            f"Creating ZFS driver: root dataset {root_dataset}, volume base {volume_base}, "
            f"{self.resolver!r}"
        )

        self.registry = VolumeRegistry(self.state_store.load())
        # Serializes create/remove: the pool check, the zfs call, the
        # registry update and the state write form one unit.
        self._lock = threading.Lock()

    def _save_state(self, operation: str) -> None:
        if not self.state_store.save(self.registry.snapshot()):
            logger.error(f"{operation}: state file not updated, it stays stale until the next change")

    def _lookup(self, name: str) -> VolumeProperties:
        props = self.registry.get(name)
        if props is None:
            logger.error(f"Volume not found: {name}")
            raise VolumeNotFoundError(name)
        return props

    def _mountpoint(self, props: VolumeProperties) -> str:
        dataset = self.zfs.get_dataset(props.dataset_fqn)
        return self.resolver.resolve(dataset.get_mountpoint())

    def create(self, name: str, options: Optional[Dict[str, str]] = None) -> None:
        logger.debug(f"Create: {name} {options}")
        options = {} if options is None else options

        with self._lock:
            plan = translate_options(
                name, options, self.default_root_dataset, str(self.volumes_mount_path)
            )
            logger.debug(f"Dataset {plan.dataset}, mountpoint {plan.mountpoint}")

            if name in self.registry or self.zfs.dataset_exists(plan.dataset):
                raise VolumeExistsError()

            # Left in place if zfs create fails; a retry reuses it
            os.makedirs(plan.mountpoint, mode=0o755, exist_ok=True)

            try:
                run_step("create", "pool_create",
                         self.zfs.create_dataset_recursive, plan.dataset, plan.properties)
            except Exception as e:
                logger.error(f"Cannot create ZFS volume {plan.dataset} with {plan.properties}: {e}")
                raise

            self.registry.add(name, plan.dataset)
            run_step("create", "save_state", self._save_state, "create")

        logger.info(f"Created volume {name} on {plan.dataset}")

    def list(self) -> List[Volume]:
        logger.debug("List")
        volumes = []
        for name in self.registry.names():
            vol = run_step("list", "volume", self._get_volume, name, context=name)
            if vol is not None:
                volumes.append(vol)
        return volumes

    def get(self, name: str) -> Volume:
        logger.debug(f"Get: {name}")
        return self._get_volume(name)

    def _get_volume(self, name: str) -> Volume:
        props = self._lookup(name)
        dataset = self.zfs.get_dataset(props.dataset_fqn)
        mountpoint = run_step("get", "mountpoint", dataset.get_mountpoint)

        created = run_step("get", "creation", dataset.get_creation, context=name)
        created_at = created.strftime("%Y-%m-%dT%H:%M:%SZ") if created is not None else None

        return Volume(name=name, mountpoint=self.resolver.resolve(mountpoint), created_at=created_at)

    def path(self, name: str) -> str:
        logger.debug(f"Path: {name}")
        return self._mountpoint(self._lookup(name))

    def mount(self, name: str, mount_id: Optional[str] = None) -> str:
        logger.debug(f"Mount: {name} (id {mount_id})")
        return self._mountpoint(self._lookup(name))

    def unmount(self, name: str, mount_id: Optional[str] = None) -> None:
        logger.debug(f"Unmount: {name} (id {mount_id})")

    def remove(self, name: str) -> None:
        logger.debug(f"Remove: {name}")

        with self._lock:
            props = self._lookup(name)

            dataset = self.zfs.get_dataset(props.dataset_fqn)
            run_step("remove", "destroy", dataset.destroy)

            self.registry.remove(name)
            run_step("remove", "save_state", self._save_state, "remove")

        mountpoint = self.volumes_mount_path / name
        run_step("remove", "cleanup_mountpoint", os.rmdir, mountpoint, context=str(mountpoint))
        logger.info(f"Removed volume {name} ({props.dataset_fqn})")

    def capabilities(self) -> Dict[str, str]:
        logger.debug("Capabilities")
        return {"Scope": "local"}
