"""ZFS dataset management over the zfs command line."""
import os
import subprocess
import time
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from zfsvol.core.errors import ZFSError
from zfsvol.core.logger import get_logger

logger = get_logger(__name__)


class Dataset:
    """Handle on an existing ZFS dataset."""

    def __init__(self, name: str, manager: "ZFSManager"):
        self.name = name
        self._manager = manager

    def __repr__(self) -> str:
        return f"Dataset({self.name!r})"

    def get_mountpoint(self) -> str:
        """Return the mountpoint zfs reports for this dataset."""
        return self._manager.get_property(self.name, "mountpoint")

    def get_creation(self) -> datetime:
        """Return the creation time of this dataset (UTC).

        Raises:
            ZFSError: If zfs cannot report a creation time
        """
        value = self._manager.get_property(self.name, "creation")
        try:
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        except (TypeError, ValueError) as e:
            raise ZFSError(f"Invalid creation time '{value}' for {self.name}") from e

    def destroy(self) -> None:
        """Destroy this dataset."""
        self._manager.destroy_dataset(self.name)


class ZFSManager:
    """Manages ZFS datasets and properties.

    In mock mode datasets live in memory only, which is what the test suite
    and dry runs use.
    """

    def __init__(self, mock: bool = False, datasets: Optional[Iterable[str]] = None):
        self.mock = mock or os.environ.get('ZFSVOL_MOCK', '').lower() in ('1', 'true')
        # name -> properties, only used in mock mode
        self._mock_datasets: Dict[str, Dict[str, str]] = {}
        for name in datasets or ():
            self._mock_add(name, {})

    def _run(self, cmd: List[str]) -> str:
        """Run a zfs command and return its stdout.

        Raises:
            ZFSError: If the command fails or zfs is not installed
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise ZFSError(f"'{' '.join(cmd)}' failed", cmd=cmd, stderr=e.stderr) from e
        except FileNotFoundError as e:
            raise ZFSError(f"zfs command not found: {cmd[0]}", cmd=cmd) from e
        return result.stdout

    def _mock_add(self, name: str, properties: Dict[str, str]) -> None:
        props = {
            'mountpoint': f"/{name}",
            'creation': str(int(time.time())),
        }
        props.update(properties)
        self._mock_datasets[name] = props

    def dataset_exists(self, dataset: str) -> bool:
        """Check if a dataset exists.

        Args:
            dataset: Full dataset name (e.g., 'tank/docker')

        Returns:
            True if dataset exists, False otherwise
        """
        if self.mock:
            return dataset in self._mock_datasets

        try:
            self._run(["zfs", "list", "-H", "-o", "name", dataset])
            return True
        except ZFSError:
            return False

    def create_dataset_recursive(self, name: str, properties: Dict[str, str]) -> Dataset:
        """Create a dataset, creating missing parents as needed.

        Args:
            name: Full dataset name (e.g., 'tank/docker/volumes/data')
            properties: ZFS properties to set on the new dataset

        Returns:
            Handle on the created dataset

        Raises:
            ZFSError: If zfs refuses to create the dataset
        """
        if self.mock:
            if name in self._mock_datasets:
                raise ZFSError(f"cannot create '{name}': dataset already exists")
            logger.info(f"MOCK: Would create dataset {name} with properties {properties}")
            parts = name.split('/')
            for depth in range(1, len(parts)):
                parent = '/'.join(parts[:depth])
                if parent not in self._mock_datasets:
                    self._mock_add(parent, {})
            self._mock_add(name, dict(properties))
            return Dataset(name, self)

        cmd = ["zfs", "create", "-p"]
        for key, value in properties.items():
            cmd.extend(["-o", f"{key}={value}"])
        cmd.append(name)

        logger.info(f"Creating dataset: {name}")
        self._run(cmd)
        return Dataset(name, self)

    def get_dataset(self, name: str) -> Dataset:
        """Return a handle on an existing dataset.

        Raises:
            ZFSError: If the dataset does not exist
        """
        if not self.dataset_exists(name):
            raise ZFSError(f"dataset does not exist: {name}")
        return Dataset(name, self)

    def get_property(self, dataset: str, key: str) -> str:
        """Read a single property value (parsable form).

        Raises:
            ZFSError: If the dataset is gone or the property is not set
        """
        if self.mock:
            props = self._mock_datasets.get(dataset)
            if props is None:
                raise ZFSError(f"dataset does not exist: {dataset}")
            value = props.get(key, '-')
        else:
            output = self._run(["zfs", "get", "-H", "-p", "-o", "value", key, dataset])
            value = output.strip()

        if value in ('', '-'):
            raise ZFSError(f"property '{key}' not available for {dataset}")
        return value

    def destroy_dataset(self, name: str) -> None:
        """Destroy a dataset.

        Raises:
            ZFSError: If zfs refuses (dataset busy, has children, or is gone)
        """
        if self.mock:
            if name not in self._mock_datasets:
                raise ZFSError(f"cannot open '{name}': dataset does not exist")
            logger.info(f"MOCK: Would destroy dataset {name}")
            del self._mock_datasets[name]
            return

        logger.info(f"Destroying dataset: {name}")
        self._run(["zfs", "destroy", name])
