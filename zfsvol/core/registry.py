"""In-memory registry of volumes known to the plugin."""
import threading
from typing import Dict, List, Mapping, Optional

from zfsvol.core.errors import VolumeExistsError
from zfsvol.core.state_store import VolumeProperties


class VolumeRegistry:
    """Thread-safe mapping of volume name to dataset.

    Every access takes the registry lock. Callers that need a
    check-then-act sequence to be atomic hold `lock` around it; the lock is
    reentrant so the accessors can be used inside.
    """

    def __init__(self, volumes: Optional[Mapping[str, VolumeProperties]] = None):
        self.lock = threading.RLock()
        self._volumes: Dict[str, VolumeProperties] = dict(volumes or {})

    def __contains__(self, name: str) -> bool:
        with self.lock:
            return name in self._volumes

    def __len__(self) -> int:
        with self.lock:
            return len(self._volumes)

    def get(self, name: str) -> Optional[VolumeProperties]:
        with self.lock:
            return self._volumes.get(name)

    def add(self, name: str, dataset_fqn: str) -> VolumeProperties:
        """Register a volume.

        Raises:
            VolumeExistsError: If the name is already registered
        """
        props = VolumeProperties(datasetFQN=dataset_fqn)
        with self.lock:
            if name in self._volumes:
                raise VolumeExistsError()
            self._volumes[name] = props
        return props

    def remove(self, name: str) -> Optional[VolumeProperties]:
        with self.lock:
            return self._volumes.pop(name, None)

    def names(self) -> List[str]:
        """Sorted copy of the registered names."""
        with self.lock:
            return sorted(self._volumes)

    def snapshot(self) -> Dict[str, VolumeProperties]:
        """Copy of the full mapping, safe to iterate while others mutate."""
        with self.lock:
            return dict(self._volumes)
