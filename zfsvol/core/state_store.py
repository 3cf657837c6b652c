"""State persistence for the volume registry."""
import json
from pathlib import Path
from typing import Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from zfsvol.core.errors import StateError
from zfsvol.core.logger import get_logger

logger = get_logger(__name__)


class VolumeProperties(BaseModel):
    """What the plugin records about one volume."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    dataset_fqn: str = Field(..., alias="datasetFQN", min_length=1)


_STATE_ADAPTER = TypeAdapter(Dict[str, VolumeProperties])


class StateStore:
    """Read and write the state file.

    The file is a JSON object mapping volume name to {"datasetFQN": ...}.
    It is loaded once at startup and fully rewritten after every change.
    """

    def __init__(self, state_file: Path):
        self.state_file = Path(state_file)

    def load(self) -> Dict[str, VolumeProperties]:
        """Load volumes from the state file.

        Returns:
            Mapping of volume name to properties; empty if no file exists

        Raises:
            StateError: If the file exists but cannot be read or parsed
        """
        if not self.state_file.exists():
            logger.debug("No initial state found")
            return {}

        try:
            with open(self.state_file, 'r') as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise StateError(f"Cannot read state file {self.state_file}: {e}") from e

        try:
            volumes = _STATE_ADAPTER.validate_python(raw)
        except ValidationError as e:
            raise StateError(f"Malformed state file {self.state_file}: {e}") from e

        logger.debug(f"Loaded {len(volumes)} volume(s) from {self.state_file}")
        return volumes

    def save(self, volumes: Mapping[str, VolumeProperties]) -> bool:
        """Overwrite the state file with the given volumes.

        Returns:
            True if saved successfully
        """
        payload = {
            name: props.model_dump(by_alias=True)
            for name, props in volumes.items()
        }

        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)

            # Write atomically (write to temp, then rename)
            temp_file = self.state_file.with_suffix('.tmp')
            with open(temp_file, 'w') as f:
                json.dump(payload, f, indent=2, sort_keys=True)

            temp_file.replace(self.state_file)
            logger.debug(f"Saved state to {self.state_file}")
            return True

        except (TypeError, ValueError, OSError) as e:
            logger.error(f"Cannot write state file {self.state_file}: {e}")
            return False
