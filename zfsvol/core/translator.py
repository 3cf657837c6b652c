"""Translate volume creation options into ZFS dataset properties."""
from dataclasses import dataclass
from typing import Dict

from zfsvol.core.errors import VolumeValidationError

ROOT_DATASET_OPTION = "driver_zfsRootDataset"
AUTOSNAPSHOT_OPTION = "driver_zfsAutosnapshot"
AUTOSNAPSHOT_PROPERTY = "com.sun:auto-snapshot"
MOUNTPOINT_PROPERTY = "mountpoint"


@dataclass
class DatasetPlan:
    """What to create in the pool for one volume."""

    dataset: str
    properties: Dict[str, str]
    mountpoint: str


def validate_volume_name(name: str) -> None:
    """Reject names that cannot be a single dataset path component."""
    if not name:
        raise VolumeValidationError("volume name is required")
    if "/" in name or "@" in name or "#" in name:
        raise VolumeValidationError(f"invalid volume name '{name}'")


def dataset_name(name: str, options: Dict[str, str], default_root: str) -> str:
    """Resolve the dataset for a volume, consuming the root override option."""
    override = options.pop(ROOT_DATASET_OPTION, "")
    if override:
        return f"{override.rstrip('/')}/{name}"
    return f"{default_root}/volumes/{name}"


def translate_autosnapshot(options: Dict[str, str]) -> None:
    """Rewrite driver_zfsAutosnapshot[:freq] options as com.sun:auto-snapshot properties.

    The bare toggle only produces a property when its value is "true";
    a frequency variant with an empty suffix is dropped without producing one.
    """
    props_to_add: Dict[str, str] = {}
    prefix = AUTOSNAPSHOT_OPTION + ":"

    for key in list(options):
        value = options[key]
        if key == AUTOSNAPSHOT_OPTION:
            if value == "true":
                props_to_add[AUTOSNAPSHOT_PROPERTY] = "true"
            del options[key]
        elif key.startswith(prefix):
            frequency = key[len(prefix):]
            if frequency:
                props_to_add[f"{AUTOSNAPSHOT_PROPERTY}:{frequency}"] = value
            del options[key]

    options.update(props_to_add)


def translate_options(
    name: str,
    options: Dict[str, str],
    default_root: str,
    volumes_mount_path: str,
) -> DatasetPlan:
    """Turn a create request into the dataset name and properties to create.

    The option bag is modified in place and becomes the property set
    passed to zfs.

    Args:
        name: Volume name requested by the caller
        options: Caller options (driver_* keys and raw zfs properties)
        default_root: Root dataset the plugin was started with
        volumes_mount_path: Directory holding per-volume mountpoints

    Returns:
        DatasetPlan with dataset name, properties and local mountpoint

    Raises:
        VolumeValidationError: If the name is invalid or a mountpoint was passed
    """
    validate_volume_name(name)

    if MOUNTPOINT_PROPERTY in options:
        raise VolumeValidationError("mountpoint option is not supported")

    dataset = dataset_name(name, options, default_root)
    translate_autosnapshot(options)

    mountpoint = f"{volumes_mount_path.rstrip('/')}/{name}"
    options[MOUNTPOINT_PROPERTY] = mountpoint

    return DatasetPlan(dataset=dataset, properties=options, mountpoint=mountpoint)
