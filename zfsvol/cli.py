#!/usr/bin/env python3
"""docker-zfs-plugin CLI - ZFS-backed Docker volumes."""
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from zfsvol.core.config import DEFAULT_VOLUME_BASE, build_config
from zfsvol.core.driver import ZFSVolumeDriver
from zfsvol.core.errors import StartupError
from zfsvol.core.logger import get_logger, setup_file_logging
from zfsvol.core.mountpoint import MountpointResolver
from zfsvol.core.state_store import StateStore
from zfsvol.core.zfs_manager import ZFSManager
from zfsvol.services.activation import listen_fds
from zfsvol.services.plugin_api import serve as serve_plugin_api

app = typer.Typer(
    name="docker-zfs-plugin",
    help="""docker-zfs-plugin - Docker volumes on ZFS datasets

Every volume is a dataset under the root dataset.

Quick start:
  docker-zfs-plugin serve --root-dataset rpool/docker
  docker volume create -d zfs data
""",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


@app.command()
def serve(
    root_dataset: Optional[str] = typer.Option(
        None, "--root-dataset", "-r",
        help="The root ZFS dataset to manage volumes under (e.g., rpool/docker)",
    ),
    volume_base: Optional[str] = typer.Option(
        None, "--volume-base", help="The base path for volumes and state file",
    ),
    socket_path: Optional[str] = typer.Option(
        None, "--socket", help="Unix socket to serve the plugin API on",
    ),
    propagated_mount: Optional[str] = typer.Option(
        None, "--propagated-mount",
        help="Propagated-mount directory when running as a managed plugin",
    ),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="YAML config file",
    ),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Serve the Docker volume plugin API."""
    try:
        config = build_config(
            config_file,
            root_dataset=root_dataset,
            volume_base=volume_base,
            socket_path=socket_path,
            propagated_mount=propagated_mount,
            log_file=log_file,
            debug=True if verbose else None,
        )
    except StartupError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if config.log_file:
        setup_file_logging(config.log_file, verbose=config.debug)

    zfs = ZFSManager()
    if zfs.mock:
        zfs = ZFSManager(mock=True, datasets=[config.root_dataset])

    try:
        driver = ZFSVolumeDriver(
            config.root_dataset,
            config.volume_base,
            zfs=zfs,
            resolver=MountpointResolver.for_propagated_mount(config.propagated_mount),
        )
    except StartupError as e:
        logger.error(f"Failed to create ZFS driver: {e}")
        console.print(f"[red]✗ Failed to create ZFS driver: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if not serve_plugin_api(driver, config.socket_path, listen_fds()):
        raise typer.Exit(1)


@app.command()
def state(
    volume_base: str = typer.Option(
        DEFAULT_VOLUME_BASE, "--volume-base", help="The base path for volumes and state file",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Show volumes recorded in the state file."""
    store = StateStore(Path(volume_base) / "state.json")
    try:
        volumes = store.load()
    except StartupError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if as_json:
        payload = {name: props.model_dump(by_alias=True) for name, props in volumes.items()}
        console.print_json(json.dumps(payload))
        return

    if not volumes:
        console.print(f"[yellow]No volumes recorded in {store.state_file}[/yellow]")
        return

    table = Table(title=f"Volumes ({store.state_file})", show_header=True, header_style="bold cyan")
    table.add_column("Volume")
    table.add_column("Dataset")
    for name in sorted(volumes):
        table.add_row(name, volumes[name].dataset_fqn)
    console.print(table)


if __name__ == "__main__":
    app()
