"""Docker volume plugin protocol over HTTP.

Docker POSTs JSON to /Plugin.Activate and /VolumeDriver.* on the plugin
socket. Errors are answered with {"Err": "..."}.
"""
import asyncio
import functools
import json
import socket
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from aiohttp import web

from zfsvol.core.driver import VolumeDriver
from zfsvol.core.errors import VolumeError
from zfsvol.core.logger import get_logger

logger = get_logger(__name__)

CONTENT_TYPE = "application/vnd.docker.plugins.v1+json"

DRIVER_KEY = web.AppKey("driver", VolumeDriver)


def _respond(payload: Dict[str, Any], status: int = 200) -> web.Response:
    return web.Response(
        status=status,
        body=json.dumps(payload).encode(),
        content_type=CONTENT_TYPE,
    )


def _error(message: str) -> web.Response:
    return _respond({"Err": message}, status=500)


async def _read_body(request: web.Request) -> Dict[str, Any]:
    raw = await request.read()
    if not raw.strip():
        return {}
    body = json.loads(raw)
    if not isinstance(body, dict):
        raise ValueError("request body must be a JSON object")
    return body


def _endpoint(handler: Callable[[VolumeDriver, Dict[str, Any]], Dict[str, Any]]):
    """Wrap a synchronous driver call as an aiohttp handler.

    The driver call runs in the default executor so blocking zfs commands
    and file I/O don't stall the event loop.
    """

    @functools.wraps(handler)
    async def wrapper(request: web.Request) -> web.Response:
        try:
            body = await _read_body(request)
        except ValueError as e:
            return _error(f"invalid request: {e}")

        driver = request.app[DRIVER_KEY]
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, functools.partial(handler, driver, body))
        except VolumeError as e:
            return _error(str(e))
        except Exception as e:
            logger.exception(f"{request.path} failed")
            return _error(str(e) or e.__class__.__name__)
        return _respond(result)

    return wrapper


def _name(body: Dict[str, Any]) -> str:
    return body.get("Name") or ""


def activate(driver: VolumeDriver, body: Dict[str, Any]) -> Dict[str, Any]:
    return {"Implements": ["VolumeDriver"]}


def create(driver: VolumeDriver, body: Dict[str, Any]) -> Dict[str, Any]:
    options = body.get("Opts") or {}
    driver.create(_name(body), {str(k): str(v) for k, v in options.items()})
    return {}


def list_volumes(driver: VolumeDriver, body: Dict[str, Any]) -> Dict[str, Any]:
    return {"Volumes": [vol.to_dict() for vol in driver.list()]}


def get(driver: VolumeDriver, body: Dict[str, Any]) -> Dict[str, Any]:
    return {"Volume": driver.get(_name(body)).to_dict()}


def remove(driver: VolumeDriver, body: Dict[str, Any]) -> Dict[str, Any]:
    driver.remove(_name(body))
    return {}


def path(driver: VolumeDriver, body: Dict[str, Any]) -> Dict[str, Any]:
    return {"Mountpoint": driver.path(_name(body))}


def mount(driver: VolumeDriver, body: Dict[str, Any]) -> Dict[str, Any]:
    return {"Mountpoint": driver.mount(_name(body), body.get("ID"))}


def unmount(driver: VolumeDriver, body: Dict[str, Any]) -> Dict[str, Any]:
    driver.unmount(_name(body), body.get("ID"))
    return {}


def capabilities(driver: VolumeDriver, body: Dict[str, Any]) -> Dict[str, Any]:
    return {"Capabilities": driver.capabilities()}


ROUTES = {
    "/Plugin.Activate": activate,
    "/VolumeDriver.Create": create,
    "/VolumeDriver.List": list_volumes,
    "/VolumeDriver.Get": get,
    "/VolumeDriver.Remove": remove,
    "/VolumeDriver.Path": path,
    "/VolumeDriver.Mount": mount,
    "/VolumeDriver.Unmount": unmount,
    "/VolumeDriver.Capabilities": capabilities,
}


def create_app(driver: VolumeDriver) -> web.Application:
    """Build the aiohttp application serving the plugin API."""
    app = web.Application()
    app[DRIVER_KEY] = driver
    for route, handler in ROUTES.items():
        app.router.add_route('POST', route, _endpoint(handler))
    return app


def serve(
    driver: VolumeDriver,
    socket_path: str,
    listeners: Optional[List[socket.socket]] = None,
) -> bool:
    """Serve the plugin API until interrupted.

    Uses the single pre-opened listener if one was handed over, otherwise
    binds the Unix socket at socket_path.

    Returns:
        False if more than one listener was handed over (nothing is served)
    """
    listeners = listeners or []
    if len(listeners) > 1:
        logger.warning("driver does not support multiple sockets")
        return False

    app = create_app(driver)

    if listeners:
        sock = listeners[0]
        logger.debug(f"launching volume handler on listener {sock.getsockname()!r}")
        web.run_app(app, sock=sock, access_log=None, print=None)
        return True

    socket_file = Path(socket_path)
    socket_file.parent.mkdir(parents=True, exist_ok=True)
    if socket_file.is_socket():
        socket_file.unlink()

    logger.debug(f"launching volume handler on {socket_path}")
    web.run_app(app, path=socket_path, access_log=None, print=None)
    return True
