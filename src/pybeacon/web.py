"""Thin aiohttp transport over :class:`BeaconService`.

Routes only extract the client address, headers and body and hand them
to the core; administrative reads are gated by an injected
:class:`pybeacon.auth.Authorizer`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web

from pybeacon.auth import Authorizer, BasicAuthorizer
from pybeacon.config import BeaconConfig
from pybeacon.exceptions import BeaconCaptureError
from pybeacon.ingestion.normalize import client_identity
from pybeacon.models.device import DeviceRecord, Location
from pybeacon.models.log_entry import LogKind
from pybeacon.service import BeaconService

_logger = logging.getLogger(__name__)

SERVICE_KEY = web.AppKey("service", BeaconService)
AUTHORIZER_KEY = web.AppKey("authorizer", Authorizer)

_MAX_BODY_BYTES = 10 * 1024 * 1024
_AUTH_REALM = 'Basic realm="Monitor Access"'

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def _error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception:
        _logger.exception("Unhandled error on %s %s", request.method, request.path)
        return web.json_response({"error": "Internal Server Error"}, status=500)


def _require_auth(request: web.Request) -> None:
    authorizer = request.app[AUTHORIZER_KEY]
    if not authorizer.is_authorized(request.headers.get("Authorization")):
        raise web.HTTPUnauthorized(
            text=json.dumps({"error": "Unauthorized"}),
            content_type="application/json",
            headers={"WWW-Authenticate": _AUTH_REALM},
        )


def _target_identity(request: web.Request) -> str:
    return client_identity(request.query.get("ip") or request.remote)


async def track(request: web.Request) -> web.Response:
    try:
        body: Any = await request.json()
    except ValueError:
        body = {}
    await request.app[SERVICE_KEY].ingest(request.remote, request.headers.get("User-Agent"), body)
    return web.json_response({"status": "ok"})


async def monitor(request: web.Request) -> web.Response:
    _require_auth(request)
    identity = _target_identity(request)
    record = request.app[SERVICE_KEY].get_device(identity)
    if record is None:
        record = DeviceRecord(identity=identity, location=Location(ip=identity))
    return web.json_response(record.to_json_dict())


async def devices(request: web.Request) -> web.Response:
    _require_auth(request)
    records = request.app[SERVICE_KEY].list_devices()
    return web.json_response([record.to_json_dict() for record in records])


async def history(request: web.Request) -> web.Response:
    _require_auth(request)
    identity = request.query.get("ip")
    if not identity:
        raise web.HTTPBadRequest(text=json.dumps({"error": "ip is required"}), content_type="application/json")
    try:
        kind = LogKind(request.query.get("kind", LogKind.RECORD.value))
        limit = int(request.query.get("limit", "10"))
    except ValueError as exc:
        raise web.HTTPBadRequest(text=json.dumps({"error": str(exc)}), content_type="application/json") from exc

    entries = await request.app[SERVICE_KEY].history(identity, limit, kind=kind)
    return web.json_response([entry.model_dump(mode="json") for entry in entries])


async def camera_update(request: web.Request) -> web.Response:
    form = await request.post()
    field = form.get("image")
    if isinstance(field, web.FileField):
        data: bytes | str = field.file.read()
    elif isinstance(field, str) and field:
        data = field
    else:
        raise web.HTTPBadRequest(text=json.dumps({"error": "image is required"}), content_type="application/json")

    try:
        filename = await request.app[SERVICE_KEY].save_capture(request.remote, data)
    except BeaconCaptureError as exc:
        _logger.warning("Rejected capture from %s: %s", request.remote, exc)
        raise web.HTTPBadRequest(text=json.dumps({"error": str(exc)}), content_type="application/json") from exc
    return web.json_response({"success": True, "filename": filename})


async def camera_image(request: web.Request) -> web.Response:
    _require_auth(request)
    data = await request.app[SERVICE_KEY].read_capture(_target_identity(request))
    if data is None:
        raise web.HTTPNotFound(text="No image available")
    return web.Response(body=data, content_type="image/jpeg")


async def _start_service(app: web.Application) -> None:
    await app[SERVICE_KEY].start()


async def _close_service(app: web.Application) -> None:
    await app[SERVICE_KEY].close()


def create_app(
    config: BeaconConfig | None = None,
    *,
    service: BeaconService | None = None,
    authorizer: Authorizer | None = None,
) -> web.Application:
    """Build the HTTP application; the service is started/closed with the app."""
    config = config or BeaconConfig.from_env()
    app = web.Application(middlewares=[_error_middleware], client_max_size=_MAX_BODY_BYTES)
    app[SERVICE_KEY] = service or BeaconService(config)
    app[AUTHORIZER_KEY] = authorizer or BasicAuthorizer(config.admin_auth)

    app.router.add_post("/api/track", track)
    app.router.add_get("/api/monitor", monitor)
    app.router.add_get("/api/devices", devices)
    app.router.add_get("/api/history", history)
    app.router.add_post("/api/camera-update", camera_update)
    app.router.add_get("/api/camera-image", camera_image)

    app.on_startup.append(_start_service)
    app.on_cleanup.append(_close_service)
    return app


def run(config: BeaconConfig | None = None) -> None:
    """Serve until interrupted."""
    config = config or BeaconConfig.from_env()
    web.run_app(create_app(config), host=config.host, port=config.port, print=None)
