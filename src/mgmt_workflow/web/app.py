"""aiohttp application exposing the submission and registration workflows"""

import asyncio
import functools
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional, TypeVar

from aiohttp import web
from pydantic import BaseModel

from ..configuration import ManagementConfig
from ..controllers import (
    RegistrationController,
    ReviewController,
    SubmissionWorkflow,
    parse_service_id,
)
from ..error_handling import InvalidRequest, error_response
from ..git import RepositoryFactory
from ..models import EditRequest, RegisteredService, UserProfile
from ..notifications import LogNotifier, Notifier
from ..registry import RepositoryServiceRegistry, ServiceRegistry
from ..submissions import SubmissionQueue
from .identity import USER_ID_HEADER, HeaderIdentityProvider, IdentityProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Services:
    """Everything the HTTP handlers need, wired from one configuration."""

    config: ManagementConfig
    factory: RepositoryFactory
    queue: SubmissionQueue
    notifier: Notifier
    registry: ServiceRegistry
    submissions: SubmissionWorkflow
    reviews: ReviewController
    register: RegistrationController
    identity: IdentityProvider


def build_services(
    config: ManagementConfig,
    notifier: Optional[Notifier] = None,
    registry: Optional[ServiceRegistry] = None,
    identity: Optional[IdentityProvider] = None,
) -> Services:
    factory = RepositoryFactory(config)
    queue = SubmissionQueue(config.submissions_dir)
    notifier = notifier or LogNotifier(config)
    registry = registry or RepositoryServiceRegistry(factory)
    return Services(
        config=config,
        factory=factory,
        queue=queue,
        notifier=notifier,
        registry=registry,
        submissions=SubmissionWorkflow(factory, config, notifier),
        reviews=ReviewController(factory, config, notifier),
        register=RegistrationController(queue, registry, config, notifier),
        identity=identity or HeaderIdentityProvider(),
    )


SERVICES = web.AppKey("services", Services)


async def run_blocking(func: Callable[..., T], *args: Any) -> T:
    """Run a blocking controller call on the default worker pool."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args))


def json_response(payload: Any, status: int = 200) -> web.Response:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    elif isinstance(payload, list):
        payload = [p.model_dump(mode="json") if isinstance(p, BaseModel) else p for p in payload]
    return web.json_response(payload, status=status)


def _caller(request: web.Request) -> UserProfile:
    return request.app[SERVICES].identity.profile(request)


def _path_id(request: web.Request) -> int:
    value = request.match_info["id"]
    service_id = parse_service_id(value)
    if service_id is None:
        raise InvalidRequest(f"Service id must be numeric, got {value!r}")
    return service_id


@web.middleware
async def timing_middleware(request: web.Request, handler):
    started = time.monotonic()
    response = await handler(request)
    duration_ms = round((time.monotonic() - started) * 1000, 1)
    logger.info(
        f"{request.method} {request.path} -> {response.status} in {duration_ms}ms",
        extra={"user_id": request.headers.get(USER_ID_HEADER), "duration_ms": duration_ms},
    )
    return response


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as e:
        user_id = request.headers.get(USER_ID_HEADER)
        status, reason = error_response(e, f"{request.method} {request.path}", user_id)
        return web.json_response({"error": type(e).__name__, "message": reason}, status=status)


# Version controlled submissions


async def submit_for_review(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    user = _caller(request)
    message = (await request.text()).strip()
    if not message:
        raise InvalidRequest("A submission message is required")
    result = await run_blocking(services.submissions.submit_for_review, user, message)
    return web.json_response(asdict(result))


async def list_submissions(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    user = _caller(request)
    return json_response(await run_blocking(services.submissions.list_review_units, user))


async def revert_submission(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    user = _caller(request)
    branch = request.match_info["branch"]
    commit = await run_blocking(services.reviews.revert_submission, user, branch)
    return web.json_response({"branch": branch, "reset_to": commit})


# Queued registration requests


async def register_submit(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    user = _caller(request)
    service = RegisteredService.model_validate_json(await request.read())
    filename = await run_blocking(services.register.submit_new, user, service)
    return web.json_response({"filename": filename})


async def register_save(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    user = _caller(request)
    pair = EditRequest.model_validate_json(await request.read())
    filename = await run_blocking(services.register.save_edit, user, pair.id, pair.service)
    return web.json_response({"filename": filename})


async def register_remove(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    user = _caller(request)
    filename = await run_blocking(services.register.request_removal, user, _path_id(request))
    return web.json_response({"filename": filename})


async def register_fetch(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    user = _caller(request)
    service = await run_blocking(services.register.fetch_owned, user, _path_id(request))
    return web.json_response(service.model_dump(mode="json", exclude_none=True))


async def register_cancel(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    user = _caller(request)
    filename = request.query.get("id")
    if not filename:
        raise InvalidRequest("Query parameter 'id' is required")
    await run_blocking(services.register.cancel, user, filename)
    return web.json_response({"cancelled": filename})


async def register_promote(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    user = _caller(request)
    filename = await run_blocking(services.register.promote, user, _path_id(request))
    return web.json_response({"filename": filename})


async def register_pending(request: web.Request) -> web.Response:
    services = request.app[SERVICES]
    user = _caller(request)
    return json_response(await run_blocking(services.register.pending_for, user))


def create_app(config: ManagementConfig, services: Optional[Services] = None) -> web.Application:
    """Build the application; version controlled routes only when enabled."""
    services = services or build_services(config)
    app = web.Application(middlewares=[timing_middleware, error_middleware])
    app[SERVICES] = services

    if config.version_control_enabled:
        app.router.add_post("/api/submit", submit_for_review)
        app.router.add_get("/api/submit", list_submissions)
        app.router.add_get("/api/submit/revert/{branch}", revert_submission)
    else:
        logger.info("Version control disabled, submission routes not mounted")

    base = "/" + config.register_base.strip("/")
    # Literal segments first, they would otherwise match {id}
    app.router.add_delete(f"{base}/cancel", register_cancel)
    app.router.add_get(f"{base}/pending", register_pending)
    app.router.add_get(f"{base}/promote/{{id}}", register_promote)
    app.router.add_post(base, register_submit)
    app.router.add_patch(base, register_save)
    app.router.add_delete(f"{base}/{{id}}", register_remove)
    app.router.add_get(f"{base}/{{id}}", register_fetch)
    return app
