"""Register the Slack slash-command endpoint for ASGI/WSGI frameworks."""

from typing import Any

from opsgateway.config.settings import Settings
from opsgateway.logging_config import get_logger
from opsgateway.orchestrator import Orchestrator
from opsgateway.signature import verify_signature

LOGGER = get_logger(__name__)

ROUTE = "/slack/commands"

__all__ = ["ROUTE", "register_slack_commands"]


def _is_fastapi_app(app: Any) -> bool:
    return app.__class__.__module__.startswith("fastapi") and hasattr(app, "include_router")


def _is_flask_app(app: Any) -> bool:
    return app.__class__.__module__.startswith("flask") and hasattr(app, "register_blueprint")


def _signature_ok(
    settings: Settings, body: bytes, timestamp: str | None, signature: str | None
) -> bool:
    if not settings.signing_secret:
        return True
    return verify_signature(
        secret=settings.signing_secret, body=body, timestamp=timestamp, signature=signature
    )


def register_slack_commands(
    app: Any,
    orchestrator: Orchestrator | None = None,
    settings: Settings | None = None,
) -> Any:
    settings = settings or Settings.from_env()
    gateway = orchestrator or Orchestrator.from_settings(settings)

    if _is_fastapi_app(app):
        from fastapi import APIRouter, Header, Request
        from fastapi.responses import PlainTextResponse

        router = APIRouter()

        @router.post(ROUTE)
        async def slack_command(
            request: Request,
            x_slack_request_timestamp: str = Header(None),
            x_slack_signature: str = Header(None),
        ) -> Any:
            raw_body = await request.body()
            if not _signature_ok(settings, raw_body, x_slack_request_timestamp, x_slack_signature):
                LOGGER.warning("Slack request signature rejected")
                return PlainTextResponse("Unauthorized", status_code=401)
            acknowledgment = gateway.handle(raw_body)
            return PlainTextResponse(acknowledgment.body, status_code=acknowledgment.status_code)

        app.include_router(router)
        return router

    if _is_flask_app(app):
        from flask import Blueprint, make_response, request

        blueprint = Blueprint("slack_commands", __name__)

        @blueprint.route(ROUTE, methods=["POST"])
        def slack_command() -> Any:  # pragma: no cover - framework wiring
            raw_body = request.get_data(cache=False)
            if not _signature_ok(
                settings,
                raw_body,
                request.headers.get("X-Slack-Request-Timestamp"),
                request.headers.get("X-Slack-Signature"),
            ):
                LOGGER.warning("Slack request signature rejected")
                return make_response("Unauthorized", 401)
            acknowledgment = gateway.handle(raw_body)
            return make_response(acknowledgment.body, acknowledgment.status_code)

        app.register_blueprint(blueprint)
        return blueprint

    raise TypeError("Unsupported application type for Slack command registration")
