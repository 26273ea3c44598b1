"""Application entry point for the Slack approval bot."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping
from uuid import uuid4

from flask import Flask, jsonify, request, copy_current_request_context
from slack_bolt import App as SlackApp
from slack_bolt.adapter.flask import SlackRequestHandler
import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars

from slack_approval.approvals import (
    APPROVE_ACTION_ID,
    APPROVER_ACTION_ID,
    MODAL_CALLBACK_ID,
    REJECT_ACTION_ID,
    dispatch_request,
    open_request_modal,
    parse_submission,
    resolve_decision,
)
from slack_approval.background import run_async
from slack_approval.config import AppSettings, get_settings
from slack_approval.logging_config import configure_logging
from slack_approval.security import (
    SLACK_SIGNATURE_HEADER,
    SLACK_TIMESTAMP_HEADER,
    is_valid_slack_request,
)

DispatchTable = Mapping[tuple[str, str], Callable[..., None]]


def _create_bolt_app(settings: AppSettings) -> SlackApp:
    """Initialise the Slack Bolt application using validated settings."""

    return SlackApp(
        token=settings.bot_token,
        signing_secret=settings.signing_secret,
        token_verification_enabled=False,
    )


def _register_error_handlers(flask_app: Flask) -> None:
    """Register a JSON error handler that attaches a trace identifier."""

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[override]
        trace_id = str(uuid4())
        flask_app.logger.exception(
            "Unhandled application error", extra={"trace_id": trace_id}, exc_info=error
        )
        response = jsonify({"error": "internal_server_error", "trace_id": trace_id})
        response.status_code = 500
        return response


def _handle_approval_command(ack, body, client, logger):
    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)
    try:
        ack()
        user_id = body.get("user_id")
        log.info("approval_command_received", command=body.get("command"), user_id=user_id)
        run_async(
            open_request_modal,
            client=client,
            trigger_id=body.get("trigger_id"),
            user_id=user_id,
            logger=logger,
            trace_id=trace_id,
        )
    finally:
        unbind_contextvars("trace_id")


def _handle_view_submission(ack, body, client, logger):
    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)
    try:
        ack()
        requester_id = (body.get("user") or {}).get("id")
        log = log.bind(requester_id=requester_id)
        log.info("approval_modal_submitted")

        if not requester_id:
            log.warning("missing_user_id")
            return

        values = ((body.get("view") or {}).get("state") or {}).get("values") or {}
        try:
            approver_id, request_text = parse_submission(values)
        except ValueError as exc:
            log.warning("invalid_submission", error=str(exc))
            return

        log.info("approval_request_received", approver_id=approver_id, preview=request_text[:30])
        run_async(
            dispatch_request,
            client=client,
            requester_id=requester_id,
            approver_id=approver_id,
            request_text=request_text,
            logger=logger,
            token_secret=get_settings().token_secret,
            trace_id=trace_id,
        )
    finally:
        unbind_contextvars("trace_id")


def _handle_decision_action(ack, body, client, logger):
    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)
    try:
        ack()
        actions = body.get("actions") or []
        if not actions or not isinstance(actions[0], dict):
            log.warning("missing_action_payload")
            return

        action_payload = actions[0]
        log.info("decision_action_received", action_id=action_payload.get("action_id"))
        run_async(
            resolve_decision,
            client=client,
            action_id=action_payload.get("action_id"),
            raw_token=action_payload.get("value"),
            acting_user_id=(body.get("user") or {}).get("id"),
            channel_id=(body.get("channel") or {}).get("id"),
            message_ts=(body.get("message") or {}).get("ts"),
            logger=logger,
            token_secret=get_settings().token_secret,
            trace_id=trace_id,
        )
    finally:
        unbind_contextvars("trace_id")


def _handle_approver_select(ack):
    ack()


def _build_dispatch_table(settings: AppSettings) -> DispatchTable:
    """Map each (listener kind, identifier) pair to its handler."""

    return MappingProxyType(
        {
            ("command", settings.command): _handle_approval_command,
            ("view", MODAL_CALLBACK_ID): _handle_view_submission,
            ("action", APPROVE_ACTION_ID): _handle_decision_action,
            ("action", REJECT_ACTION_ID): _handle_decision_action,
            ("action", APPROVER_ACTION_ID): _handle_approver_select,
        }
    )


def _register_handlers(bolt_app: SlackApp, table: DispatchTable) -> None:
    for (kind, identifier), handler in table.items():
        getattr(bolt_app, kind)(identifier)(handler)

    @bolt_app.middleware
    def log_incoming_payload(body, next):
        structlog.get_logger().debug("incoming_payload", payload_type=(body or {}).get("type"))
        return next()

    @bolt_app.error
    def handle_listener_error(error, body, logger):
        structlog.get_logger().error(
            "listener_failed",
            error=repr(error),
            payload_type=(body or {}).get("type"),
        )
        logger.error("Global error handler caught an exception", exc_info=error)


_LOGGING_CONFIGURED = False


def _load_version() -> str:
    version_file = Path(__file__).resolve().parent / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()
    return "unknown"


def create_app() -> Flask:
    """Create and configure the Flask application."""

    global _LOGGING_CONFIGURED

    settings = get_settings()

    if not _LOGGING_CONFIGURED:
        configure_logging(settings.log_level)
        _LOGGING_CONFIGURED = True

    bolt_app = _create_bolt_app(settings)
    _register_handlers(bolt_app, _build_dispatch_table(settings))
    handler = SlackRequestHandler(bolt_app)

    flask_app = Flask(__name__)
    flask_app.config["APP_VERSION"] = _load_version()
    flask_app.logger.setLevel(settings.log_level)

    _register_error_handlers(flask_app)

    @flask_app.route("/slack/events", methods=["POST"])
    def slack_events():
        raw_body = request.get_data(as_text=True)
        timestamp = request.headers.get(SLACK_TIMESTAMP_HEADER, "")
        signature = request.headers.get(SLACK_SIGNATURE_HEADER, "")

        if not is_valid_slack_request(
            signing_secret=settings.signing_secret,
            timestamp=timestamp,
            body=raw_body,
            signature=signature,
        ):
            response = jsonify({"error": "invalid_signature"})
            response.status_code = 401
            return response

        trace_id = str(uuid4())

        @copy_current_request_context
        def process_request():
            handler.handle(request)

        run_async(process_request, trace_id=trace_id)
        return "", 200

    @flask_app.route("/healthz", methods=["GET"])
    def healthz():
        health: dict[str, object] = {"ok": True}
        health["version"] = flask_app.config.get("APP_VERSION", "unknown")
        try:
            get_settings()
            health["config"] = "valid"
        except RuntimeError as exc:
            health["config"] = "invalid"
            health["config_error"] = str(exc)
            health["ok"] = False

        status = 200 if health["ok"] else 503
        return jsonify(health), status

    return flask_app


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    application = create_app()
    application.run(host="0.0.0.0", port=get_settings().port)
