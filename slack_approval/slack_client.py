"""Result-returning wrapper around the Slack WebClient."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError
import structlog


@dataclass(frozen=True)
class CallResult:
    """Outcome of a single Slack Web API call."""

    ok: bool
    error: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)

    @property
    def channel(self) -> str | None:
        return self.data.get("channel")

    @property
    def ts(self) -> str | None:
        return self.data.get("ts")


def _error_code(exc: Exception) -> tuple[str, int | None]:
    if isinstance(exc, SlackApiError) and getattr(exc, "response", None) is not None:
        response = exc.response
        return response.get("error") or str(exc), getattr(response, "status_code", None)
    return str(exc) or type(exc).__name__, None


class SlackClient:
    """Encapsulate Slack WebClient calls so failures come back as values.

    Every method returns a :class:`CallResult`; platform rejections and
    network errors are logged here and never raised to the caller.
    """

    def __init__(self, *, token: str | None = None, client: WebClient | None = None) -> None:
        if client is None and token is None:
            raise ValueError("Either an instantiated client or a bot token must be provided.")

        self._client = client or WebClient(token=token)

    @property
    def client(self) -> WebClient:
        """Expose the underlying WebClient for advanced use cases."""

        return self._client

    def _call(self, operation: str, method: Callable[..., Any], **kwargs: Any) -> CallResult:
        try:
            response = method(**kwargs)
        except (SlackClientError, OSError) as exc:
            error_code, status_code = _error_code(exc)
            structlog.get_logger().warning(
                "slack_call_failed",
                operation=operation,
                error=error_code,
                status_code=status_code,
            )
            return CallResult(ok=False, error=error_code)

        data = getattr(response, "data", response)
        if not isinstance(data, Mapping):
            data = {}
        return CallResult(ok=True, data=data)

    def open_view(self, *, trigger_id: str, view: Mapping[str, Any]) -> CallResult:
        """Open a modal using a short-lived trigger id."""

        return self._call("views_open", self._client.views_open, trigger_id=trigger_id, view=dict(view))

    def post_message(
        self,
        *,
        channel: str,
        text: str,
        blocks: Sequence[Mapping[str, Any]],
    ) -> CallResult:
        """Post a message with Block Kit content; a user id opens a DM."""

        return self._call(
            "chat_postMessage",
            self._client.chat_postMessage,
            channel=channel,
            text=text,
            blocks=list(blocks),
        )

    def update_message(
        self,
        *,
        channel: str,
        ts: str,
        text: str,
        blocks: Sequence[Mapping[str, Any]],
    ) -> CallResult:
        """Rewrite the message at exactly (*channel*, *ts*)."""

        return self._call(
            "chat_update",
            self._client.chat_update,
            channel=channel,
            ts=ts,
            text=text,
            blocks=list(blocks),
        )
