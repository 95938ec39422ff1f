"""Client for the caller-configured completion endpoint.

Contract: ``POST <url>`` with ``{"message": text}`` and an optional bearer
credential; the endpoint answers ``{"response": text}``. Single-turn only,
the transcript is never sent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from services.errors import UpstreamFailure

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I couldn't generate a response."


def _default_timeout() -> float:
    from config import settings

    return settings.COMPLETION_TIMEOUT_SECONDS


@dataclass
class EndpointConfig:
    url: str = ""
    credential: str = field(default="", repr=False)
    timeout: float | None = None

    def __post_init__(self):
        if self.timeout is None:
            self.timeout = _default_timeout()

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.url.strip())

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.credential:
            headers["Authorization"] = f"Bearer {self.credential}"
        return headers


class CompletionClient:
    """Sends one prompt, returns the generated text."""

    def __init__(self, http_client: httpx.Client | None = None):
        self._client = http_client

    def complete(self, config: EndpointConfig, text: str) -> str:
        sender = self._client or httpx
        try:
            resp = sender.post(
                config.url, json={"message": text}, headers=config.headers(), timeout=config.timeout
            )
        except httpx.TimeoutException:
            logger.warning("Completion endpoint timed out after %ss", config.timeout)
            raise UpstreamFailure("The completion endpoint timed out.") from None
        except httpx.HTTPError as exc:
            logger.warning("Completion endpoint unreachable: %s", exc)
            raise UpstreamFailure("The completion endpoint could not be reached.") from None

        if resp.status_code < 200 or resp.status_code >= 300:
            logger.warning("Completion endpoint returned HTTP %s", resp.status_code)
            raise UpstreamFailure(f"The completion endpoint returned HTTP {resp.status_code}.")

        try:
            data = resp.json()
        except ValueError:
            raise UpstreamFailure("The completion endpoint returned a non-JSON body.") from None

        reply = data.get("response") if isinstance(data, dict) else None
        if not isinstance(reply, str) or not reply:
            return FALLBACK_REPLY
        return reply
