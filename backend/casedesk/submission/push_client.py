"""HTTP client for pushing profiles to the external records system."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from casedesk.core.config import Settings, settings as default_settings
from casedesk.core.logging import get_logger
from casedesk.domain.records import Profile
from casedesk.submission.payload_builder import build_payload

logger = get_logger(__name__)


@dataclass
class PushResult:
    """Outcome reported back to the user. Never changes local state."""

    success: bool
    message: str | None = None


class PushClient(ABC):
    """Upload-to-external collaborator."""

    @abstractmethod
    def push(self, profile: Profile) -> PushResult:
        ...


class HttpPushClient(PushClient):
    """POSTs the profile payload as JSON to a configured endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "HttpPushClient":
        config = config or default_settings
        return cls(config.EXTERNAL_PUSH_URL, timeout=config.EXTERNAL_PUSH_TIMEOUT_SECONDS)

    def push(self, profile: Profile) -> PushResult:
        if not self.url:
            return PushResult(success=False, message="External push URL is not configured")

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.url, json=build_payload(profile))
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "External push rejected",
                profile_id=profile.id,
                status_code=exc.response.status_code,
            )
            return PushResult(success=False, message=f"Server responded {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning("External push failed", profile_id=profile.id, error=str(exc))
            return PushResult(success=False, message=str(exc) or exc.__class__.__name__)

        body = _json_or_empty(response)
        success = bool(body.get("success", True))
        message = body.get("message")
        logger.info("External push finished", profile_id=profile.id, success=success)
        return PushResult(success=success, message=message)


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
