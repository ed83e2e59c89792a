"""Shared HTTP plumbing and the typed failure value for provider adapters.

Every provider fetch returns either the parsed value or a ``ProviderFailure``.
Adapters never raise for upstream problems (timeouts, transport errors,
non-2xx responses, error envelopes embedded in a 200 body, or payloads that
do not match the expected schema); callers branch on the returned value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from dashcache.config import ProviderSettings
from dashcache.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class FailureKind(str, Enum):
    """Why a provider call did not produce a usable value."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    RATE_LIMITED = "rate_limited"
    API_ERROR = "api_error"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ProviderFailure:
    """A typed, non-exceptional provider failure."""

    provider: str
    kind: FailureKind
    message: str
    status_code: int | None = None

    def __str__(self) -> str:
        status = f" {self.status_code}" if self.status_code is not None else ""
        return f"{self.provider} {self.kind.value}{status}: {self.message}"

    @property
    def is_rate_limit(self) -> bool:
        return self.kind == FailureKind.RATE_LIMITED


def build_http_client(settings: ProviderSettings) -> httpx.AsyncClient:
    """Create the shared async HTTP client used by every provider adapter."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"Accept": "application/json", "User-Agent": settings.user_agent},
    )


class HttpProvider:
    """Base class for JSON-over-HTTP provider adapters.

    Subclasses set ``name``, override ``_check_envelope`` to detect errors
    reported inside a successful response body, and validate payloads with
    ``_parse``.

    Args:
        client: Shared httpx client (owned by the composition root).
        base_url: Provider base URL without a trailing slash.
        api_key: Optional API key; how it is sent is provider specific.
    """

    name = "http"

    def __init__(self, client: httpx.AsyncClient, base_url: str, api_key: str = "") -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _failure(
        self, kind: FailureKind, message: str, status_code: int | None = None
    ) -> ProviderFailure:
        return ProviderFailure(
            provider=self.name, kind=kind, message=message, status_code=status_code
        )

    async def _get_json(
        self,
        path: str = "",
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET ``base_url + path`` and return decoded JSON or a ProviderFailure."""
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(url, params=params, headers=headers)
        except httpx.TimeoutException as e:
            return self._failure(FailureKind.TIMEOUT, f"request timed out: {e!r}")
        except httpx.TransportError as e:
            return self._failure(FailureKind.NETWORK, f"transport error: {e!r}")

        if response.status_code == 429:
            return self._failure(
                FailureKind.RATE_LIMITED, "rate limit exceeded", response.status_code
            )
        if not response.is_success:
            return self._failure(
                FailureKind.HTTP_STATUS,
                f"unexpected status from {path or '/'}",
                response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            return self._failure(FailureKind.MALFORMED, f"invalid JSON: {e}")

        envelope = self._check_envelope(payload)
        if envelope is not None:
            return envelope
        return payload

    def _check_envelope(self, payload: Any) -> ProviderFailure | None:
        """Return a failure if the body carries a provider error envelope."""
        return None

    def _parse(self, schema: type[T], payload: Any) -> T | ProviderFailure:
        """Validate ``payload`` against ``schema``; shape mismatches are MALFORMED."""
        try:
            return TypeAdapter(schema).validate_python(payload)
        except ValidationError as e:
            return self._failure(
                FailureKind.MALFORMED, f"unexpected payload shape: {e.error_count()} errors"
            )


def envelope_kind(message: str) -> FailureKind:
    """Classify an in-body error message as a rate limit or a generic API error."""
    lowered = message.lower()
    if "rate limit" in lowered or "429" in lowered or "call frequency" in lowered:
        return FailureKind.RATE_LIMITED
    return FailureKind.API_ERROR
