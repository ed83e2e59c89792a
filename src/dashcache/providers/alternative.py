"""Alternative.me Fear & Greed index adapter."""

from typing import Any

from dashcache.providers.base import FailureKind, HttpProvider, ProviderFailure
from dashcache.providers.schemas import FearGreedResponse, FearGreedRow


class AlternativeClient(HttpProvider):
    """Alternative.me adapter; errors arrive in ``metadata.error``."""

    name = "alternative"

    def _check_envelope(self, payload: Any) -> ProviderFailure | None:
        if not isinstance(payload, dict):
            return None
        metadata = payload.get("metadata")
        if isinstance(metadata, dict) and metadata.get("error"):
            return self._failure(FailureKind.API_ERROR, str(metadata["error"]))
        return None

    async def fetch_fear_greed(self, limit: int = 30) -> list[FearGreedRow] | ProviderFailure:
        """Fetch the latest ``limit`` daily Fear & Greed readings, newest first."""
        payload = await self._get_json(
            "/fng/",
            params={"limit": limit, "format": "json", "date_format": "world"},
        )
        if isinstance(payload, ProviderFailure):
            return payload
        parsed = self._parse(FearGreedResponse, payload)
        if isinstance(parsed, ProviderFailure):
            return parsed
        if not parsed.data:
            return self._failure(FailureKind.MALFORMED, "empty fear & greed data")
        return parsed.data
