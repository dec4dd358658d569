"""Backend client — simulation and hazardous-object search over httpx.

Every failure mode (network error, non-2xx status, malformed body) is
surfaced as a single RemoteCallFailure carrying a human-readable message.

Error bodies are expected as ``{"error": {"code": ..., "message": ...}}``.
A FastAPI-style ``{"detail": "..."}`` is accepted as well; anything else
falls back to the HTTP status line.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from meteorguard.errors import MalformedPayload, RemoteCallFailure
from meteorguard.models import HazardCandidate, SimulationParams, SimulationResult

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0


def _error_from_response(resp: httpx.Response) -> RemoteCallFailure:
    """Build a RemoteCallFailure from a non-2xx response."""
    fallback = f"HTTP {resp.status_code} {resp.reason_phrase}".strip()
    try:
        body = resp.json()
    except ValueError:
        body = None

    code = "http_error"
    message = fallback
    if isinstance(body, Mapping):
        error = body.get("error")
        if isinstance(error, Mapping) and error.get("message"):
            message = str(error["message"])
            code = str(error.get("code") or code)
        elif isinstance(body.get("detail"), str) and body["detail"]:
            message = body["detail"]
    return RemoteCallFailure(message, code=code, status=resp.status_code)


class ImpactApiClient:
    """Async client for the simulation and candidate-search backends.

    A fresh httpx.AsyncClient is opened per call so one instance can be used
    from several event loops (Streamlit runs one per request).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def simulate(self, params: SimulationParams) -> SimulationResult:
        """Run one blast simulation.

        Args:
            params: Validated simulation parameters.

        Returns:
            The decoded SimulationResult.

        Raises:
            RemoteCallFailure: On network error, non-2xx status or malformed body.
        """
        payload = await self._request("POST", "/simulate", json=params.to_json())
        try:
            return SimulationResult.from_json(payload)
        except MalformedPayload as exc:
            raise RemoteCallFailure(
                f"Malformed simulation response: {exc}", code="malformed_payload"
            ) from exc

    async def search_hazard_candidates(
        self, pha_only: bool, limit: int
    ) -> tuple[HazardCandidate, ...]:
        """Search the catalog, preserving the backend's ordering.

        The body may be a JSON list of rows or an object with a ``results`` list.
        """
        payload = await self._request(
            "GET",
            "/neo/search",
            params={"pha": "true" if pha_only else "false", "limit": limit},
        )
        rows = payload.get("results") if isinstance(payload, Mapping) else payload
        if not isinstance(rows, list):
            raise RemoteCallFailure(
                "Malformed search response: expected a list of candidates",
                code="malformed_payload",
            )
        try:
            return tuple(HazardCandidate.from_json(row) for row in rows)
        except MalformedPayload as exc:
            raise RemoteCallFailure(
                f"Malformed search response: {exc}", code="malformed_payload"
            ) from exc

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            log.warning("%s %s failed: %s", method, url, exc)
            raise RemoteCallFailure(
                f"Network error: {exc}" if str(exc) else "Network error",
                code="network_error",
            ) from exc

        if resp.is_error:
            failure = _error_from_response(resp)
            log.warning("%s %s returned %d: %s", method, url, resp.status_code, failure.message)
            raise failure

        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteCallFailure(
                "Malformed response: body is not JSON", code="malformed_payload", status=resp.status_code
            ) from exc
