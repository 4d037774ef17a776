from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping, Protocol

import httpx


AuthMode = Literal["cookie", "bearer"]

# statuses worth a manual "try again"
_TRANSIENT_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


@dataclass(frozen=True)
class HttpResult:
    ok: bool
    status_code: int | None
    detail: dict[str, Any]

    error_code: str | None = None
    error_message: str | None = None
    retryable: bool = False

    elapsed_ms: int | None = None

    @property
    def data(self) -> Any:
        # Array bodies are wrapped as {"data": [...]}
        return self.detail.get("data", self.detail)

    @property
    def server_error(self) -> str | None:
        err = self.detail.get("error")
        return err if isinstance(err, str) and err else None


class HttpClient(Protocol):
    def set_session_token(self, token: str | None) -> None: ...

    async def get_json(self, path: str, *, params: Mapping[str, str] | None = None) -> HttpResult: ...

    async def post_json(
        self,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResult: ...


def _transport_failure(code: str, exc: httpx.RequestError) -> HttpResult:
    # no status: the request never produced a response
    return HttpResult(
        ok=False,
        status_code=None,
        detail={"error": code.lower()},
        error_code=code,
        error_message=str(exc) or exc.__class__.__name__,
        retryable=True,
    )


def _decode_body(resp: httpx.Response, *, max_chars: int) -> dict[str, Any]:
    content_type = (resp.headers.get("content-type") or "").lower()
    if "json" in content_type:
        try:
            parsed = resp.json()
        except ValueError:
            parsed = None
        else:
            return parsed if isinstance(parsed, dict) else {"data": parsed}

    text = resp.text
    if len(text) > max_chars:
        text = f"{text[:max_chars]}...(truncated, {len(text)} chars)"
    return {"raw": text, "content_type": content_type or None}


def _elapsed_ms(resp: httpx.Response) -> int | None:
    try:
        elapsed = resp.elapsed
    except RuntimeError:
        # prebuilt responses (in-process transports) are never closed, so no timing
        return None
    return int(elapsed.total_seconds() * 1000)


class MarketplaceHttpClient:
    """
    The wizard's connection to the marketplace API.

    One pooled AsyncClient per wizard. Failures come back as HttpResult,
    never as exceptions, and nothing is retried here: the wizard shows the
    message and the user decides. The session travels either as the `token`
    cookie (full-page host) or as a bearer token (embedded widget).
    """

    def __init__(
        self,
        *,
        base_url: str,
        auth_mode: AuthMode = "cookie",
        session_token: str | None = None,
        timeout_seconds: float = 20.0,
        max_response_body_chars: int = 20_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.auth_mode = auth_mode
        self._token: str | None = None
        self._max_body = max_response_body_chars
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )
        self.set_session_token(session_token)

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_session_token(self, token: str | None) -> None:
        self._token = token or None

    def _auth_headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        if self.auth_mode == "bearer":
            return {"Authorization": f"Bearer {self._token}"}
        return {"Cookie": f"token={self._token}"}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResult:
        merged = {**self._auth_headers(), **dict(headers or {})}
        try:
            resp = await self._client.request(method, path, params=params, json=json_body, headers=merged)
        except httpx.TimeoutException as e:
            return _transport_failure("TIMEOUT", e)
        except httpx.RequestError as e:
            # DNS, refused connection, TLS
            return _transport_failure("REQUEST_ERROR", e)

        detail = _decode_body(resp, max_chars=self._max_body)
        elapsed_ms = _elapsed_ms(resp)

        if resp.is_success:
            return HttpResult(ok=True, status_code=resp.status_code, detail=detail, elapsed_ms=elapsed_ms)

        return HttpResult(
            ok=False,
            status_code=resp.status_code,
            detail=detail,
            error_code=f"HTTP_{resp.status_code}",
            error_message=f"{method} {path} returned {resp.status_code}",
            retryable=resp.status_code in _TRANSIENT_STATUSES,
            elapsed_ms=elapsed_ms,
        )

    async def get_json(self, path: str, *, params: Mapping[str, str] | None = None) -> HttpResult:
        return await self._send("GET", path, params=params)

    async def post_json(
        self,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResult:
        return await self._send("POST", path, json_body=json_body, headers=headers)
