# SPDX-License-Identifier: AGPL-3.0-or-later
"""Small REST client for the BizTracker backend."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from requests import RequestException

from biztracker import safelog
from biztracker.api.errors import body_code, error_message
from biztracker.util.http import http_client

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised when the backend answers with an error or cannot be reached."""

    def __init__(self, status: int, code: Optional[str], message: str) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "code": self.code, "message": self.message}


class ApiClient:
    """Thin wrapper mapping HTTP failures onto :class:`ApiError`.

    ``session`` may be anything with a requests-style ``request(method, url,
    **kwargs)``; the default is the retrying session from
    :func:`biztracker.util.http.http_client`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: Any = None,
        timeout: int = 30,
        token: Optional[str] = None,
    ) -> None:
        self.base_url = base_url.strip().rstrip("/")
        self.session = session if session is not None else http_client(timeout=timeout)
        self.token = token
        if token:
            safelog.register_secret(token)

    @classmethod
    def from_settings(cls, settings, session: Any = None) -> "ApiClient":
        return cls(
            settings.api_url,
            session=session,
            timeout=settings.timeout_seconds,
            token=settings.api_token,
        )

    # ------------------------------------------------------------------
    # Verbs

    def get(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", path, params=params)

    def post(self, path: str, *, body: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("POST", path, body=body)

    def patch(self, path: str, *, body: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("PATCH", path, body=body)

    def delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    # ------------------------------------------------------------------
    # Internal helpers

    def url_for(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        if self.base_url.endswith("/api") and (path == "/api" or path.startswith("/api/")):
            path = path[len("/api"):]
        return f"{self.base_url}{path}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        request_kwargs: Dict[str, Any] = {}
        if self.token:
            request_kwargs["headers"] = {"Authorization": f"Bearer {self.token}"}
        if params:
            request_kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        if body is not None:
            request_kwargs["json"] = body
        start = time.perf_counter()
        logger.debug("→ %s %s", method, path)
        try:
            response = self.session.request(method, self.url_for(path), **request_kwargs)
        except RequestException as exc:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.debug("← %s %s failed [network] in %.0f ms: %s", method, path, elapsed_ms, exc)
            raise ApiError(status=0, code="network_error", message=error_message(None, str(exc))) from None
        elapsed_ms = (time.perf_counter() - start) * 1000
        if response.status_code >= 400:
            error = self._convert_http_error(response)
            logger.debug(
                "← %s %s failed [%s] in %.0f ms: %s",
                method,
                path,
                error.status,
                elapsed_ms,
                error.message,
            )
            raise error
        logger.debug(
            "← %s %s succeeded [%s] in %.0f ms",
            method,
            path,
            response.status_code,
            elapsed_ms,
        )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}

    def _convert_http_error(self, response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            body = response.text or None
        reason = getattr(response, "reason", None) or getattr(response, "reason_phrase", None)
        return ApiError(
            status=response.status_code,
            code=body_code(body),
            message=error_message(body, reason),
        )


__all__ = ["ApiClient", "ApiError"]
