"""
JSON REST Client

Architectural Intent:
- Minimal JSON-over-HTTP client shared by the ConnectWise and PagerDuty adapters
- Uses stdlib urllib for the HTTP layer (no external dependencies)
- Blocking calls run in the default executor so the event loop stays free

Design Decisions:
- Non-2xx responses and transport errors raise RemoteCallError carrying the
  HTTP status and decoded response body
- urlopen is looked up at call time so tests can patch urllib.request.urlopen
"""

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from functools import partial
from typing import Any, Callable, Optional

from ticketsync.domain.services.errors import RemoteCallError

logger = logging.getLogger(__name__)


def _decode(raw: bytes) -> Any:
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


class JsonRestClient:
    def __init__(
        self,
        base_url: str,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 30.0,
        opener: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = dict(headers or {})
        self.timeout = timeout
        self._opener = opener

    def url_for(self, path: str, query: Optional[dict[str, Any]] = None) -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        if query:
            url = f"{url}?{urllib.parse.urlencode(query)}"
        return url

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        return await asyncio.get_event_loop().run_in_executor(
            None, partial(self._send, method, path, body, query, headers)
        )

    def _send(
        self,
        method: str,
        path: str,
        body: Any,
        query: Optional[dict[str, Any]],
        headers: Optional[dict[str, str]],
    ) -> Any:
        url = self.url_for(path, query)
        data = json.dumps(body).encode("utf-8") if body is not None else None
        request = urllib.request.Request(
            url,
            data=data,
            headers={**self.headers, **(headers or {})},
            method=method,
        )
        opener = self._opener or urllib.request.urlopen
        logger.debug("%s %s", method, url)
        try:
            with opener(request, timeout=self.timeout) as resp:
                return _decode(resp.read())
        except urllib.error.HTTPError as e:
            payload = _decode(e.read())
            logger.error("%s %s failed with HTTP %d: %s", method, url, e.code, payload)
            raise RemoteCallError(
                f"{method} {path} failed with HTTP {e.code}", status=e.code, payload=payload
            ) from e
        except OSError as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise RemoteCallError(f"{method} {path} failed: {e}") from e
