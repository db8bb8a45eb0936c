"""Pass-through of authenticated requests to the protected backend."""

import logging
from typing import List, Optional, Tuple

import httpx
from fastapi import Request, Response

from cas_proxy.config import Settings
from cas_proxy.exceptions import BackendUnavailable
from cas_proxy.session_codec import SESSION_NAME

# Заголовки запроса, которые не передаются upstream: hop-by-hop, host, длина и cookie (собирается заново)
EXCLUDED_REQUEST_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
    "host",
    "content-length",
    "cookie",
}

# Заголовки ответа, которые не копируются клиенту
EXCLUDED_RESPONSE_HEADERS = {"content-encoding", "content-length", "transfer-encoding", "connection"}


class BackendProxy:
    """Проксирование авторизованных запросов к защищаемому приложению."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings
        self.http_client = http_client
        self.logger = logger or logging.getLogger(__name__)

    def upstream_url(self, request: Request) -> str:
        """URL защищаемого приложения для входящего запроса."""
        backend = httpx.URL(self.settings.backend_url)
        url = backend.copy_with(path=backend.path.rstrip("/") + request.url.path)
        if request.url.query:
            # Query передаётся как есть, без перекодирования
            url = url.copy_with(query=request.url.query.encode("utf-8"))
        return str(url)

    def upstream_headers(self, request: Request) -> List[Tuple[str, str]]:
        """
        Заголовки для защищаемого приложения.

        Повторяющиеся заголовки сохраняются, hop-by-hop заголовки (в том числе
        перечисленные в Connection) не передаются.
        """
        excluded = set(EXCLUDED_REQUEST_HEADERS)
        for value in request.headers.getlist("connection"):
            excluded.update(name.strip().lower() for name in value.split(",") if name.strip())

        headers = [
            (key.decode("latin-1"), value.decode("latin-1"))
            for key, value in request.headers.raw
            if key.decode("latin-1").lower() not in excluded
        ]

        # Session cookie шлюза не передаём upstream
        cookies = {k: v for k, v in request.cookies.items() if k != SESSION_NAME}
        if cookies:
            headers.append(("cookie", "; ".join(f"{k}={v}" for k, v in cookies.items())))

        return headers

    async def forward(self, request: Request) -> Response:
        """
        Проксирование запроса.

        Args:
            request: Входящий авторизованный запрос

        Returns:
            Ответ защищаемого приложения
        """
        url = self.upstream_url(request)
        body = await request.body()

        try:
            upstream_response = await self.http_client.request(
                method=request.method,
                url=url,
                headers=self.upstream_headers(request),
                content=body or None,
                follow_redirects=False,
            )
        except httpx.ConnectError as e:
            self.logger.error(f"Failed to connect to backend at {url}")
            raise BackendUnavailable(f"backend unavailable: {e}") from e
        except httpx.HTTPError as e:
            self.logger.error(f"Failed to proxy backend request: {e}")
            raise BackendUnavailable(f"Bad Gateway: {e}") from e

        response = Response(content=upstream_response.content, status_code=upstream_response.status_code)
        # Копируем заголовки ответа (кроме некоторых), повторяющиеся (set-cookie) тоже
        for key, value in upstream_response.headers.multi_items():
            if key.lower() not in EXCLUDED_RESPONSE_HEADERS:
                response.headers.append(key, value)
        return response
