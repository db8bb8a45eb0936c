from typing import List, Optional, Tuple

import httpx
from cryptography.fernet import Fernet
from fastapi import Request

from cas_proxy.session_codec import SESSION_NAME

CAS_HOST = "cas.example.org"
BACKEND_HOST = "backend.internal"
FRONTEND_URL = "https://gateway.example.org"
CAS_BASE_URL = f"https://{CAS_HOST}/cas"
BACKEND_URL = f"http://{BACKEND_HOST}:60000"
SESSION_KEY = Fernet.generate_key().decode("utf-8")


class FakeUpstreams:
    """CAS сервер и защищаемое приложение за httpx.MockTransport."""

    def __init__(self):
        self.cas_status = 200
        self.cas_body = b"yes\nuser1\n"
        self.cas_stream: Optional[httpx.AsyncByteStream] = None
        self.cas_error: Optional[Exception] = None
        self.cas_redirect_to_https = False
        self.backend_error: Optional[Exception] = None
        self.cas_requests: List[httpx.Request] = []
        self.backend_requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == CAS_HOST:
            self.cas_requests.append(request)
            if self.cas_redirect_to_https and request.url.scheme == "http":
                return httpx.Response(301, headers={"location": str(request.url.copy_with(scheme="https"))})
            if self.cas_error is not None:
                raise self.cas_error
            if self.cas_stream is not None:
                return httpx.Response(self.cas_status, stream=self.cas_stream)
            return httpx.Response(self.cas_status, content=self.cas_body)

        self.backend_requests.append(request)
        if self.backend_error is not None:
            raise self.backend_error
        return httpx.Response(
            200,
            json={
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query.decode("utf-8"),
                "cookie": request.headers.get("cookie"),
                "body": request.content.decode("utf-8"),
            },
            headers={"x-backend": "yes"},
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class BrokenStream(httpx.AsyncByteStream):
    """Тело ответа, которое обрывается при чтении."""

    async def __aiter__(self):
        raise httpx.ReadError("connection reset by peer")
        yield b""  # pragma: no cover


def make_request(
    path: str = "/",
    query: str = "",
    cookie: Optional[str] = None,
    headers: Optional[List[Tuple[str, str]]] = None,
) -> Request:
    raw_headers = [(b"host", b"gateway.example.org")]
    raw_headers.extend((k.encode("latin-1"), v.encode("latin-1")) for k, v in headers or [])
    if cookie is not None:
        raw_headers.append((b"cookie", f"{SESSION_NAME}={cookie}".encode("latin-1")))
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "https",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": query.encode("utf-8"),
        "headers": raw_headers,
        "server": ("gateway.example.org", 443),
    }
    return Request(scope)
