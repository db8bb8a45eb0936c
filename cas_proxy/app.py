"""Main FastAPI application for cas_proxy service."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from cas_proxy.auth_gate import AuthGate
from cas_proxy.backend import BackendProxy
from cas_proxy.cas_client import TicketValidator
from cas_proxy.config import Settings
from cas_proxy.dispatcher import Dispatcher
from cas_proxy.exceptions import GatewayError
from cas_proxy.redirector import CASRedirector
from cas_proxy.session_codec import SessionCodec

ALL_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def create_app(
    settings: Settings,
    logger: Optional[logging.Logger] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Создание FastAPI приложения шлюза.

    Args:
        settings: Настройки шлюза
        logger: Логгер для всех компонентов (по умолчанию логгер модуля)
        transport: Транспорт для исходящих запросов к CAS и backend (для тестов)

    Returns:
        FastAPI приложение
    """
    logger = logger or logging.getLogger(__name__)

    # Общий клиент: переиспользование соединений с CAS и backend.
    # Редиректы включаются только для запросов к CAS, не более 10 подряд
    http_client = httpx.AsyncClient(transport=transport, max_redirects=10)

    codec = SessionCodec(settings, logger)
    dispatcher = Dispatcher(
        validator=TicketValidator(settings, http_client, codec, logger),
        gate=AuthGate(codec, logger),
        redirector=CASRedirector(settings, logger),
        backend=BackendProxy(settings, http_client, logger),
        logger=logger,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Обработчик lifespan для освобождения ресурсов."""
        logger.info("Starting cas_proxy service...")

        yield

        logger.info("Shutting down cas_proxy service...")
        await http_client.aclose()

    app = FastAPI(title="CAS Proxy Service", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.dispatcher = dispatcher

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        """Ошибки шлюза отдаются клиенту текстом со статусом ошибки."""
        return PlainTextResponse(str(exc), status_code=exc.status_code)

    # Все пути обрабатываются шлюзом
    @app.api_route("/{path:path}", methods=ALL_METHODS)
    async def gateway(request: Request, path: str):
        return await dispatcher.dispatch(request)

    return app
