"""CAS client for ticket validation."""

import logging
from typing import Optional

import httpx
from fastapi import Request, Response
from fastapi.responses import RedirectResponse

from cas_proxy.config import Settings
from cas_proxy.exceptions import InternalError, TicketRejected, UpstreamError
from cas_proxy.session_codec import SessionCodec
from cas_proxy.urls import TICKET_PARAM, build_service_url, build_validate_url

# Ответ CAS (протокол /validate) на невалидный или просроченный тикет
REJECTED_BODY = b"no\n\n"


def request_ticket(request: Request) -> str:
    """Первое непустое значение параметра ticket из query (пустая строка, если его нет)."""
    for ticket in request.query_params.getlist(TICKET_PARAM):
        if ticket:
            return ticket
    return ""


class TicketValidator:
    """Проверка CAS тикетов и выдача локальной сессии."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        codec: SessionCodec,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Инициализация валидатора.

        Args:
            settings: Настройки шлюза
            http_client: Общий HTTP клиент для запросов к CAS
            codec: Хранилище cookie-сессий
            logger: Логгер
        """
        self.settings = settings
        self.http_client = http_client
        self.codec = codec
        self.logger = logger or logging.getLogger(__name__)

    async def fetch_validation(self, validate_url: str) -> bytes:
        """
        Запрос к CAS эндпоинту валидации.

        Args:
            validate_url: URL валидации с параметрами service и ticket

        Returns:
            Тело ответа CAS

        Raises:
            UpstreamError: CAS недоступен или вернул статус вне 200-299
            InternalError: не удалось прочитать тело ответа
        """
        try:
            # CAS может перенаправить запрос (http -> https, балансировщик)
            async with self.http_client.stream("GET", validate_url, follow_redirects=True) as response:
                if response.status_code < 200 or response.status_code > 299:
                    raise UpstreamError(f"ticket validation status code was {response.status_code}")

                try:
                    return await response.aread()
                except httpx.HTTPError as e:
                    raise InternalError(f"error reading body of CAS response: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"ticket validation error: {e}") from e

    async def validate(self, request: Request) -> Response:
        """
        Проверка тикета из запроса.

        Args:
            request: Входящий запрос с параметром ticket

        Returns:
            Редирект (307) на service URL с установленной session cookie
        """
        # service URL должен совпадать с тем, что был отправлен в CAS при логине
        service_url = build_service_url(
            self.settings.frontend_url,
            request.url.path,
            request.url.query,
        )
        validate_url = build_validate_url(
            self.settings.cas_base_url,
            self.settings.cas_validate,
            service_url,
            request_ticket(request),
        )

        body = await self.fetch_validation(validate_url)

        if body == REJECTED_BODY:
            raise TicketRejected(f"ticket validation response body was {body.decode('utf-8', 'replace')!r}")

        self.logger.info(f"Ticket validated for service {service_url}")

        response = RedirectResponse(url=service_url, status_code=307)
        self.codec.mark_authenticated(request, response)
        return response
