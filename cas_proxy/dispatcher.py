"""Per-request authentication state machine."""

import logging
from enum import Enum
from typing import Optional

from fastapi import Request, Response

from cas_proxy.auth_gate import AuthGate
from cas_proxy.backend import BackendProxy
from cas_proxy.cas_client import TicketValidator, request_ticket
from cas_proxy.exceptions import GatewayError
from cas_proxy.redirector import CASRedirector


class AuthState(str, Enum):
    """
    Состояния запроса относительно авторизации.

    route() возвращает одно из трёх начальных состояний; FORBIDDEN бывает
    только итоговым, когда проверка тикета завершилась ошибкой.
    """

    UNAUTHENTICATED = "unauthenticated"
    VALIDATING_TICKET = "validating_ticket"
    AUTHENTICATED = "authenticated"
    FORBIDDEN = "forbidden"


class Dispatcher:
    """
    Выбор ветки обработки запроса.

    Порядок проверки: тикет в query, затем наличие сессии. Запрос с тикетом
    всегда проходит валидацию, даже если у него уже есть валидная сессия.
    """

    def __init__(
        self,
        validator: TicketValidator,
        gate: AuthGate,
        redirector: CASRedirector,
        backend: BackendProxy,
        logger: Optional[logging.Logger] = None,
    ):
        self.validator = validator
        self.gate = gate
        self.redirector = redirector
        self.backend = backend
        self.logger = logger or logging.getLogger(__name__)

    def route(self, request: Request) -> AuthState:
        """
        Начальное состояние запроса.

        Args:
            request: Входящий запрос

        Returns:
            VALIDATING_TICKET, UNAUTHENTICATED или AUTHENTICATED
        """
        if request_ticket(request):
            return AuthState.VALIDATING_TICKET

        if not self.gate.is_authenticated(request):
            return AuthState.UNAUTHENTICATED

        return AuthState.AUTHENTICATED

    async def dispatch(self, request: Request) -> Response:
        """Обработка запроса в соответствии с его состоянием."""
        state = self.route(request)
        # Итоговое состояние доступно обработчикам через request.state
        request.state.auth_state = state

        if state is AuthState.VALIDATING_TICKET:
            try:
                response = await self.validator.validate(request)
            except GatewayError as e:
                request.state.auth_state = AuthState.FORBIDDEN
                self.logger.warning(f"Request {request.url.path} is {AuthState.FORBIDDEN.value}: {e}")
                raise

            request.state.auth_state = AuthState.AUTHENTICATED
            return response

        if state is AuthState.UNAUTHENTICATED:
            return self.redirector.redirect(request)

        return await self.backend.forward(request)
