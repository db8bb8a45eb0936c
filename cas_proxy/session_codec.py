"""Session codec for cookie-based session storage."""

import json
import logging
from typing import Any, Dict, Optional

from fastapi import Request, Response

from cas_proxy.config import Settings
from cas_proxy.exceptions import SessionError
from cas_proxy.sealing import CookieSealer

SESSION_NAME = "proxy-session"
SESSION_KEY = "proxy-session-key"
SESSION_MARKER = 1


class SessionCodec:
    """Хранилище сессий в запечатанной cookie."""

    def __init__(self, settings: Settings, logger: Optional[logging.Logger] = None):
        """Инициализация хранилища сессий."""
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)
        self.sealer = CookieSealer(settings.session_key, max_age=settings.session_cookie_max_age)

    def open(self, request: Request) -> Dict[str, Any]:
        """
        Получение значений сессии из cookie запроса.

        Args:
            request: Входящий запрос

        Returns:
            Значения сессии (пустой словарь, если cookie нет)

        Raises:
            SessionError: cookie есть, но её не удалось вскрыть
        """
        sealed = request.cookies.get(SESSION_NAME)
        if not sealed:
            return {}

        try:
            values = json.loads(self.sealer.open(sealed))
        except ValueError as e:
            raise SessionError(f"failed to get session {SESSION_NAME}: {e}") from e

        if not isinstance(values, dict):
            raise SessionError(f"failed to get session {SESSION_NAME}: unexpected payload")
        return values

    def save(self, response: Response, values: Dict[str, Any]):
        """
        Запечатывание значений сессии и установка cookie в ответ.

        Args:
            response: Исходящий ответ
            values: Значения сессии
        """
        try:
            sealed = self.sealer.seal(json.dumps(values))
        except (TypeError, ValueError) as e:
            raise SessionError(f"failed to save session {SESSION_NAME}: {e}") from e

        response.set_cookie(
            key=SESSION_NAME,
            value=sealed,
            max_age=self.settings.session_cookie_max_age,
            httponly=self.settings.session_cookie_httponly,
            samesite=self.settings.session_cookie_samesite,
            secure=self.settings.session_cookie_secure,
            path=self.settings.session_cookie_path,
        )

    def mark_authenticated(self, request: Request, response: Response):
        """Выставление маркера авторизации в сессию и сохранение cookie."""
        try:
            values = self.open(request)
        except SessionError as e:
            # Старую cookie (например, запечатанную прежним ключом) заменяем новой
            self.logger.warning(f"Discarding unreadable session cookie: {e}")
            values = {}

        values[SESSION_KEY] = SESSION_MARKER
        self.save(response, values)


def is_marker(value: Any) -> bool:
    """Только целое 1 считается маркером (не True, не 1.0, не "1")."""
    return type(value) is int and value == SESSION_MARKER
