"""Session presence check used by the dispatcher."""

import logging
from typing import Optional

from fastapi import Request

from cas_proxy.exceptions import SessionError
from cas_proxy.session_codec import SESSION_KEY, SessionCodec, is_marker


class AuthGate:
    """Проверка наличия валидной сессии у запроса."""

    def __init__(self, codec: SessionCodec, logger: Optional[logging.Logger] = None):
        self.codec = codec
        self.logger = logger or logging.getLogger(__name__)

    def is_authenticated(self, request: Request) -> bool:
        """
        Есть ли у запроса валидная сессия.

        Ошибки вскрытия cookie не пробрасываются: такой запрос просто не авторизован.
        """
        try:
            values = self.codec.open(request)
        except SessionError as e:
            self.logger.info(f"Session cookie rejected: {e}")
            return False

        if SESSION_KEY not in values:
            self.logger.info(f"key {SESSION_KEY} was not in the session")
            return False

        value = values[SESSION_KEY]
        if not is_marker(value):
            self.logger.info(f"session value was {value!r} instead of 1")
            return False

        return True
