"""Модуль для запечатывания/вскрытия значений session cookie."""

import base64
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken


class CookieSealer:
    """Класс для запечатывания и вскрытия значений cookie (Fernet: шифрование + подпись)."""

    def __init__(self, key: str, max_age: Optional[int] = None):
        """
        Инициализация запечатывания.

        Args:
            key: Ключ (base64-encoded строка длиной 32 байта). Обязателен.
            max_age: Максимальный возраст запечатанного значения в секундах.
                     Более старые значения не вскрываются.
        """
        if not key:
            raise ValueError("Ключ для cookie не задан")

        try:
            key_bytes = base64.urlsafe_b64decode(key)
            if len(key_bytes) != 32:
                raise ValueError(f"Ключ должен быть 32 байта, получено: {len(key_bytes)}")

            self.cipher = Fernet(key.encode("utf-8"))
        except Exception as e:
            raise ValueError(f"Неверный формат ключа: {e}") from e

        self.max_age = max_age

    def seal(self, data: str) -> str:
        """
        Запечатывание данных.

        Args:
            data: Строка для запечатывания

        Returns:
            Значение для cookie (urlsafe base64 без padding)
        """
        token = self.cipher.encrypt(data.encode("utf-8"))
        # '=' в значении cookie заставляет браузерные библиотеки брать его в кавычки
        return token.decode("ascii").rstrip("=")

    def open(self, sealed: str) -> str:
        """
        Вскрытие запечатанного значения.

        Args:
            sealed: Значение из cookie

        Returns:
            Исходная строка

        Raises:
            ValueError: значение подделано, повреждено или устарело
        """
        padded = sealed + "=" * (-len(sealed) % 4)
        try:
            data = self.cipher.decrypt(padded.encode("ascii"), ttl=self.max_age)
            return data.decode("utf-8")
        except (InvalidToken, UnicodeError) as e:
            raise ValueError("Cookie повреждена, подделана или устарела") from e

    @staticmethod
    def generate_key() -> str:
        """
        Генерация нового ключа.

        Returns:
            Base64-encoded ключ (32 байта)
        """
        return Fernet.generate_key().decode("utf-8")
