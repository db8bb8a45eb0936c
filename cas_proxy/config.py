"""Configuration for cas_proxy service."""

from urllib.parse import urlsplit

from cryptography.fernet import Fernet
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Настройки cas_proxy сервиса."""

    # CAS settings
    cas_base_url: str  # Базовый URL CAS сервера (обязательный)
    cas_validate: str = "validate"  # Путь эндпоинта валидации тикетов относительно cas_base_url

    # Gateway URLs
    frontend_url: str  # Публичный URL шлюза, подставляется в параметр service (обязательный)
    backend_url: str = "http://localhost:60000"  # URL защищаемого приложения
    listen_addr: str = "0.0.0.0:8080"  # Адрес для запуска шлюза (host:port)

    # Session settings
    session_key: str  # Ключ Fernet для запечатывания cookie (base64, 32 байта, обязательный)
    session_cookie_max_age: int = 86400 * 30  # Время жизни cookie (по умолчанию 30 дней)
    session_cookie_secure: bool = False  # Secure flag для cookie (True для HTTPS)
    session_cookie_httponly: bool = True  # HttpOnly flag для cookie
    session_cookie_samesite: str = "lax"  # lax: cookie должна приходить после редиректа с CAS
    session_cookie_path: str = "/"  # Path для cookie

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",  # Загружать настройки из .env файла
        env_prefix="CAS_PROXY_",  # Префикс для переменных окружения
        frozen=True,  # Конфигурация не меняется после старта
    )

    @field_validator("cas_base_url", "frontend_url", "backend_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"{value!r} is not an absolute http(s) URL")
        return value

    @field_validator("cas_validate")
    @classmethod
    def _check_validate_path(cls, value: str) -> str:
        if not value.strip("/"):
            raise ValueError("validation endpoint path must not be empty")
        return value

    @field_validator("session_key")
    @classmethod
    def _check_session_key(cls, value: str) -> str:
        # Fernet сам проверяет формат ключа (urlsafe base64, 32 байта)
        try:
            Fernet(value.encode("utf-8"))
        except (ValueError, TypeError) as e:
            raise ValueError(f"invalid session key: {e}") from e
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        # Только уровни, которые понимают и logging, и uvicorn
        if value.upper() not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return value.upper()

    @field_validator("listen_addr")
    @classmethod
    def _check_listen_addr(cls, value: str) -> str:
        _, _, port = value.rpartition(":")
        if not port.isdigit():
            raise ValueError(f"{value!r} must look like host:port")
        return value

    @property
    def listen_host(self) -> str:
        host, _, _ = self.listen_addr.rpartition(":")
        return host.strip("[]") or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        _, _, port = self.listen_addr.rpartition(":")
        return int(port)
