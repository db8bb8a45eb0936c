"""Errors raised while handling a gateway request."""


class GatewayError(Exception):
    """Базовая ошибка шлюза. Каждая ошибка знает свой HTTP статус."""

    status_code = 500


class ConfigError(GatewayError):
    """Сконфигурированный URL не разбирается (ошибка конфигурации)."""

    status_code = 500


class UpstreamError(GatewayError):
    """CAS недоступен или вернул статус вне диапазона 200-299."""

    status_code = 403


class TicketRejected(GatewayError):
    """CAS явно отклонил тикет."""

    status_code = 403


class InternalError(GatewayError):
    """Не удалось прочитать тело ответа CAS."""

    status_code = 500


class SessionError(GatewayError):
    """Ошибка хранилища cookie-сессий."""

    status_code = 500


class BackendUnavailable(GatewayError):
    """Защищаемое приложение недоступно."""

    status_code = 502
