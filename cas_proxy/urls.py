"""Builders for the CAS service URL and CAS request URLs."""

import posixpath
from typing import Iterable, List, Tuple
from urllib.parse import SplitResult, parse_qsl, quote, urlencode, urlsplit, urlunsplit

from cas_proxy.exceptions import ConfigError

TICKET_PARAM = "ticket"
SERVICE_PARAM = "service"
LOGIN_PATH = "login"

# Символы, которые остаются в пути без экранирования
_PATH_SAFE = "/!$&'()*+,;=:@~"


def _parse_configured(url: str, what: str) -> SplitResult:
    """Разбор сконфигурированного URL."""
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise ConfigError(f"failed to parse the {what} {url}: {e}") from e

    if not parts.scheme or not parts.netloc:
        raise ConfigError(f"failed to parse the {what} {url}: scheme and host are required")
    return parts


def encode_query(pairs: Iterable[Tuple[str, str]]) -> str:
    """
    Кодирование query параметров с сортировкой по ключу.

    Порядок значений внутри одного ключа сохраняется.
    """
    return urlencode(sorted(pairs, key=lambda pair: pair[0]))


def join_path(base_path: str, sub_path: str) -> str:
    """Присоединение sub_path к пути base_path с сохранением префикса."""
    joined = "/".join(part for part in (base_path, sub_path) if part)
    if not joined:
        return "/"
    cleaned = posixpath.normpath(joined)
    return "/" + cleaned.lstrip("/") if cleaned != "." else "/"


def build_service_url(
    frontend_url: str,
    request_path: str,
    request_query: str,
    strip_ticket: bool = True,
) -> str:
    """
    Формирование service URL для CAS.

    Args:
        frontend_url: Публичный URL шлюза
        request_path: Путь входящего запроса
        request_query: Query string входящего запроса
        strip_ticket: Убрать параметр ticket и перекодировать query.
                      Если False, query string сохраняется как есть.

    Returns:
        URL с хостом frontend_url, путём и query входящего запроса
    """
    svc = _parse_configured(frontend_url, "frontend URL")

    if strip_ticket:
        pairs = parse_qsl(request_query, keep_blank_values=True)
        query = encode_query((k, v) for k, v in pairs if k != TICKET_PARAM)
    else:
        query = request_query

    path = quote(request_path, safe=_PATH_SAFE)
    return urlunsplit((svc.scheme, svc.netloc, path, query, svc.fragment))


def build_cas_url(cas_base: str, sub_path: str, params: List[Tuple[str, str]]) -> str:
    """
    Формирование URL запроса к CAS.

    Args:
        cas_base: Базовый URL CAS (может содержать префикс пути, например /cas)
        sub_path: Эндпоинт относительно базового URL (login, validate, ...)
        params: Query параметры запроса

    Returns:
        URL CAS эндпоинта
    """
    cas = _parse_configured(cas_base, "CAS base URL")

    pairs = parse_qsl(cas.query, keep_blank_values=True) + list(params)
    path = join_path(cas.path, sub_path)
    return urlunsplit((cas.scheme, cas.netloc, path, encode_query(pairs), ""))


def build_validate_url(cas_base: str, validate_path: str, service_url: str, ticket: str) -> str:
    """URL проверки тикета: service и ticket."""
    return build_cas_url(cas_base, validate_path, [(SERVICE_PARAM, service_url), (TICKET_PARAM, ticket)])


def build_login_url(cas_base: str, service_url: str) -> str:
    """URL страницы входа CAS."""
    return build_cas_url(cas_base, LOGIN_PATH, [(SERVICE_PARAM, service_url)])
