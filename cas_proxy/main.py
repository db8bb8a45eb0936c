"""Entry point for running cas_proxy service."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError
from uvicorn import Config, Server

from cas_proxy.app import create_app
from cas_proxy.config import Settings
from cas_proxy.sealing import CookieSealer

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("cas_proxy")

# Флаги командной строки -> поля Settings
FLAGS = {
    "backend_url": ("--backend-url", "The hostname and port to proxy requests to."),
    "frontend_url": ("--frontend-url", "The URL for the frontend server. Might be different from the hostname and listen port."),
    "listen_addr": ("--listen-addr", "The listen address (host:port)."),
    "cas_base_url": ("--cas-base-url", "The base URL to the CAS host."),
    "cas_validate": ("--cas-validate", "The CAS URL endpoint for validating tickets."),
    "session_key": ("--session-key", "The key used to seal session cookies (see --generate-key)."),
    "log_level": ("--log-level", "Logging level: DEBUG, INFO, WARNING, ERROR or CRITICAL."),
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cas-proxy",
        description="CAS authentication gateway. Every flag can also be set as a CAS_PROXY_* environment variable.",
    )
    for field, (flag, help_text) in FLAGS.items():
        parser.add_argument(flag, dest=field, default=None, help=help_text)
    parser.add_argument("--generate-key", action="store_true", help="Print a new session key and exit.")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """
    Загрузка настроек: флаги командной строки перекрывают переменные окружения.

    Raises:
        ValidationError: обязательные настройки не заданы или некорректны
    """
    overrides = {field: getattr(args, field) for field in FLAGS if getattr(args, field) is not None}
    return Settings(**overrides)


def report_invalid_settings(error: ValidationError):
    """Отдельная строка лога на каждую проблему конфигурации."""
    for problem in error.errors():
        field = str(problem["loc"][0]) if problem["loc"] else "settings"
        flag = FLAGS.get(field, (field,))[0]
        if problem["type"] == "missing":
            logger.error(f"{flag} must be set (or CAS_PROXY_{field.upper()}).")
        else:
            logger.error(f"{flag} is invalid: {problem['msg']}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    if args.generate_key:
        print(CookieSealer.generate_key())
        return 0

    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        report_invalid_settings(e)
        return 1

    logging.getLogger().setLevel(settings.log_level)

    logger.info(f"backend URL is {settings.backend_url}")
    logger.info(f"frontend URL is {settings.frontend_url}")
    logger.info(f"listen address is {settings.listen_addr}")
    logger.info(f"CAS base URL is {settings.cas_base_url}")
    logger.info(f"CAS ticket validator endpoint is {settings.cas_validate}")

    app = create_app(settings, logger=logger)

    # Создаем конфигурацию сервера
    config = Config(app, host=settings.listen_host, port=settings.listen_port, log_level=settings.log_level.lower())

    # Создаем и запускаем сервер
    server = Server(config)
    asyncio.run(server.serve())
    return 0


if __name__ == "__main__":
    sys.exit(main())
