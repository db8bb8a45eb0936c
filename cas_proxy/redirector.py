"""Redirect of unauthenticated requests to the CAS login page."""

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import RedirectResponse

from cas_proxy.config import Settings
from cas_proxy.urls import build_login_url, build_service_url


class CASRedirector:
    """Редирект на страницу входа CAS."""

    def __init__(self, settings: Settings, logger: Optional[logging.Logger] = None):
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)

    def login_url(self, request: Request) -> str:
        """URL страницы входа CAS с service, равным запрошенному пути и query."""
        # Тикета в запросе нет, поэтому query передаётся без изменений
        service_url = build_service_url(
            self.settings.frontend_url,
            request.url.path,
            request.url.query,
            strip_ticket=False,
        )
        return build_login_url(self.settings.cas_base_url, service_url)

    def redirect(self, request: Request) -> RedirectResponse:
        login_url = self.login_url(request)
        self.logger.info(f"Redirecting {request.url.path} to CAS login")
        return RedirectResponse(url=login_url, status_code=307)
