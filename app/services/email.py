# app/services/email.py

"""Transactional email provider client."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import Depends

from app.core.config import Settings, get_settings
from app.core.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

MAX_ERROR_BODY = 300


class EmailClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.settings = settings
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.settings.email_api_key and self.settings.email_from)

    def send(self, to: str, subject: str, html: str, text: str) -> Dict[str, Any]:
        """
        POST one message to the provider. Raises EmailDeliveryError on a
        transport failure or any non-2xx response.
        """
        payload = {
            "from": self.settings.email_from,
            "to": to,
            "subject": subject,
            "html": html,
            "text": text,
        }
        headers = {"Authorization": f"Bearer {self.settings.email_api_key}"}

        try:
            with httpx.Client(
                transport=self.transport,
                timeout=self.settings.email_timeout_seconds,
            ) as client:
                response = client.post(self.settings.email_api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Email request failed: {exc}") from exc

        if not response.is_success:
            raise EmailDeliveryError(
                f"Email provider returned {response.status_code}: "
                f"{response.text[:MAX_ERROR_BODY]}"
            )

        logger.info("Email %r sent to %s", subject, to)
        try:
            return response.json()
        except ValueError:
            return {}


def get_email_client(settings: Settings = Depends(get_settings)) -> EmailClient:
    return EmailClient(settings)
