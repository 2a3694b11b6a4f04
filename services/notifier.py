"""Verification email delivery."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from urllib.parse import urlencode

from flask import Flask, current_app, render_template
from flask_mail import Mail, Message

from .errors import NotificationError

logger = logging.getLogger(__name__)

VERIFY_EMAIL_PATH = "/api/v1/auth/verify-email"


def build_verification_url(app_url: str, token: str) -> str:
    return f"{app_url.rstrip('/')}{VERIFY_EMAIL_PATH}?{urlencode({'token': token})}"


class Notifier(ABC):
    """Delivers verification links to users."""

    @abstractmethod
    def send_verification(self, email: str, token: str, name: str | None = None) -> None:
        """Send the verification link for ``token`` to ``email``.

        Raises :class:`NotificationError` when delivery fails.
        """


class EmailNotifier(Notifier):
    """Sends verification emails through Flask-Mail.

    Delivery runs on a small worker pool so that a slow SMTP server can
    hold a request for at most ``timeout`` seconds. The same timeout is set
    on the SMTP socket, so a worker whose request gave up is released once
    the server stalls for that long.
    """

    def __init__(
        self,
        mail: Mail,
        *,
        app_url: str,
        app_name: str,
        timeout: float = 10.0,
        max_workers: int = 4,
    ):
        self.mail = mail
        self.app_url = app_url
        self.app_name = app_name
        self.timeout = timeout
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mail")

    def send_verification(self, email: str, token: str, name: str | None = None) -> None:
        context = {
            "name": name or "User",
            "verification_url": build_verification_url(self.app_url, token),
            "app_name": self.app_name,
            "app_url": self.app_url,
            "privacy_url": f"{self.app_url.rstrip('/')}/privacy",
        }
        message = Message(
            subject="Account Confirmation",
            recipients=[email],
            body=render_template("email/verification.txt", **context),
            html=render_template("email/verification.html", **context),
        )
        self._deliver(message)

    def _deliver(self, message: Message) -> None:
        app = current_app._get_current_object()
        future = self._pool.submit(self._send_in_context, app, message)
        try:
            future.result(timeout=self.timeout)
        except FutureTimeout as exc:
            logger.error("Timed out sending email to %s after %.1fs", message.recipients, self.timeout)
            raise NotificationError() from exc
        except Exception as exc:
            logger.exception("Error sending email to %s", message.recipients)
            raise NotificationError() from exc
        logger.info("Email sent to %s", message.recipients)

    def _send_in_context(self, app: Flask, message: Message) -> None:
        with app.app_context():
            with self.mail.connect() as connection:
                # Flask-Mail opens SMTP without a socket timeout; without one a
                # stalled server would pin this worker forever.
                if connection.host is not None:
                    connection.host.sock.settimeout(self.timeout)
                connection.send(message)
