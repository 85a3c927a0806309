"""
Telegram Bot API notifications for build progress.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from kbuildctl.core.config import Settings
from kbuildctl.core.settings import TELEGRAM_API_URL, TELEGRAM_TIMEOUT, TELEGRAM_UPLOAD_TIMEOUT
from kbuildctl.core.status import StatusPrinter

logger = logging.getLogger(__name__)


def code_span(text: str) -> str:
    """Wrap text in a Markdown code span so underscores and asterisks stay literal."""
    return "`" + text.replace("`", "'") + "`"


class TelegramNotifier:
    """Best-effort Telegram messages; failures are logged, never raised."""

    def __init__(
        self,
        settings: Settings,
        session: Optional[requests.Session] = None,
        status: Optional[StatusPrinter] = None,
        base_url: str = TELEGRAM_API_URL,
    ):
        """Initialize the notifier.

        Args:
            settings: Source of the bot token, chat ID and enable flag
            session: HTTP session to use (a new one is created if omitted)
            status: Printer for upload progress lines
            base_url: Telegram Bot API root
        """
        self.settings = settings
        self.session = session or requests.Session()
        self.status = status or StatusPrinter()
        self.base_url = base_url.rstrip("/")
        self._disabled = False

    @property
    def enabled(self) -> bool:
        return not self._disabled and self.settings.telegram_enabled

    def disable(self) -> None:
        self._disabled = True

    def _url(self, method: str) -> str:
        return f"{self.base_url}/bot{self.settings.bot_token}/{method}"

    @staticmethod
    def _check(response: requests.Response) -> Dict[str, Any]:
        response.raise_for_status()
        data = response.json()
        if not data.get("ok"):
            raise requests.RequestException(data.get("description", "Telegram API error"))
        return data

    def send(self, title: str, message: str) -> bool:
        """Send a Markdown message. Returns True if Telegram accepted it."""
        if not self.enabled:
            return False

        text = f"{title}\n\n{message}" if title else message
        payload = {
            "chat_id": self.settings.telegram_chat_id,
            "text": text,
            "parse_mode": "Markdown",
            "disable_web_page_preview": "true",
        }
        try:
            response = self.session.post(self._url("sendMessage"), data=payload, timeout=TELEGRAM_TIMEOUT)
            self._check(response)
        except (requests.RequestException, ValueError) as e:
            logger.warning("Telegram sendMessage failed: %s", e)
            return False
        return True

    def upload(self, path: Path, caption: str) -> bool:
        """Upload a file as a document with a Markdown caption."""
        if not self.enabled:
            return False

        self.status.info("Uploading to Telegram...")
        data = {
            "chat_id": self.settings.telegram_chat_id,
            "caption": caption,
            "parse_mode": "Markdown",
        }
        try:
            with open(path, "rb") as fh:
                files = {"document": (Path(path).name, fh)}
                response = self.session.post(
                    self._url("sendDocument"),
                    data=data,
                    files=files,
                    timeout=TELEGRAM_UPLOAD_TIMEOUT,
                )
            self._check(response)
        except (OSError, requests.RequestException, ValueError) as e:
            logger.warning("Telegram sendDocument failed: %s", e)
            self.status.warning("Failed to upload to Telegram")
            return False

        self.status.success("Uploaded to Telegram")
        return True
