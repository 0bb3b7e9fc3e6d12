"""Readiness notifications — Slack and Telegram webhooks.

``ReadinessNotifier`` is a checklist listener that fires when the overall
verdict changes (e.g. safe → error, error → safe). Webhook calls run on a
small thread pool so listener dispatch never waits on the network.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

import httpx

from src.checklist.severity import Severity
from src.config import settings

if TYPE_CHECKING:
    from src.checklist.item import ChecklistItem
    from src.checklist.manager import ChecklistManager

logger = logging.getLogger(__name__)


_EMOJI = {
    Severity.SAFE: "✅",
    Severity.PENDING: "⏳",
    Severity.WARNING: "⚠️",
    Severity.ERROR: "🔴",
}


class ReadinessNotifier:
    """Posts overall-state transitions to Slack / Telegram."""

    def __init__(
        self,
        slack_webhook: str = "",
        telegram_token: str = "",
        telegram_chat_id: str = "",
    ) -> None:
        self.slack_webhook = slack_webhook or settings.slack_webhook_url
        self.telegram_token = telegram_token or settings.telegram_bot_token
        self.telegram_chat_id = telegram_chat_id or settings.telegram_chat_id
        self._enabled = bool(self.slack_webhook or (self.telegram_token and self.telegram_chat_id))
        self._last_state: Severity | None = None
        self._closed = False
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="notify")

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def status(self) -> dict[str, Any]:
        return {
            "enabled": self._enabled,
            "slack_configured": bool(self.slack_webhook),
            "telegram_configured": bool(self.telegram_token and self.telegram_chat_id),
        }

    # -- listener ----------------------------------------------------------------

    def on_item_changed(self, manager: ChecklistManager, item: ChecklistItem) -> None:
        overall = manager.overall_state
        with self._lock:
            previous, self._last_state = self._last_state, overall
        if previous == overall:
            return
        if previous is None and overall == Severity.SAFE:
            return  # nothing to report on a clean first verdict

        text = (
            f"{_EMOJI[overall]} *Checklist {overall.label.upper()}*\n"
            f"Item: `{item.name}` is {item.report_state().label}\n"
        )
        description = item.report_description()
        if description:
            text += f"Detail: {description}\n"
        self.send(text)

    # -- dispatch ------------------------------------------------------------------

    def send(self, text: str) -> list[Future[None]]:
        """Queue ``text`` to every configured channel (fire-and-forget)."""
        if not self._enabled:
            return []
        futures = []
        with self._lock:
            if self._closed:
                logger.debug("Notifier closed; dropping notification")
                return []
            if self.slack_webhook:
                futures.append(self._executor.submit(self._send_slack, text))
            if self.telegram_token and self.telegram_chat_id:
                futures.append(self._executor.submit(self._send_telegram, text))
        return futures

    def close(self) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)

    def _send_slack(self, text: str) -> None:
        """POST to Slack incoming webhook."""
        try:
            with httpx.Client(timeout=10) as client:
                resp = client.post(self.slack_webhook, json={"text": text, "mrkdwn": True})
            if resp.status_code != 200:
                logger.warning("Slack webhook returned %d: %s", resp.status_code, resp.text[:200])
        except Exception as exc:
            logger.warning("Slack notification failed: %s", exc)

    def _send_telegram(self, text: str) -> None:
        """POST to Telegram Bot API."""
        url = f"https://api.telegram.org/bot{self.telegram_token}/sendMessage"
        try:
            with httpx.Client(timeout=10) as client:
                resp = client.post(
                    url,
                    json={"chat_id": self.telegram_chat_id, "text": text, "parse_mode": "Markdown"},
                )
            if resp.status_code != 200:
                logger.warning("Telegram API returned %d: %s", resp.status_code, resp.text[:200])
        except Exception as exc:
            logger.warning("Telegram notification failed: %s", exc)
