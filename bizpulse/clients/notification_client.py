"""
Notification collaborator: email (Resend) and Slack incoming webhooks.

Fire-and-forget from the pipeline's perspective: delivery failures are logged
and reported per channel, never raised.
"""
import json
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from bizpulse.clients.http import HttpClient
from bizpulse.config import (
    EMAIL_FROM,
    EMAIL_TO,
    RESEND_API_KEY,
    RESEND_URL,
    SLACK_CHANNEL,
    SLACK_WEBHOOK_URL,
)
from bizpulse.errors import PipelineError
from bizpulse.models import Notification, WelcomeMessage

CHANNELS = ("email", "slack")

PRIORITY_COLORS = {
    "low": "#36a64f",
    "normal": "#2196F3",
    "high": "#ff9800",
    "critical": "#f44336",
}


class NotificationClient(HttpClient):
    source_name = "notifications"

    def __init__(
        self,
        slack_webhook_url: Optional[str] = SLACK_WEBHOOK_URL,
        slack_channel: Optional[str] = SLACK_CHANNEL,
        resend_api_key: Optional[str] = RESEND_API_KEY,
        email_from: str = EMAIL_FROM,
        email_to: str = EMAIL_TO,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.slack_webhook_url = slack_webhook_url
        self.slack_channel = slack_channel
        self.resend_api_key = resend_api_key
        self.email_from = email_from
        self.email_to = email_to

    async def send(self, notification: Notification, channels: Sequence[str] = ("email",)) -> Dict[str, bool]:
        """
        Deliver a notification on each requested channel ("all" fans out to every channel).

        Returns:
            Dict[str, bool]: Delivery outcome per channel.
        """
        targets: List[str] = list(CHANNELS) if "all" in channels else list(channels)
        outcomes: Dict[str, bool] = {}
        for channel in targets:
            try:
                if channel == "email":
                    outcomes[channel] = await self._send_email(notification)
                elif channel == "slack":
                    outcomes[channel] = await self._send_slack(notification)
                else:
                    logger.warning(f"Unknown notification channel '{channel}'")
                    outcomes[channel] = False
            except PipelineError as e:
                logger.error(f"Failed to send {channel} notification '{notification.subject}': {e}")
                outcomes[channel] = False
        return outcomes

    def _email_body(self, notification: Notification) -> str:
        lines = [
            notification.subject,
            "",
            notification.message,
            "",
            "---",
            f"Priority: {notification.priority.upper()}",
            f"Timestamp: {datetime.now().isoformat()}",
        ]
        if notification.tags:
            lines.append(f"Tags: {', '.join(notification.tags)}")
        if notification.data:
            lines.append("")
            lines.append("Additional Data:")
            lines.append(json.dumps(notification.data, indent=2, ensure_ascii=False, default=str))
        return "\n".join(lines)

    async def _send_email(self, notification: Notification) -> bool:
        recipient = notification.recipient or self.email_to
        body = self._email_body(notification)
        if not self.resend_api_key:
            # No provider configured: the log is the delivery
            logger.info(f"📧 EMAIL to {recipient} | {notification.subject}\n{body}")
            return True
        await self._request_json(
            "POST",
            RESEND_URL,
            json={"from": self.email_from, "to": [recipient], "subject": notification.subject, "text": body},
            headers={"Authorization": f"Bearer {self.resend_api_key}"},
        )
        logger.debug(f"✅ Email sent to {recipient}")
        return True

    async def _send_slack(self, notification: Notification) -> bool:
        if not self.slack_webhook_url:
            logger.warning("Slack webhook URL not configured, skipping Slack notification")
            return False
        fields: List[Dict[str, Any]] = [
            {"title": "Priority", "value": notification.priority.upper(), "short": True},
            {"title": "Timestamp", "value": datetime.now().isoformat(), "short": True},
        ]
        if notification.tags:
            fields.append({"title": "Tags", "value": ", ".join(notification.tags), "short": False})
        payload = {
            "channel": self.slack_channel,
            "username": "Business Pulse",
            "attachments": [{
                "color": PRIORITY_COLORS.get(notification.priority, PRIORITY_COLORS["normal"]),
                "title": notification.subject,
                "text": notification.message,
                "fields": fields,
                "ts": int(time.time()),
            }],
        }
        await self._request_text("POST", self.slack_webhook_url, json=payload)
        logger.debug("✅ Slack notification sent")
        return True

    async def notify_critical_error(self, system: str, error: str,
                                    context: Optional[Dict[str, Any]] = None) -> Dict[str, bool]:
        return await self.send(Notification(
            subject=f"Critical Error in {system}",
            message=f"A critical error has occurred in {system}:\n\n{error}",
            priority="critical",
            tags=["critical-error", system],
            data=context,
        ), channels=("all",))

    async def notify_batch_summary(self, processed: int, successful: int, failed: int,
                                   skipped: int, success_rate: float) -> Dict[str, bool]:
        return await self.send(Notification(
            subject=f"Batch Summary - {datetime.now():%Y-%m-%d}",
            message=(
                f"Businesses Processed: {processed}\n"
                f"Content Generated: {successful}\n"
                f"Failed: {failed}\n"
                f"Skipped: {skipped}\n"
                f"Success Rate: {success_rate * 100:.2f}%"
            ),
            priority="high" if success_rate < 0.9 else "normal",
            tags=["batch-summary"],
            data={"processed": processed, "successful": successful, "failed": failed,
                  "skipped": skipped, "success_rate": success_rate},
        ))

    async def send_welcome_message(self, recipient: str, message: WelcomeMessage) -> Dict[str, bool]:
        return await self.send(Notification(
            subject=message.subject,
            message=message.body,
            priority="low",
            tags=["welcome"],
            recipient=recipient,
        ))
