"""Task notification e-mails sent through the Microsoft Graph mail API.

The service is independent of the list engine: callers fire a
notification after a mutation and inspect the returned result. Failures
never propagate as exceptions; every call returns a dictionary in the
``{"ok": bool, "status": int, "message": str, "error": dict | None}``
format.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from html import escape
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import NotificationError
from ..settings import NotificationSettings
from ..telemetry import log_event
from ..util.time import format_long_date
from .directory import RecipientDirectory

logger = logging.getLogger(__name__)

DESCRIPTION_LIMIT = 200
DEFAULT_PRIORITY_COLOR = "#6b7280"
PRIORITY_COLORS = {
    "high": "#ef4444",
    "medium": "#eab308",
    "low": "#22c55e",
}


class NotificationType(str, Enum):
    TASK_ASSIGNED = "task_assigned"
    STATUS_IN_PROGRESS = "status_in_progress"
    STATUS_COMPLETED = "status_completed"
    STATUS_CANCELLED = "status_cancelled"
    STATUS_OPEN = "status_open"


class TaskNotification(BaseModel):
    """Request to notify one user about a task event."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    task_id: str = Field(..., alias="taskId", min_length=1)
    notification_type: NotificationType = Field(..., alias="notificationType")
    recipient_user_id: str = Field(..., alias="recipientUserId", min_length=1)
    task_title: str = Field(..., alias="taskTitle", min_length=1)
    task_description: str | None = Field(None, alias="taskDescription")
    task_due_date: str | None = Field(None, alias="taskDueDate")
    task_priority: str | None = Field(None, alias="taskPriority")
    updated_by_name: str | None = Field(None, alias="updatedByName")
    assignee_name: str | None = Field(None, alias="assigneeName")


@dataclass(frozen=True)
class EmailContent:
    heading: str
    message: str
    color: str


_SUBJECTS = {
    NotificationType.TASK_ASSIGNED: "\U0001f4cb New Task Assigned: {title}",
    NotificationType.STATUS_IN_PROGRESS: "\U0001f504 Task In Progress: {title}",
    NotificationType.STATUS_COMPLETED: "✅ Task Completed: {title}",
    NotificationType.STATUS_CANCELLED: "❌ Task Cancelled: {title}",
    NotificationType.STATUS_OPEN: "\U0001f4dd Task Reopened: {title}",
}

# heading, action phrase, accent colour
_CONTENT = {
    NotificationType.TASK_ASSIGNED: (
        "New Task Assigned to You", "has assigned you a new task.", "#3b82f6"
    ),
    NotificationType.STATUS_IN_PROGRESS: (
        "Task Status Updated", "has started working on this task.", "#f59e0b"
    ),
    NotificationType.STATUS_COMPLETED: (
        "Task Completed! \U0001f389", "has completed this task.", "#22c55e"
    ),
    NotificationType.STATUS_CANCELLED: (
        "Task Cancelled", "has cancelled this task.", "#ef4444"
    ),
    NotificationType.STATUS_OPEN: ("Task Reopened", "has reopened this task.", "#6366f1"),
}


def email_subject(kind: NotificationType | str, task_title: str) -> str:
    """Return the subject line for a notification of *kind*."""
    try:
        template = _SUBJECTS[NotificationType(kind)]
    except ValueError:
        template = "\U0001f4cb Task Update: {title}"
    return template.format(title=task_title)


def email_content(kind: NotificationType | str, updated_by_name: str | None = None) -> EmailContent:
    """Return heading, HTML message and accent colour for *kind*."""
    try:
        heading, action, color = _CONTENT[NotificationType(kind)]
    except ValueError:
        return EmailContent("Task Update", "A task has been updated.", "#3b82f6")
    actor = escape(updated_by_name or "Someone")
    return EmailContent(heading, f"<strong>{actor}</strong> {action}", color)


def _truncate(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def render_email_html(
    notification: TaskNotification, recipient_name: str, app_url: str
) -> str:
    """Render the HTML body of *notification* for *recipient_name*."""
    content = email_content(notification.notification_type, notification.updated_by_name)
    color = content.color
    base_url = app_url.rstrip("/")

    details: list[str] = []
    if notification.task_priority:
        priority = notification.task_priority
        dot = PRIORITY_COLORS.get(priority, DEFAULT_PRIORITY_COLOR)
        details.append(
            '<div style="display: inline-flex; align-items: center; gap: 6px;">'
            '<span style="display: inline-block; width: 10px; height: 10px; '
            f'border-radius: 50%; background: {dot};"></span>'
            '<span style="font-size: 13px; color: #4b5563; text-transform: capitalize;">'
            f"{escape(priority)} Priority</span></div>"
        )
    due = format_long_date(notification.task_due_date)
    if due:
        details.append(
            '<div style="display: inline-flex; align-items: center; gap: 6px;">'
            f'<span style="font-size: 13px; color: #4b5563;">\U0001f4c5 Due: {due}</span></div>'
        )
    if notification.assignee_name and notification.notification_type is NotificationType.TASK_ASSIGNED:
        details.append(
            '<div style="display: inline-flex; align-items: center; gap: 6px;">'
            '<span style="font-size: 13px; color: #4b5563;">'
            f"\U0001f464 Assigned to: {escape(notification.assignee_name)}</span></div>"
        )

    description = ""
    if notification.task_description:
        description = (
            '<p style="margin: 0 0 16px; color: #6b7280; font-size: 14px;">'
            f"{escape(_truncate(notification.task_description))}</p>"
        )

    greeting = escape(recipient_name or "there")
    detail_html = "".join(details)

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{content.heading}</title>
</head>
<body style="margin: 0; padding: 0; font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; background-color: #f9fafb;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: linear-gradient(135deg, {color}, {color}dd); padding: 32px; border-radius: 12px 12px 0 0; text-align: center;">
      <h1 style="margin: 0; color: white; font-size: 24px; font-weight: 600;">{content.heading}</h1>
    </div>
    <div style="background: white; padding: 24px; border-radius: 0 0 12px 12px;">
      <p style="margin: 0 0 24px; color: #374151; font-size: 16px;">
        Hello, <strong>{greeting}</strong>! \U0001f44b
      </p>
      <p style="margin: 0 0 24px; color: #4b5563; font-size: 15px;">{content.message}</p>
      <div style="background: #f3f4f6; border-radius: 8px; padding: 20px; margin-bottom: 24px;">
        <h2 style="margin: 0 0 16px; color: #1f2937; font-size: 18px; font-weight: 600;">{escape(notification.task_title)}</h2>
        {description}
        <div style="display: flex; flex-wrap: wrap; gap: 12px;">{detail_html}</div>
      </div>
      <div style="text-align: center; margin-top: 24px;">
        <a href="{base_url}/tasks" style="display: inline-block; padding: 12px 32px; background: {color}; color: white; text-decoration: none; border-radius: 8px;">View Task →</a>
      </div>
    </div>
    <div style="text-align: center; padding: 24px;">
      <p style="margin: 0; font-size: 12px; color: #9ca3af;">
        You're receiving this because of task notifications.<br>
        <a href="{base_url}/settings" style="color: #6b7280; text-decoration: underline;">Manage notification settings</a>
      </p>
    </div>
  </div>
</body>
</html>
"""


def _result(
    ok: bool,
    status: int,
    message: str,
    error: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "ok": ok,
        "status": status,
        "message": message,
        "error": dict(error) if error is not None else None,
    }


class NotificationService:
    """Look up the recipient and deliver task e-mails via Graph."""

    def __init__(
        self,
        settings: NotificationSettings,
        directory: RecipientDirectory,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Use *settings* for credentials and *directory* for recipients.

        *transport* is handed to :class:`httpx.AsyncClient`; tests pass an
        :class:`httpx.MockTransport`.
        """
        self.settings = settings
        self._directory = directory
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.timeout_seconds),
            transport=self._transport,
        )

    # ------------------------------------------------------------------
    async def send(self, request: TaskNotification | Mapping[str, Any]) -> dict[str, Any]:
        """Send one notification and return the structured outcome."""
        start = time.monotonic()
        try:
            notification = (
                request
                if isinstance(request, TaskNotification)
                else TaskNotification.model_validate(request)
            )
        except ValidationError as exc:
            logger.warning("Rejected task notification: %s", exc)
            error = NotificationError("invalid_request", "Missing required fields", status=400)
            return _result(False, error.status, error.message, error.to_payload())

        payload = {
            "task_id": notification.task_id,
            "type": notification.notification_type.value,
            "recipient": notification.recipient_user_id,
        }
        log_event("NOTIFICATION_REQUEST", payload)
        try:
            result = await self._deliver(notification)
        except NotificationError as exc:
            log_event(
                "NOTIFICATION_FAILED",
                {**payload, "error": exc.to_payload()},
                start_time=start,
                level=logging.ERROR,
            )
            return _result(False, exc.status, exc.message, exc.to_payload())
        except httpx.HTTPError as exc:
            error = NotificationError("transport_error", str(exc))
            log_event(
                "NOTIFICATION_FAILED",
                {**payload, "error": error.to_payload()},
                start_time=start,
                level=logging.ERROR,
            )
            return _result(False, error.status, error.message, error.to_payload())
        log_event(
            "NOTIFICATION_SENT" if result["ok"] else "NOTIFICATION_SKIPPED",
            {**payload, "message": result["message"]},
            start_time=start,
        )
        return result

    async def _deliver(self, notification: TaskNotification) -> dict[str, Any]:
        user_id = notification.recipient_user_id
        try:
            profile = await self._directory.get_profile(user_id)
        except Exception as exc:
            raise NotificationError("directory_error", str(exc)) from exc
        if profile is None:
            raise NotificationError("recipient_not_found", "Recipient not found", status=404)
        if not profile.email:
            logger.info("No email found for user %s", user_id)
            return _result(False, 200, "Recipient has no email")

        try:
            preferences = await self._directory.get_preferences(user_id)
        except Exception as exc:
            raise NotificationError("directory_error", str(exc)) from exc
        if preferences is not None and not preferences.allows_task_email:
            logger.info("User %s has task email notifications disabled", user_id)
            return _result(False, 200, "User has notifications disabled")

        sender = self.settings.sender_email or await self._directory.default_sender()
        if not sender:
            raise NotificationError("sender_not_configured", "Sender email not configured")

        subject = email_subject(notification.notification_type, notification.task_title)
        body = render_email_html(notification, profile.full_name, self.settings.app_url)
        async with self._client() as client:
            token = await self._access_token(client)
            await self._send_mail(client, token, sender, profile.email, profile.full_name, subject, body)
        logger.info("Task notification email sent to %s", profile.email)
        return _result(True, 200, "Notification email sent")

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        """Exchange client credentials for a bearer token."""
        settings = self.settings
        if not settings.has_credentials:
            raise NotificationError("credentials_missing", "Azure email credentials not configured")
        url = f"{settings.authority_url.rstrip('/')}/{settings.tenant_id}/oauth2/v2.0/token"
        response = await client.post(
            url,
            data={
                "client_id": settings.client_id,
                "client_secret": settings.client_secret,
                "scope": settings.scope,
                "grant_type": "client_credentials",
            },
        )
        if not response.is_success:
            logger.error("Token request failed: %s", response.text)
            raise NotificationError(
                "token_error", f"Failed to get Azure access token: {response.status_code}"
            )
        try:
            token = response.json()["access_token"]
        except (ValueError, KeyError, TypeError):
            raise NotificationError("token_error", "Token response without access_token") from None
        return str(token)

    async def _send_mail(
        self,
        client: httpx.AsyncClient,
        token: str,
        sender: str,
        to: str,
        to_name: str,
        subject: str,
        body: str,
    ) -> None:
        url = f"{self.settings.graph_url.rstrip('/')}/users/{sender}/sendMail"
        message = {
            "message": {
                "subject": subject,
                "body": {"contentType": "HTML", "content": body},
                "toRecipients": [{"emailAddress": {"address": to, "name": to_name or to}}],
            },
            "saveToSentItems": True,
        }
        headers = {"Authorization": f"Bearer {token}"}
        log_event(
            "GRAPH_REQUEST",
            {"url": url, "headers": headers, "subject": subject},
            level=logging.DEBUG,
        )
        response = await client.post(url, json=message, headers=headers)
        if not response.is_success:
            logger.error("Graph API error: %s", response.text)
            raise NotificationError(
                "send_failed", f"Failed to send email via Graph API: {response.status_code}"
            )
