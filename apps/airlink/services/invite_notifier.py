"""Out-of-band session invites by e-mail.

The notifier only asks the registry whether a code is currently valid; it
never creates, joins or mutates sessions. Unless ``INVITE_SEND_ENABLED`` is
set and SMTP is configured, invites are reported as ``skipped``.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from airlink.core.exceptions import SessionNotFound
from airlink.core.settings import Settings
from airlink.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


@dataclass
class InviteOutcome:
    code: str
    email: str
    status: str  # "sent" | "skipped" | "failed"
    error: str | None = None


class InviteNotifier:
    def __init__(self, registry: SessionRegistry, settings: Settings) -> None:
        self._registry = registry
        self._settings = settings

    @property
    def enabled(self) -> bool:
        s = self._settings
        return bool(s.invite_send_enabled and s.smtp_host and s.smtp_from_email)

    def send_invite(self, code: str, email: str, *, note: str | None = None) -> InviteOutcome:
        if not self._registry.is_valid(code):
            raise SessionNotFound(code)

        if not self.enabled:
            logger.info("Invite for session %s to %s skipped (sending disabled)", code, email)
            return InviteOutcome(code=code, email=email, status="skipped", error="sending disabled")

        subject, body = self.compose(code, note=note)
        try:
            self._send_via_smtp(to_email=email, subject=subject, body=body)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Invite for session %s to %s failed: %s", code, email, exc)
            return InviteOutcome(code=code, email=email, status="failed", error=str(exc))

        logger.info("Invite for session %s sent to %s", code, email)
        return InviteOutcome(code=code, email=email, status="sent")

    def compose(self, code: str, *, note: str | None = None) -> tuple[str, str]:
        app_name = self._settings.app_name
        subject = f"{app_name}: join transfer session {code}"
        lines = [f"You have been invited to a {app_name} file-transfer session.", ""]
        if note:
            lines += [note.strip(), ""]
        lines.append(f"Session code: {code}")
        if self._settings.public_base_url:
            base = self._settings.public_base_url.rstrip("/")
            lines.append(f"Open {base}/?code={code} to join.")
        lines += ["", "The session ends when everyone has left."]
        return subject, "\n".join(lines)

    def _send_via_smtp(self, *, to_email: str, subject: str, body: str) -> None:
        s = self._settings
        msg = EmailMessage()
        msg["From"] = s.smtp_from_email
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(body)

        host = s.smtp_host
        if not host:
            raise RuntimeError("SMTP_HOST not configured")

        server = smtplib.SMTP(host, s.smtp_port, timeout=20)
        try:
            if s.smtp_use_tls:
                server.starttls()
            if s.smtp_username and s.smtp_password:
                server.login(s.smtp_username, s.smtp_password.get_secret_value())
            server.send_message(msg)
        finally:
            try:
                server.quit()
            except Exception:  # pragma: no cover - best effort cleanup
                pass


__all__ = ["InviteNotifier", "InviteOutcome"]
