"""Email notification of run results."""

from __future__ import annotations

import mimetypes
import smtplib
import socket
from collections.abc import Iterable
from dataclasses import dataclass
from email.message import EmailMessage
from html import escape
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from filecrc.config import FileCrcConfig

if TYPE_CHECKING:
    from filecrc.runner import RunReport

SMTP_TIMEOUT_SECONDS = 30
PLAIN_SMTP_PORT = 25


class NotificationError(OSError):
    """Raised when a notification cannot be built or delivered."""


@dataclass(slots=True, frozen=True)
class Notification:
    """A fully rendered message ready to hand to a Notifier."""

    sender: str
    to: tuple[str, ...]
    cc: tuple[str, ...]
    subject: str
    html_body: str
    attachments: tuple[Path, ...] = ()


class Notifier(Protocol):
    """Delivery capability for run notifications."""

    def send(self, message: Notification) -> None: ...


class SmtpNotifier:
    """Sends notifications through an SMTP relay with STARTTLS."""

    def __init__(self, server: str, port: int, user: str, password: str) -> None:
        self._server = server
        self._port = port
        self._user = user
        self._password = password

    def send(self, message: Notification) -> None:
        email = build_email(message)
        recipients = [*message.to, *message.cc]
        try:
            with smtplib.SMTP(self._server, self._port, timeout=SMTP_TIMEOUT_SECONDS) as server:
                server.ehlo()
                if self._port != PLAIN_SMTP_PORT:
                    server.starttls()
                    server.ehlo()
                if self._user and self._password:
                    server.login(self._user, self._password)
                server.send_message(email, from_addr=message.sender, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as error:
            raise NotificationError(
                f"Cannot send email through {self._server}:{self._port}: {error}"
            ) from error


def build_email(message: Notification) -> EmailMessage:
    """Render a Notification as a MIME message with its files attached."""
    email = EmailMessage()
    email["From"] = message.sender
    email["To"] = ", ".join(message.to)
    if message.cc:
        email["Cc"] = ", ".join(message.cc)
    email["Subject"] = message.subject
    email.set_content(message.html_body, subtype="html")
    for path in message.attachments:
        content_type, _ = mimetypes.guess_type(path.name)
        maintype, subtype = (content_type or "application/octet-stream").split("/", 1)
        try:
            data = path.read_bytes()
        except OSError as error:
            raise NotificationError(f"Cannot attach '{path}': {error.strerror or error}") from error
        email.add_attachment(data, maintype=maintype, subtype=subtype, filename=path.name)
    return email


def notification_subject(hostname: str, report: RunReport) -> str:
    counters = report.counters
    return (
        f"{hostname} scanned files: {counters['suspicious']} suspicious, "
        f"{counters['total_files']} total, {counters['added']} added, "
        f"{counters['mismatched']} modified {report.deleted} deleted"
    )


def notification_body(report: RunReport, attachments: Iterable[Path]) -> str:
    parts: list[str] = []
    if report.analyze_only:
        parts.append("Analysis only specified, <b>no zip file produced</b><p>")
    if report.error is not None:
        parts.append("Processing completed <b>in error</b><p>")
        parts.append(f"{escape(report.error)}<p>")
    else:
        parts.append("Processing completed <b>without errors</b><p>")
    for path in attachments:
        parts.append(f"File {escape(str(path))} attached<p>")
    return "".join(parts)


def build_run_notification(
    config: FileCrcConfig, report: RunReport, attach: Iterable[str] | None = None
) -> Notification:
    """Assemble the end-of-run message; 'zip' is dropped when nothing was written."""
    kinds = config.email.attach if attach is None else tuple(attach)
    attachments: list[Path] = []
    for kind in kinds:
        if kind == "log":
            if config.log.enabled and config.log.path.is_file():
                attachments.append(config.log.path)
        elif kind == "zip":
            if report.output_path is not None and report.output_path.is_file():
                attachments.append(report.output_path)
        else:
            raise NotificationError(f"Invalid attachment type '{kind}'.")
    return Notification(
        sender=config.email.sender,
        to=config.email.to,
        cc=config.email.cc,
        subject=notification_subject(config.email.hostname or socket.gethostname(), report),
        html_body=notification_body(report, attachments),
        attachments=tuple(attachments),
    )
