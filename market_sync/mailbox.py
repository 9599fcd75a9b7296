"""Gmail IMAP source of market report mails.

Searches use Gmail's own query syntax through the X-GM-RAW extension so
that label and date filters behave exactly like the Gmail search box.
"""

import email
import imaplib
import logging
import time
from dataclasses import dataclass
from datetime import datetime, tzinfo
from email.header import decode_header
from email.message import Message
from typing import Optional

from market_sync.config import MailboxConfig

logger = logging.getLogger(__name__)


class MailboxError(RuntimeError):
    """Connecting to or searching the mailbox failed."""


@dataclass(frozen=True)
class MailReport:
    received_at: datetime
    subject: str
    body: str


def build_search_query(label: str, watermark: Optional[datetime] = None) -> str:
    """Gmail search query for report mails received after the watermark.

    after: takes epoch seconds so the cut-off does not depend on the
    timezone Gmail uses for calendar dates.
    """
    query = f"label:{label}"
    if watermark is not None:
        query += f" after:{int(watermark.timestamp())}"
    return query


def _decode_header(value: str) -> str:
    if not value:
        return ""
    parts: list[str] = []
    for chunk, encoding in decode_header(value):
        if isinstance(chunk, bytes):
            parts.append(chunk.decode(encoding or "utf-8", errors="replace"))
        else:
            parts.append(chunk)
    return "".join(parts)


def _plain_text_body(msg: Message) -> str:
    parts = msg.walk() if msg.is_multipart() else [msg]
    for part in parts:
        if part.get_content_type() != "text/plain":
            continue
        if "attachment" in str(part.get("Content-Disposition", "")).lower():
            continue
        payload = part.get_payload(decode=True)
        if payload is None:
            continue
        charset = part.get_content_charset() or "utf-8"
        return payload.decode(charset, errors="replace")
    return ""


class GmailMailbox:
    def __init__(self, config: MailboxConfig, tz: tzinfo):
        self.config = config
        self.tz = tz

    def _connect(self) -> imaplib.IMAP4_SSL:
        client = imaplib.IMAP4_SSL(self.config.host)
        client.login(self.config.user, self.config.app_password)
        status, _ = client.select(f'"{self.config.mailbox}"', readonly=True)
        if status != "OK":
            client.logout()
            raise MailboxError(f"Could not select mailbox {self.config.mailbox}")
        return client

    def _received_at(self, fetch_header: bytes) -> datetime:
        """Arrival time from the server's INTERNALDATE, in the configured timezone."""
        local_tuple = imaplib.Internaldate2tuple(fetch_header)
        if local_tuple is None:
            raise MailboxError(f"No INTERNALDATE in fetch response: {fetch_header!r}")
        return datetime.fromtimestamp(time.mktime(local_tuple), tz=self.tz)

    def _to_report(self, fetch_header: bytes, raw_bytes: bytes) -> MailReport:
        msg = email.message_from_bytes(raw_bytes)
        return MailReport(
            received_at=self._received_at(fetch_header),
            subject=_decode_header(msg.get("Subject", "")),
            body=_plain_text_body(msg),
        )

    def search(self, query: str) -> list[MailReport]:
        """Return all mails matching a Gmail query, oldest first."""
        try:
            client = self._connect()
        except (imaplib.IMAP4.error, OSError) as e:
            raise MailboxError(f"IMAP connection to {self.config.host} failed: {e}") from e

        reports: list[MailReport] = []
        try:
            # Non-ASCII labels have to travel as a UTF-8 literal.
            client.literal = query.encode("utf-8")
            status, data = client.uid("SEARCH", "CHARSET", "UTF-8", "X-GM-RAW")
            if status != "OK":
                raise MailboxError(f"IMAP search failed: {status}")
            uids = [x for x in data[0].split() if x]
            logger.info("Mailbox search %r matched %d mail(s)", query, len(uids))

            for uid in uids:
                fetch_status, msg_data = client.uid("FETCH", uid, "(INTERNALDATE RFC822)")
                if fetch_status != "OK":
                    raise MailboxError(f"IMAP fetch of uid {uid.decode(errors='ignore')} failed")
                fetched = next(
                    (part for part in msg_data if isinstance(part, tuple) and len(part) >= 2),
                    None,
                )
                if fetched is None:
                    raise MailboxError(f"IMAP fetch of uid {uid.decode(errors='ignore')} returned no message")
                reports.append(self._to_report(fetched[0], fetched[1]))
        except imaplib.IMAP4.error as e:
            raise MailboxError(f"IMAP search failed: {e}") from e
        finally:
            try:
                client.logout()
            except (imaplib.IMAP4.error, OSError):
                logger.debug("IMAP logout failed", exc_info=True)

        reports.sort(key=lambda r: r.received_at)
        return reports
