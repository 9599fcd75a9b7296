import logging
from typing import Iterable

import requests

from market_sync.mailbox import MailReport
from market_sync.text import normalize

logger = logging.getLogger(__name__)


def send_webhook_message(url: str, title: str, body: str) -> bool:
    """Post a message to a Discord-style webhook. Does not retry."""
    payload = {
        "username": title,
        "content": body,
    }

    try:
        resp = requests.post(url, data=payload, timeout=30)
    except requests.RequestException as e:
        logger.warning("Webhook request to %s failed: %s", url, e)
        return False

    if not resp.ok:
        logger.warning("Webhook %s returned %d: %s", url, resp.status_code, resp.text)
        return False

    return True


def relay_report(urls: Iterable[str], report: MailReport) -> int:
    """Forward a raw report to every webhook. Returns the number delivered."""
    delivered = 0
    for url in urls:
        if send_webhook_message(url, report.subject, normalize(report.body)):
            delivered += 1
    logger.info("Relayed %r to %d webhook(s)", report.subject, delivered)
    return delivered
