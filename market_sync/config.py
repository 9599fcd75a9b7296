import os
from dataclasses import dataclass

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class ConfigError(ValueError):
    """Missing or unusable settings. Fatal before any report is processed."""


@dataclass(frozen=True)
class MailboxConfig:
    user: str
    app_password: str
    host: str = "imap.gmail.com"
    mailbox: str = "[Gmail]/All Mail"
    label: str = "市況-スイカ"


@dataclass(frozen=True)
class AppConfig:
    mailbox: MailboxConfig
    webhook_urls: tuple[str, ...]
    data_dir: str = os.path.join(ROOT_DIR, "data")
    state_file: str = os.path.join(ROOT_DIR, "state.json")
    timezone: str = "Asia/Tokyo"


def load_config() -> AppConfig:
    """Load and validate all configuration from environment variables."""
    missing = []

    def _get(name: str) -> str:
        val = os.environ.get(name, "").strip()
        if not val:
            missing.append(name)
            return ""
        return val

    def _opt(name: str, default: str) -> str:
        return os.environ.get(name, "").strip() or default

    mailbox = MailboxConfig(
        user=_get("GMAIL_USER"),
        app_password=_get("GMAIL_APP_PASSWORD"),
        host=_opt("IMAP_HOST", MailboxConfig.host),
        mailbox=_opt("IMAP_MAILBOX", MailboxConfig.mailbox),
        label=_opt("MARKET_LABEL", MailboxConfig.label),
    )

    webhook_urls = tuple(
        url.strip() for url in _get("WEBHOOK_URLS").split("|") if url.strip()
    )

    if missing:
        raise ConfigError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return AppConfig(
        mailbox=mailbox,
        webhook_urls=webhook_urls,
        data_dir=_opt("DATA_DIR", AppConfig.data_dir),
        state_file=_opt("STATE_FILE", AppConfig.state_file),
        timezone=_opt("TIMEZONE", AppConfig.timezone),
    )
