from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from market_sync.config import AppConfig, MailboxConfig
from market_sync.mailbox import MailReport

JST = ZoneInfo("Asia/Tokyo")

TEMPLATE_CSV = (
    "target_date,s4,s5,sl,sm,y4,y5,yl,ym,average,quantity,received_at\n"
)


def _body(month, day, prices=("2800円", "2500円", "2200円", "1900円",
                               "2400円", "2100円", "1800円", "1500円"),
          average="2150円", quantity="1200箱"):
    lines = [f"{month}月{day}日出荷", ""]
    lines += list(prices)
    lines += ["平均単価", average, "", "出荷箱数", quantity]
    return "\r\n".join(lines)


@pytest.fixture
def report_body():
    return _body


@pytest.fixture
def mail_report():
    def _make(received_at, month=None, day=None, body=None, subject="スイカ市況"):
        if body is None:
            body = _body(month, day)
        return MailReport(received_at=received_at, subject=subject, body=body)
    return _make


@pytest.fixture
def jst():
    return JST


@pytest.fixture
def mailbox_config():
    return MailboxConfig(
        user="reports@example.com",
        app_password="app-password",
    )


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    (path / "TEMPLATE.csv").write_text(TEMPLATE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def app_config(mailbox_config, data_dir, tmp_path):
    return AppConfig(
        mailbox=mailbox_config,
        webhook_urls=("https://hooks.example.com/a", "https://hooks.example.com/b"),
        data_dir=str(data_dir),
        state_file=str(tmp_path / "state.json"),
    )


@pytest.fixture
def received():
    def _make(*args):
        return datetime(*args, tzinfo=JST)
    return _make
