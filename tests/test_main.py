import csv
import os
from unittest.mock import patch

import pytest

from market_sync.mailbox import MailboxError
from market_sync.sync import SyncResult

ENV = {
    "GMAIL_USER": "reports@example.com",
    "GMAIL_APP_PASSWORD": "test",
    "WEBHOOK_URLS": "https://hooks.example.com/a|https://hooks.example.com/b",
}


@patch.dict(os.environ, ENV)
@patch("market_sync.main.load_dotenv")
@patch("market_sync.main.SyncEngine")
def test_main_success(mock_engine_cls, mock_dotenv):
    mock_engine_cls.return_value.run.return_value = SyncResult(fetched=2, parsed=2, written=2)

    from market_sync.main import main
    with patch("sys.argv", ["market-sync"]):
        main()

    mock_engine_cls.return_value.run.assert_called_once_with(dry_run=False)
    config = mock_engine_cls.call_args.kwargs["config"]
    assert config.webhook_urls == ("https://hooks.example.com/a", "https://hooks.example.com/b")


@patch.dict(os.environ, ENV)
@patch("market_sync.main.load_dotenv")
@patch("market_sync.main.SyncEngine")
def test_main_dry_run(mock_engine_cls, mock_dotenv):
    mock_engine_cls.return_value.run.return_value = SyncResult(fetched=1, parsed=1)

    from market_sync.main import main
    with patch("sys.argv", ["market-sync", "--dry-run"]):
        main()

    mock_engine_cls.return_value.run.assert_called_once_with(dry_run=True)


@patch.dict(os.environ, {}, clear=True)
@patch("market_sync.main.load_dotenv")
@patch("market_sync.main.SyncEngine")
def test_main_config_error(mock_engine_cls, mock_dotenv):
    from market_sync.main import main
    with patch("sys.argv", ["market-sync"]), pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 1
    mock_engine_cls.assert_not_called()


@patch.dict(os.environ, ENV)
@patch("market_sync.main.load_dotenv")
@patch("market_sync.main.SyncEngine")
def test_main_fetch_failure(mock_engine_cls, mock_dotenv):
    mock_engine_cls.return_value.run.side_effect = MailboxError("imap down")

    from market_sync.main import main
    with patch("sys.argv", ["market-sync"]), pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 1


@patch.dict(os.environ, ENV)
@patch("market_sync.main.load_dotenv")
@patch("market_sync.main.SyncEngine")
def test_main_write_failure(mock_engine_cls, mock_dotenv):
    mock_engine_cls.return_value.run.side_effect = OSError("disk full")

    from market_sync.main import main
    with patch("sys.argv", ["market-sync"]), pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 1


@patch.dict(os.environ, ENV)
@patch("market_sync.main.load_dotenv")
@patch("market_sync.main.SyncEngine")
def test_main_csv_write_failure(mock_engine_cls, mock_dotenv):
    mock_engine_cls.return_value.run.side_effect = csv.Error("field larger than field limit")

    from market_sync.main import main
    with patch("sys.argv", ["market-sync"]), pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 1
