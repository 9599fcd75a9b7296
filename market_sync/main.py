import csv
import sys
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from market_sync.config import ConfigError, load_config
from market_sync.dataset import CsvDataset
from market_sync.mailbox import GmailMailbox, MailboxError
from market_sync.sync import SyncEngine
from market_sync.utils.logger import setup_logging
from market_sync.watermark import WatermarkStore


def main():
    load_dotenv()
    dry_run = "--dry-run" in sys.argv
    logger = setup_logging()
    logger.info("Starting watermelon market report sync")

    try:
        config = load_config()
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    engine = SyncEngine(
        config=config,
        mailbox=GmailMailbox(config.mailbox, ZoneInfo(config.timezone)),
        dataset=CsvDataset(config.data_dir),
        watermark_store=WatermarkStore(config.state_file),
    )

    try:
        result = engine.run(dry_run=dry_run)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)
    except MailboxError as e:
        logger.error("Could not fetch reports: %s", e)
        sys.exit(1)
    except (OSError, ValueError, csv.Error) as e:
        logger.error("Sync aborted, watermark left unchanged: %s", e)
        sys.exit(1)

    if dry_run:
        logger.info("Dry run: %d of %d report(s) parsed, nothing written", result.parsed, result.fetched)
        return

    logger.info("Market report sync completed, %d row(s) written", result.written)


if __name__ == "__main__":
    main()
