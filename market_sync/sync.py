"""Incremental sync of market report mails into the yearly CSV partitions.

Each run only looks at mails received after the stored watermark and moves
the watermark forward once every parsed report has been written. A run that
fails part-way leaves the watermark where it was, so the next run picks the
same mails up again.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from market_sync.config import AppConfig
from market_sync.dataset import CsvDataset, to_row
from market_sync.mailbox import GmailMailbox, MailReport, build_search_query
from market_sync.parser import MarketReport, parse_report
from market_sync.relay import relay_report
from market_sync.watermark import WATERMARK_KEY, WatermarkStore

logger = logging.getLogger(__name__)

Relay = Callable[[Iterable[str], MailReport], object]


@dataclass
class SyncResult:
    fetched: int = 0
    parsed: int = 0
    skipped: int = 0
    written: int = 0
    watermark: Optional[datetime] = None


class SyncEngine:
    def __init__(
        self,
        config: AppConfig,
        mailbox: GmailMailbox,
        dataset: CsvDataset,
        watermark_store: WatermarkStore,
        relay: Relay = relay_report,
    ):
        self.config = config
        self.mailbox = mailbox
        self.dataset = dataset
        self.watermark_store = watermark_store
        self.relay = relay

    def fetch(self, watermark: Optional[datetime]) -> list[MailReport]:
        """Mails received strictly after the watermark, oldest first."""
        query = build_search_query(self.config.mailbox.label, watermark)
        reports = self.mailbox.search(query)
        if watermark is not None:
            reports = [r for r in reports if r.received_at > watermark]
        reports.sort(key=lambda r: r.received_at)
        logger.info("Search %r returned %d new report(s)", query, len(reports))
        return reports

    def _relay(self, report: MailReport) -> None:
        try:
            self.relay(self.config.webhook_urls, report)
        except Exception as e:
            logger.warning("Relay of %r failed (ignored): %s", report.subject, e)

    def write(self, record: MarketReport) -> None:
        year = record.target_date.year
        partition = self.dataset.get_partition(year)
        if partition is None:
            partition = self.dataset.create_partition_from_template(year)
        self.dataset.append_row(partition, to_row(record))
        logger.info(
            "Wrote %s to %s row %d",
            record.target_date, partition, self.dataset.last_row_index(partition),
        )

    def run(self, dry_run: bool = False) -> SyncResult:
        result = SyncResult()
        watermark = self.watermark_store.read(WATERMARK_KEY)
        logger.info("Current watermark: %s", watermark.isoformat() if watermark else "none")

        reports = self.fetch(watermark)
        result.fetched = len(reports)

        records: list[MarketReport] = []
        latest: Optional[datetime] = None
        for report in reports:
            if not dry_run:
                self._relay(report)

            latest = report.received_at
            record = parse_report(report.body, report.received_at)
            if record is None:
                logger.warning(
                    "Skipping %r received %s: not a market report",
                    report.subject, report.received_at,
                )
                result.skipped += 1
                continue
            records.append(record)

        result.parsed = len(records)
        records.sort(key=lambda r: r.target_date)

        if dry_run:
            for record in records:
                logger.info("Dry run: %s", to_row(record))
            logger.info("Dry run: watermark would move to %s", latest)
            return result

        for record in records:
            try:
                self.write(record)
            except Exception:
                logger.error(
                    "Write of %s failed after %d of %d record(s); watermark not advanced",
                    record.target_date, result.written, len(records),
                )
                raise
            result.written += 1

        if latest is not None:
            self.watermark_store.write(WATERMARK_KEY, latest)
            result.watermark = latest

        logger.info(
            "Sync finished: %d fetched, %d parsed, %d skipped, %d written",
            result.fetched, result.parsed, result.skipped, result.written,
        )
        return result
