"""CSV persistence layer for parsed market reports.

One CSV file per target year (data/2024.csv, ...), created from
data/TEMPLATE.csv the first time a report targets that year. Rows are only
ever appended.
"""

import csv
import logging
import os
import shutil
from typing import Optional

from market_sync.config import ConfigError
from market_sync.parser import MarketReport

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "target_date", "s4", "s5", "sl", "sm", "y4", "y5", "yl", "ym",
    "average", "quantity", "received_at",
]
TEMPLATE_NAME = "TEMPLATE.csv"


def _cell(value: Optional[int]) -> str:
    return "" if value is None else str(value)


def to_row(report: MarketReport) -> list[str]:
    """Flatten a report into the fixed 12-column row layout."""
    return [
        report.target_date.strftime("%Y/%m/%d"),
        *(_cell(v) for v in report.price.categories()),
        _cell(report.price.average),
        _cell(report.quantity),
        report.received_at.strftime("%Y/%m/%d %H:%M:%S"),
    ]


class CsvDataset:
    def __init__(self, data_dir: str, template_name: str = TEMPLATE_NAME):
        self.data_dir = data_dir
        self.template_path = os.path.join(data_dir, template_name)

    def _partition_path(self, year: int) -> str:
        return os.path.join(self.data_dir, f"{year:04d}.csv")

    def get_partition(self, year: int) -> Optional[str]:
        """Path of the year's CSV, or None if it has not been created yet."""
        path = self._partition_path(year)
        return path if os.path.exists(path) else None

    def create_partition_from_template(self, year: int) -> str:
        """Copy the template into a new partition for the given year."""
        if not os.path.exists(self.template_path):
            raise ConfigError(f"Partition template not found: {self.template_path}")
        path = self._partition_path(year)
        shutil.copyfile(self.template_path, path)
        logger.info("Created partition %s from %s", path, self.template_path)
        return path

    def append_row(self, partition: str, row: list[str]) -> None:
        with open(partition, "a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(row)

    def last_row_index(self, partition: str) -> int:
        """1-based index of the last row, header included (0 for an empty file)."""
        with open(partition, "r", newline="", encoding="utf-8") as f:
            return sum(1 for _ in csv.reader(f))
