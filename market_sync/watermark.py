import json
import logging
import os
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)

WATERMARK_KEY = "search_mail_date"


class WatermarkStore:
    """Small JSON file of ISO-8601 timestamps keyed by name."""

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def read(self, key: str = WATERMARK_KEY) -> Optional[datetime]:
        value = self._load().get(key)
        if not value:
            return None
        return datetime.fromisoformat(value)

    def write(self, key: str, value: datetime) -> None:
        state = self._load()
        state[key] = value.isoformat()
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2)
        logger.info("Saved %s = %s to %s", key, state[key], self.path)
