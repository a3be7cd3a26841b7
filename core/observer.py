# =============================================================================
# core/observer.py - Progress reporting for reconciliation runs
# =============================================================================

import logging
from typing import Optional

from core.models import MergedRecord


class ProgressObserver:
    """Receives progress events from a reconciliation run. Default is silent."""

    def cloud_record_indexed(self, count: int, username: str, display_name: str) -> None:
        pass

    def cloud_duplicate(self, username: str, kept: str) -> None:
        pass

    def cloud_fetch_failed(self, error: Exception) -> None:
        pass

    def directory_prefix_started(self, prefix: str) -> None:
        pass

    def directory_prefix_failed(self, prefix: str, error: Exception) -> None:
        pass

    def record_written(self, count: int, record: MergedRecord) -> None:
        pass


class LoggingProgressObserver(ProgressObserver):
    """Writes one progress line per event through the logging module"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("progress")

    def cloud_record_indexed(self, count: int, username: str, display_name: str) -> None:
        self.logger.info(f"[Entra {count}] {username} - {display_name}")

    def cloud_duplicate(self, username: str, kept: str) -> None:
        self.logger.warning(f"Duplicate Entra ID username '{username}', keeping {kept}")

    def cloud_fetch_failed(self, error: Exception) -> None:
        self.logger.warning(f"Failed to retrieve Entra ID users, continuing without cloud data: {error}")

    def directory_prefix_started(self, prefix: str) -> None:
        self.logger.debug(f"Querying AD users starting with '{prefix}'")

    def directory_prefix_failed(self, prefix: str, error: Exception) -> None:
        self.logger.error(f"AD query for prefix '{prefix}' failed, skipping: {error}")

    def record_written(self, count: int, record: MergedRecord) -> None:
        self.logger.info(f"[{count}] {record.username} - {record.display_name} "
                         f"(AD: {record.in_ad}, Entra ID: {record.in_entra})")
