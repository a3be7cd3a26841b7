# =============================================================================
# reconcilers/hybrid_reconciler.py - AD / Entra ID reconciliation workflow
# =============================================================================

import logging
from typing import Optional, Sequence, Set

from core.models import DuplicatePolicy, ReconciliationStats, normalize_username
from core.observer import ProgressObserver
from reconcilers.cloud_index import build_cloud_index
from reconcilers.directory_scan import DIRECTORY_PREFIXES, DirectoryScanner
from reconcilers.field_resolution import merge_records
from utils.csv_utils import CSVSink


class HybridIdentityReconciler:
    """
    Joins Active Directory users with Entra ID users and streams the result to CSV.

    The cloud side is loaded into an index first; directory users are then read
    prefix by prefix, merged and written one row at a time. Users that exist only
    in Entra ID are counted but never written.
    """

    def __init__(self, directory_client, cloud_client=None,
                 observer: Optional[ProgressObserver] = None,
                 duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
                 prefixes: Sequence[str] = DIRECTORY_PREFIXES,
                 continue_on_error: bool = True,
                 encoding: str = 'utf-8'):
        self.directory_client = directory_client
        self.cloud_client = cloud_client
        self.observer = observer or ProgressObserver()
        self.duplicate_policy = duplicate_policy
        self.prefixes = prefixes
        self.continue_on_error = continue_on_error
        self.encoding = encoding
        self.logger = logging.getLogger(self.__class__.__name__)

    def run(self, output_csv: str) -> ReconciliationStats:
        """Main reconciliation workflow"""
        self.logger.info(f"Starting {self.__class__.__name__} workflow")
        stats = ReconciliationStats()

        # Phase 1: cloud index
        index = build_cloud_index(self.cloud_client, self.observer, self.duplicate_policy)
        stats.cloud_records = len(index)
        stats.duplicate_cloud_usernames = len(index.duplicates)
        stats.cloud_fetch_failed = index.fetch_failed

        # Phase 2: merge and emit
        sink = CSVSink(output_csv, observer=self.observer, encoding=self.encoding)
        sink.open()

        scanner = DirectoryScanner(
            self.directory_client,
            observer=self.observer,
            prefixes=self.prefixes,
            continue_on_error=self.continue_on_error
        )

        seen: Set[str] = set()
        for directory_record in scanner.iter_records():
            stats.directory_records += 1
            cloud_record = index.get(directory_record.username)
            if cloud_record is not None:
                stats.matched += 1
                seen.add(normalize_username(cloud_record.username))
            else:
                stats.directory_only += 1

            sink.write(merge_records(directory_record, cloud_record))

        stats.rows_written = sink.rows_written
        stats.failed_prefixes = list(scanner.failed_prefixes)
        stats.cloud_only = len(set(index.users) - seen)

        self.log_statistics(stats, output_csv)
        return stats

    def log_statistics(self, stats: ReconciliationStats, output_csv: str) -> None:
        """Log reconciliation statistics"""
        self.logger.info(f"Wrote {stats.rows_written} rows to {output_csv}")
        self.logger.info(f"AD users: {stats.directory_records}, Entra ID users: {stats.cloud_records}")
        self.logger.info(f"Matched: {stats.matched} ({stats.match_rate:.1f}%), "
                         f"AD only: {stats.directory_only}, "
                         f"Entra ID only (not exported): {stats.cloud_only}")
        if stats.duplicate_cloud_usernames:
            self.logger.warning(f"Duplicate Entra ID usernames: {stats.duplicate_cloud_usernames} "
                                f"(policy: {self.duplicate_policy.value})")
        if stats.cloud_fetch_failed:
            self.logger.warning("Entra ID data incomplete: bulk query failed")
        if stats.failed_prefixes:
            self.logger.warning(f"Failed AD prefixes: {', '.join(stats.failed_prefixes)}")
