# =============================================================================
# reconcilers/directory_scan.py - Prefix-partitioned directory iteration
# =============================================================================

import logging
import string
from typing import Iterator, List, Optional, Sequence

from core.models import DirectoryRecord
from core.observer import ProgressObserver

# a-z then 0-9; one query per prefix keeps each result set under the server size limit
DIRECTORY_PREFIXES: List[str] = list(string.ascii_lowercase) + list(string.digits)


class DirectoryScanner:
    """Iterates directory users one prefix at a time"""

    def __init__(self, directory_client, observer: Optional[ProgressObserver] = None,
                 prefixes: Sequence[str] = DIRECTORY_PREFIXES, continue_on_error: bool = True):
        self.directory_client = directory_client
        self.observer = observer or ProgressObserver()
        self.prefixes = list(prefixes)
        self.continue_on_error = continue_on_error
        self.failed_prefixes: List[str] = []
        self.logger = logging.getLogger(self.__class__.__name__)

    def iter_records(self) -> Iterator[DirectoryRecord]:
        """Yield every directory record; a failed prefix is logged and skipped"""
        self.failed_prefixes = []

        for prefix in self.prefixes:
            self.observer.directory_prefix_started(prefix)
            try:
                for record in self.directory_client.list_users(prefix, attributes="*"):
                    yield record
            except Exception as e:
                if not self.continue_on_error:
                    raise
                self.failed_prefixes.append(prefix)
                self.logger.error(f"Directory query for prefix '{prefix}' failed: {e}")
                self.observer.directory_prefix_failed(prefix, e)

        if self.failed_prefixes:
            self.logger.warning(f"Directory prefixes skipped after errors: {self.failed_prefixes}")
