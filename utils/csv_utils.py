# =============================================================================
# utils/csv_utils.py - CSV utilities
# =============================================================================

import csv
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from core.models import MergedRecord, OUTPUT_COLUMNS
from core.observer import ProgressObserver


class CSVHandler:
    """Utilities for reading and writing CSV files"""

    @staticmethod
    def read_csv(file_path: str, encoding: str = 'utf-8-sig',
                 delimiter: str = ',') -> Tuple[List[Dict[str, Any]], List[str]]:
        """Read CSV file and return list of dictionaries plus the header row"""
        logger = logging.getLogger(__name__)

        try:
            with open(file_path, 'r', newline='', encoding=encoding) as file:
                dict_reader = csv.DictReader(file, delimiter=delimiter)
                data = list(dict_reader)
                headers = list(dict_reader.fieldnames or [])

            logger.info(f"Successfully read {len(data)} records from {file_path}")
            return data, headers

        except FileNotFoundError:
            logger.error(f"Input file {file_path} not found")
            raise

    @staticmethod
    def write_header(output_path: str, fieldnames: List[str], encoding: str = 'utf-8') -> None:
        """Create or truncate output_path and write only the header row"""
        with open(output_path, 'w', newline='', encoding=encoding) as file:
            writer = csv.DictWriter(file, fieldnames=fieldnames)
            writer.writeheader()

    @staticmethod
    def append_row(output_path: str, row: Dict[str, Any], fieldnames: List[str],
                   encoding: str = 'utf-8') -> None:
        """Append a single row and flush it to disk before returning"""
        with open(output_path, 'a', newline='', encoding=encoding) as file:
            writer = csv.DictWriter(file, fieldnames=fieldnames)
            writer.writerow(row)
            file.flush()
            os.fsync(file.fileno())


class CSVSink:
    """Append-only CSV writer for merged records, one flush per record"""

    def __init__(self, output_path: str, observer: Optional[ProgressObserver] = None,
                 fieldnames: Optional[List[str]] = None, encoding: str = 'utf-8'):
        self.output_path = output_path
        self.observer = observer or ProgressObserver()
        self.fieldnames = list(fieldnames or OUTPUT_COLUMNS)
        self.encoding = encoding
        self.rows_written = 0
        self.logger = logging.getLogger(self.__class__.__name__)

    def open(self) -> None:
        """Write the header row; a run with no records still yields a valid file"""
        CSVHandler.write_header(self.output_path, self.fieldnames, self.encoding)
        self.rows_written = 0
        self.logger.info(f"Initialized output file {self.output_path}")

    def write(self, record: MergedRecord) -> None:
        CSVHandler.append_row(self.output_path, record.to_row(), self.fieldnames, self.encoding)
        self.rows_written += 1
        self.observer.record_written(self.rows_written, record)
