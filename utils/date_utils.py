# =============================================================================
# utils/date_utils.py - Timestamp conversion helpers
# =============================================================================

import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from dateutil.parser import isoparse

logger = logging.getLogger(__name__)

# Windows FILETIME: 100-nanosecond ticks since 1601-01-01 UTC
FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)
FILETIME_NEVER = 0x7FFFFFFFFFFFFFFF

GENERALIZED_TIME = re.compile(r'^(\d{14})(?:[.,]\d+)?(Z|[+-]\d{4})?$')
# ISO 8601 with at least a full calendar date; reduced forms like "2024-05" are rejected
ISO_DATE = re.compile(r'^\d{4}-?\d{2}-?\d{2}(?:[T ]|$)')


def filetime_to_datetime(value: Any) -> Optional[datetime]:
    """Convert a FILETIME integer (or digit string) to an aware UTC datetime"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, bytes):
        value = value.decode('utf-8', errors='ignore')
    try:
        ticks = int(str(value).strip())
    except ValueError:
        logger.debug(f"Ignoring non-numeric FILETIME value: {value!r}")
        return None

    # 0 means "never" for lastLogonTimestamp and "must change" for pwdLastSet
    if ticks <= 0 or ticks >= FILETIME_NEVER:
        return None

    try:
        return FILETIME_EPOCH + timedelta(microseconds=ticks // 10)
    except OverflowError:
        logger.debug(f"FILETIME value out of range: {ticks}")
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse LDAP generalized time or ISO 8601; anything else is treated as invalid"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bytes):
        value = value.decode('utf-8', errors='ignore')
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    match = GENERALIZED_TIME.match(text)
    if match:
        try:
            return datetime.strptime(match.group(1), "%Y%m%d%H%M%S")
        except ValueError:
            return None

    if not ISO_DATE.match(text):
        logger.debug(f"Unparseable timestamp: {text!r}")
        return None

    try:
        return isoparse(text)
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable timestamp: {text!r}")
        return None


def format_date(value: Any, filetime: bool = False) -> str:
    """
    Format a timestamp as YYYY-MM-DD.

    Args:
        value: datetime, date, timestamp string, or FILETIME when filetime=True
        filetime: Treat the value as a Windows FILETIME

    Returns:
        The date string, or "" when the value is absent or invalid
    """
    if filetime:
        parsed = filetime_to_datetime(value)
    else:
        parsed = parse_timestamp(value)

    if parsed is None:
        return ""
    # strftime does not zero-pad years below 1000 on every platform
    return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"
