# =============================================================================
# reconcilers/cloud_index.py - Entra ID username index
# =============================================================================

import logging
from types import MappingProxyType
from typing import Dict, List, Optional

from core.entra_client import CLOUD_ATTRIBUTES
from core.models import CloudIndex, CloudRecord, DuplicatePolicy, normalize_username
from core.observer import ProgressObserver

logger = logging.getLogger(__name__)


def build_cloud_index(cloud_client, observer: Optional[ProgressObserver] = None,
                      duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
                      attributes: Optional[List[str]] = None) -> CloudIndex:
    """
    Load every cloud user into a read-only index keyed by normalized username.

    A failed bulk query does not raise: the error is reported to the observer
    and the index holds whatever was read before the failure.

    Args:
        cloud_client: Object with list_all_users(attributes), or None to skip the cloud source
        observer: Progress observer
        duplicate_policy: Which record to keep when two principals share a username
        attributes: Attributes to request, defaults to CLOUD_ATTRIBUTES

    Returns:
        CloudIndex that is never mutated after this call
    """
    observer = observer or ProgressObserver()
    users: Dict[str, CloudRecord] = {}
    duplicates: List[str] = []
    error: Optional[str] = None

    if cloud_client is None:
        logger.warning("No Entra ID client configured, building empty cloud index")
        return CloudIndex(users=MappingProxyType(users))

    count = 0
    try:
        for record in cloud_client.list_all_users(attributes or CLOUD_ATTRIBUTES):
            count += 1
            observer.cloud_record_indexed(count, record.username, record.display_name)

            key = normalize_username(record.username)
            existing = users.get(key)
            if existing is not None:
                duplicates.append(key)
                if duplicate_policy is DuplicatePolicy.FIRST_WINS:
                    observer.cloud_duplicate(key, existing.user_principal_name)
                    continue
                observer.cloud_duplicate(key, record.user_principal_name)

            users[key] = record
    except Exception as e:
        error = str(e) or e.__class__.__name__
        logger.warning(f"Entra ID bulk query failed after {count} records: {e}")
        observer.cloud_fetch_failed(e)

    logger.info(f"Indexed {len(users)} Entra ID users ({len(duplicates)} duplicate usernames)")
    return CloudIndex(
        users=MappingProxyType(users),
        duplicates=tuple(duplicates),
        error=error,
    )
