# =============================================================================
# core/ad_client.py - Active Directory client
# =============================================================================

import logging
from typing import Any, Dict, Iterator, List, Optional, Union

from ldap3 import Server, Connection, ALL, SUBTREE
from ldap3.utils.conv import escape_filter_chars

from core.models import DirectoryRecord
from utils.date_utils import filetime_to_datetime

USER_FILTER = "(&(objectCategory=person)(objectClass=user)(sAMAccountName={prefix}*))"

# 0x2 = ACCOUNTDISABLE flag
ACCOUNTDISABLE = 0x2


def _first_value(attributes: Dict[str, Any], name: str) -> Optional[str]:
    """First value of a raw LDAP attribute decoded as text, matched case-insensitively"""
    for key, values in attributes.items():
        if key.lower() != name.lower():
            continue
        if isinstance(values, (list, tuple)):
            if not values:
                return None
            value = values[0]
        else:
            value = values
        if isinstance(value, bytes):
            return value.decode('utf-8', errors='replace')
        return str(value) if value is not None else None
    return None


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def directory_record_from_entry(entry: Dict[str, Any]) -> Optional[DirectoryRecord]:
    """Build a DirectoryRecord from a paged_search response entry"""
    attributes = entry.get('raw_attributes') or {}
    username = _first_value(attributes, 'sAMAccountName')
    if not username:
        return None

    user_account_control = _to_int(_first_value(attributes, 'userAccountControl')) or 0
    last_logon = _to_int(_first_value(attributes, 'lastLogonTimestamp'))

    return DirectoryRecord(
        username=username,
        display_name=_first_value(attributes, 'displayName') or "",
        department=_first_value(attributes, 'department') or "",
        title=_first_value(attributes, 'title') or "",
        email=_first_value(attributes, 'mail') or "",
        enabled=not bool(user_account_control & ACCOUNTDISABLE),
        when_created=_first_value(attributes, 'whenCreated'),
        last_logon=filetime_to_datetime(last_logon),
        when_changed=_first_value(attributes, 'whenChanged'),
        pwd_last_set=_to_int(_first_value(attributes, 'pwdLastSet')),
        description=_first_value(attributes, 'description') or "",
        distinguished_name=entry.get('dn') or _first_value(attributes, 'distinguishedName') or "",
    )


class ActiveDirectoryClient:
    """Active Directory client returning user records by sAMAccountName prefix"""

    def __init__(self, server_url: str, username: str, password: str, base_dn: str,
                 page_size: int = 1000):
        self.server_url = server_url
        self.username = username
        self.password = password
        self.base_dn = base_dn
        self.page_size = page_size
        self.connection: Optional[Connection] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    def connect(self) -> bool:
        """Establish connection to Active Directory"""
        try:
            server = Server(self.server_url, get_info=ALL)
            self.connection = Connection(
                server,
                user=self.username,
                password=self.password,
                auto_bind=True
            )
            self.logger.info("Successfully connected to Active Directory")
            return True
        except Exception as e:
            self.logger.error(f"Failed to connect to AD: {e}")
            self.connection = None
            return False

    def disconnect(self) -> None:
        """Close Active Directory connection"""
        if self.connection:
            self.connection.unbind()
            self.connection = None
            self.logger.info("Disconnected from Active Directory")

    def list_users(self, prefix: str,
                   attributes: Union[str, List[str]] = "*") -> Iterator[DirectoryRecord]:
        """
        Yield user records whose sAMAccountName starts with prefix.

        Raises:
            ConnectionError: If connect() has not succeeded
            LDAPException: If the search fails
        """
        if not self.connection:
            raise ConnectionError("Not connected to Active Directory")

        if isinstance(attributes, str):
            attributes = [attributes]
        search_filter = USER_FILTER.format(prefix=escape_filter_chars(prefix))

        entries = self.connection.extend.standard.paged_search(
            search_base=self.base_dn,
            search_filter=search_filter,
            search_scope=SUBTREE,
            attributes=attributes,
            paged_size=self.page_size,
            generator=True
        )

        count = 0
        for entry in entries:
            if entry.get('type') != 'searchResEntry':
                continue
            record = directory_record_from_entry(entry)
            if record is None:
                self.logger.debug(f"Skipping entry without sAMAccountName: {entry.get('dn')}")
                continue
            count += 1
            yield record

        self.logger.debug(f"Prefix '{prefix}' returned {count} users")
