# =============================================================================
# core/models.py - Unified data models
# =============================================================================

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union

Timestamp = Union[datetime, date, str, None]

OUTPUT_COLUMNS: List[str] = [
    'Username',
    'DisplayName',
    'Department',
    'Title',
    'Email',
    'InAD',
    'AD_Enabled',
    'AD_Created',
    'AD_LastLogon',
    'AD_WhenChanged',
    'AD_PwdLastSet',
    'AD_Description',
    'AD_DistinguishedName',
    'InEntraID',
    'Entra_Enabled',
    'Entra_Created',
    'Entra_LastInteractiveSignIn',
    'Entra_LastNonInteractiveSignIn',
]


class DuplicatePolicy(Enum):
    """How to treat two cloud accounts that normalize to the same username"""
    LAST_WINS = "last_wins"
    FIRST_WINS = "first_wins"


def normalize_username(value: str) -> str:
    """Lower-cased local part of a principal name (whole value when there is no '@')"""
    if not value:
        return ""
    return value.split('@', 1)[0].strip().lower()


@dataclass(frozen=True)
class DirectoryRecord:
    """User attributes from the on-premises directory"""
    username: str
    display_name: str = ""
    department: str = ""
    title: str = ""
    email: str = ""
    enabled: bool = False
    when_created: Timestamp = None
    last_logon: Timestamp = None
    when_changed: Timestamp = None
    pwd_last_set: Optional[int] = None
    description: str = ""
    distinguished_name: str = ""


@dataclass(frozen=True)
class CloudRecord:
    """User attributes from the cloud identity service"""
    username: str
    user_principal_name: str = ""
    display_name: str = ""
    department: str = ""
    job_title: str = ""
    mail: str = ""
    enabled: bool = False
    created: Timestamp = None
    last_interactive_sign_in: Timestamp = None
    last_non_interactive_sign_in: Timestamp = None


@dataclass(frozen=True)
class CloudIndex:
    """Read-only lookup of cloud records by normalized username"""
    users: Mapping[str, CloudRecord] = field(default_factory=lambda: MappingProxyType({}))
    duplicates: Tuple[str, ...] = ()
    error: Optional[str] = None

    @property
    def fetch_failed(self) -> bool:
        return self.error is not None

    def get(self, username: str) -> Optional[CloudRecord]:
        return self.users.get(normalize_username(username))

    def __len__(self) -> int:
        return len(self.users)


@dataclass(frozen=True)
class MergedRecord:
    """One reconciled output row; every field is already a resolved string"""
    username: str
    display_name: str
    department: str
    title: str
    email: str
    in_ad: str
    ad_enabled: str
    ad_created: str
    ad_last_logon: str
    ad_when_changed: str
    ad_pwd_last_set: str
    ad_description: str
    ad_distinguished_name: str
    in_entra: str
    entra_enabled: str
    entra_created: str
    entra_last_interactive_sign_in: str
    entra_last_non_interactive_sign_in: str

    def to_row(self) -> Dict[str, str]:
        """Convert to a dictionary keyed by OUTPUT_COLUMNS"""
        return {
            'Username': self.username,
            'DisplayName': self.display_name,
            'Department': self.department,
            'Title': self.title,
            'Email': self.email,
            'InAD': self.in_ad,
            'AD_Enabled': self.ad_enabled,
            'AD_Created': self.ad_created,
            'AD_LastLogon': self.ad_last_logon,
            'AD_WhenChanged': self.ad_when_changed,
            'AD_PwdLastSet': self.ad_pwd_last_set,
            'AD_Description': self.ad_description,
            'AD_DistinguishedName': self.ad_distinguished_name,
            'InEntraID': self.in_entra,
            'Entra_Enabled': self.entra_enabled,
            'Entra_Created': self.entra_created,
            'Entra_LastInteractiveSignIn': self.entra_last_interactive_sign_in,
            'Entra_LastNonInteractiveSignIn': self.entra_last_non_interactive_sign_in,
        }


@dataclass
class ReconciliationStats:
    """Statistics for a reconciliation run"""
    cloud_records: int = 0
    duplicate_cloud_usernames: int = 0
    cloud_fetch_failed: bool = False
    directory_records: int = 0
    matched: int = 0
    directory_only: int = 0
    cloud_only: int = 0
    rows_written: int = 0
    failed_prefixes: List[str] = field(default_factory=list)

    @property
    def match_rate(self) -> float:
        """Percentage of directory records that found a cloud counterpart"""
        if self.directory_records == 0:
            return 0.0
        return (self.matched / self.directory_records) * 100
