# =============================================================================
# reconcilers/field_resolution.py - Directory-first field merge
# =============================================================================

from typing import Optional

from core.models import CloudRecord, DirectoryRecord, MergedRecord
from utils.date_utils import format_date

YES = "Yes"
NO = "No"
ENABLED = "Enabled"
DISABLED = "Disabled"


def first_non_empty(*values: Optional[str]) -> str:
    """First value that is not blank, else an empty string"""
    for value in values:
        if value is not None and str(value).strip():
            return str(value)
    return ""


def enabled_label(enabled: Optional[bool]) -> str:
    return ENABLED if enabled else DISABLED


def merge_records(directory_record: DirectoryRecord,
                  cloud_record: Optional[CloudRecord] = None) -> MergedRecord:
    """
    Merge a directory record with its cloud counterpart.

    Shared fields take the directory value and fall back to the cloud value.
    Missing or malformed timestamps become empty strings.
    """
    cloud = cloud_record

    return MergedRecord(
        username=directory_record.username,
        display_name=first_non_empty(directory_record.display_name, cloud and cloud.display_name),
        department=first_non_empty(directory_record.department, cloud and cloud.department),
        title=first_non_empty(directory_record.title, cloud and cloud.job_title),
        email=first_non_empty(directory_record.email, cloud and cloud.mail),
        in_ad=YES,
        ad_enabled=enabled_label(directory_record.enabled),
        ad_created=format_date(directory_record.when_created),
        ad_last_logon=format_date(directory_record.last_logon),
        ad_when_changed=format_date(directory_record.when_changed),
        ad_pwd_last_set=format_date(directory_record.pwd_last_set, filetime=True),
        ad_description=directory_record.description or "",
        ad_distinguished_name=directory_record.distinguished_name or "",
        in_entra=YES if cloud else NO,
        entra_enabled=enabled_label(cloud.enabled if cloud else False),
        entra_created=format_date(cloud.created) if cloud else "",
        entra_last_interactive_sign_in=format_date(cloud.last_interactive_sign_in) if cloud else "",
        entra_last_non_interactive_sign_in=format_date(cloud.last_non_interactive_sign_in) if cloud else "",
    )
