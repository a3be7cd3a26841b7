# =============================================================================
# tests/conftest.py - Shared fixtures
# =============================================================================

import pytest

from core.entra_client import cloud_record_from_graph
from core.models import DirectoryRecord
from tests.fakes import RecordingObserver


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def jdoe_directory():
    return DirectoryRecord(
        username="jdoe",
        display_name="John Doe",
        enabled=True,
        when_created="20190315083000.0Z",
        description="Sales engineer",
        distinguished_name="CN=John Doe,OU=Users,DC=contoso,DC=com",
    )


@pytest.fixture
def jdoe_cloud():
    return cloud_record_from_graph({
        'userPrincipalName': "JDoe@contoso.com",
        'displayName': "Johnny Doe",
        'department': "Sales",
        'jobTitle': "Engineer",
        'mail': "jdoe@contoso.com",
        'accountEnabled': True,
        'createdDateTime': "2019-03-16T10:00:00Z",
        'signInActivity': {
            'lastSignInDateTime': "2024-05-01T08:12:45Z",
            'lastNonInteractiveSignInDateTime': "2024-05-02T23:59:59Z",
        },
    })


@pytest.fixture
def asmith_directory():
    return DirectoryRecord(
        username="asmith",
        display_name="Anna Smith",
        department="Finance",
        title="Accountant",
        email="asmith@contoso.com",
        enabled=True,
    )


CONFIG_VARS = [
    "AD_SERVER", "AD_USERNAME", "AD_PASSWORD", "BASE_DN", "AD_PAGE_SIZE",
    "ENTRA_TENANT_ID", "ENTRA_CLIENT_ID", "ENTRA_CLIENT_SECRET", "ENTRA_ACCESS_TOKEN",
    "OUTPUT_DIR", "OUTPUT_ENCODING", "DUPLICATE_POLICY",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Empty configuration environment rooted in tmp_path"""
    monkeypatch.chdir(tmp_path)
    for name in CONFIG_VARS:
        # setenv first so teardown also removes values a .env file loads
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch
