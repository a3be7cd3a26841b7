# =============================================================================
# core/entra_client.py - Microsoft Entra ID (Graph) client
# =============================================================================

import logging
from typing import Any, Dict, Iterator, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from core.models import CloudRecord, normalize_username

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
LOGIN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"

CLOUD_ATTRIBUTES: List[str] = [
    'displayName',
    'userPrincipalName',
    'department',
    'jobTitle',
    'mail',
    'accountEnabled',
    'createdDateTime',
    'signInActivity',
]


class EntraAuthenticationError(Exception):
    """Raised when no Graph access token can be obtained"""


def cloud_record_from_graph(payload: Dict[str, Any]) -> Optional[CloudRecord]:
    """Build a CloudRecord from a Graph user object"""
    principal = payload.get('userPrincipalName') or ""
    username = normalize_username(principal)
    if not username:
        return None

    sign_in = payload.get('signInActivity') or {}
    return CloudRecord(
        username=username,
        user_principal_name=principal,
        display_name=payload.get('displayName') or "",
        department=payload.get('department') or "",
        job_title=payload.get('jobTitle') or "",
        mail=payload.get('mail') or "",
        enabled=bool(payload.get('accountEnabled')),
        created=payload.get('createdDateTime'),
        last_interactive_sign_in=sign_in.get('lastSignInDateTime'),
        last_non_interactive_sign_in=sign_in.get('lastNonInteractiveSignInDateTime'),
    )


class EntraIDClient:
    """Read-only Microsoft Graph client for listing Entra ID users"""

    def __init__(self, tenant_id: str = "", client_id: str = "", client_secret: str = "",
                 access_token: Optional[str] = None, page_size: int = 999, timeout: int = 60):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.access_token = access_token
        self.page_size = page_size
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        # Retry strategy for throttling and transient errors
        retry = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self.session.close()

    def authenticate(self) -> str:
        """Return a bearer token, acquiring one via client credentials if needed"""
        if self.access_token:
            return self.access_token

        if not (self.tenant_id and self.client_id and self.client_secret):
            raise EntraAuthenticationError(
                "Entra ID credentials missing: need tenant id, client id and client secret"
            )

        url = LOGIN_URL.format(tenant=self.tenant_id)
        resp = self.session.post(
            url,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
                "scope": GRAPH_SCOPE,
            },
            timeout=self.timeout,
        )
        if resp.status_code >= 400:
            raise EntraAuthenticationError(
                f"Token request failed (HTTP {resp.status_code}): {resp.text[:500]}"
            )

        token = resp.json().get("access_token")
        if not token:
            raise EntraAuthenticationError("Token response missing access_token")

        self.access_token = token
        self.logger.info(f"Obtained Graph access token (tenant={self.tenant_id}, client={self.client_id[:6]}...)")
        return token

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        token = self.authenticate()
        self.logger.debug(f"GET {url} params={params}")
        resp = self.session.get(
            url,
            params=params,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def list_all_users(self, attributes: Optional[List[str]] = None) -> Iterator[CloudRecord]:
        """
        Yield every user in the tenant, following @odata.nextLink pages.

        Raises:
            EntraAuthenticationError: If no token can be obtained
            requests.RequestException: On HTTP or network failure
        """
        select = ",".join(attributes or CLOUD_ATTRIBUTES)
        url: Optional[str] = f"{GRAPH_BASE_URL}/users"
        params: Optional[Dict[str, Any]] = {"$select": select, "$top": self.page_size}

        page = 0
        while url:
            page += 1
            body = self._get(url, params)
            users = body.get("value", [])
            self.logger.debug(f"Graph page {page}: {len(users)} users")

            for payload in users:
                record = cloud_record_from_graph(payload)
                if record is None:
                    self.logger.debug(f"Skipping Graph user without userPrincipalName: {payload.get('id')}")
                    continue
                yield record

            # nextLink already carries the query string
            url = body.get("@odata.nextLink")
            params = None
