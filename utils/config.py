# =============================================================================
# utils/config.py - Configuration management
# =============================================================================

import os
from typing import Optional, List
from dotenv import find_dotenv, load_dotenv

from core.models import DuplicatePolicy


class Config:
    """Configuration management"""

    def __init__(self):
        # .env is looked up from the working directory the tool is run in
        load_dotenv(find_dotenv(usecwd=True))

    # -- Active Directory -----------------------------------------------------

    @property
    def ad_server(self) -> Optional[str]:
        return os.getenv("AD_SERVER")

    @property
    def ad_username(self) -> Optional[str]:
        return os.getenv("AD_USERNAME")

    @property
    def ad_password(self) -> Optional[str]:
        return os.getenv("AD_PASSWORD")

    @property
    def base_dn(self) -> Optional[str]:
        return os.getenv("BASE_DN")

    @property
    def ad_page_size(self) -> int:
        return int(os.getenv("AD_PAGE_SIZE", "1000"))

    # -- Entra ID -------------------------------------------------------------

    @property
    def entra_tenant_id(self) -> Optional[str]:
        return os.getenv("ENTRA_TENANT_ID")

    @property
    def entra_client_id(self) -> Optional[str]:
        return os.getenv("ENTRA_CLIENT_ID")

    @property
    def entra_client_secret(self) -> Optional[str]:
        return os.getenv("ENTRA_CLIENT_SECRET")

    @property
    def entra_access_token(self) -> Optional[str]:
        return os.getenv("ENTRA_ACCESS_TOKEN")

    # -- Run ------------------------------------------------------------------

    @property
    def output_dir(self) -> str:
        return os.getenv("OUTPUT_DIR", ".")

    @property
    def output_encoding(self) -> str:
        return os.getenv("OUTPUT_ENCODING", "utf-8")

    @property
    def duplicate_policy(self) -> DuplicatePolicy:
        value = os.getenv("DUPLICATE_POLICY", DuplicatePolicy.LAST_WINS.value)
        return DuplicatePolicy(value.strip().lower())

    def validate_ad_config(self) -> bool:
        """Validate that all required AD configuration is present"""
        required = [self.ad_server, self.ad_username, self.ad_password, self.base_dn]
        return all(required)

    def get_missing_ad_vars(self) -> List[str]:
        """Get list of missing AD configuration variables"""
        vars_and_names = [
            (self.ad_server, "AD_SERVER"),
            (self.ad_username, "AD_USERNAME"),
            (self.ad_password, "AD_PASSWORD"),
            (self.base_dn, "BASE_DN")
        ]
        return [name for var, name in vars_and_names if not var]

    def validate_entra_config(self) -> bool:
        """A pre-acquired token or a full client-credentials triple is enough"""
        return not self.get_missing_entra_vars()

    def get_missing_entra_vars(self) -> List[str]:
        """Get list of missing Entra ID configuration variables"""
        if self.entra_access_token:
            return []
        vars_and_names = [
            (self.entra_tenant_id, "ENTRA_TENANT_ID"),
            (self.entra_client_id, "ENTRA_CLIENT_ID"),
            (self.entra_client_secret, "ENTRA_CLIENT_SECRET")
        ]
        return [name for var, name in vars_and_names if not var]
