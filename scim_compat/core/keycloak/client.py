"""Read-only Keycloak Admin API client for group lookups.

Authenticates with the client-credentials grant of a service account and
keeps the access token fresh; a request answered with 401 is retried once
with a new token.
"""
from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import requests

from ..exceptions import KeycloakAPIError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5
# Refresh this long before the token actually expires
TOKEN_REFRESH_MARGIN = timedelta(seconds=10)
DEFAULT_TOKEN_LIFETIME = 60


class KeycloakClient:
    """Group reads against one Keycloak server.

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_service_account("demo", "automation-cli", "secret")
        groups = client.search_groups("demo", "eng")
    """

    def __init__(self, base_url: str, timeout: float = REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._credentials: Optional[Dict[str, str]] = None

    # ─────────────────────────────────────────────────────────────────────────
    # Authentication
    # ─────────────────────────────────────────────────────────────────────────

    def authenticate_service_account(self, auth_realm: str, client_id: str, client_secret: str) -> str:
        """Fetch a token for the service account and remember it for refreshes.

        Returns:
            Access token

        Raises:
            KeycloakAPIError: If the token endpoint rejects the credentials
        """
        self._credentials = {
            "auth_realm": auth_realm,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        self._refresh_token()
        return self._token

    def _refresh_token(self) -> None:
        creds = self._credentials
        url = f"{self.base_url}/realms/{creds['auth_realm']}/protocol/openid-connect/token"
        resp = requests.post(
            url,
            data={
                "grant_type": "client_credentials",
                "client_id": creds["client_id"],
                "client_secret": creds["client_secret"],
            },
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        payload = resp.json()
        self._token = payload["access_token"]
        lifetime = int(payload.get("expires_in") or DEFAULT_TOKEN_LIFETIME)
        self._token_expires_at = datetime.now() + timedelta(seconds=lifetime)
        logger.debug("Service account token issued for %s (expires in %ss)", creds["client_id"], lifetime)

    def _ensure_token(self) -> str:
        if not self._token:
            raise KeycloakAPIError(401, "Not authenticated - call authenticate_service_account first", "")
        expiring = self._token_expires_at and datetime.now() >= self._token_expires_at - TOKEN_REFRESH_MARGIN
        if expiring and self._credentials:
            self._refresh_token()
        return self._token

    # ─────────────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────────────

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """GET an Admin API path.

        Raises:
            KeycloakAPIError: On any HTTP error status
        """
        url = f"{self.base_url}{path}"
        resp = requests.get(url, params=params, headers=self._auth_header(), timeout=self.timeout)
        if resp.status_code == 401 and self._credentials:
            # token revoked or server restarted
            self._refresh_token()
            resp = requests.get(url, params=params, headers=self._auth_header(), timeout=self.timeout)
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        return resp

    def _auth_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._ensure_token()}"}

    # ─────────────────────────────────────────────────────────────────────────
    # Group endpoints
    # ─────────────────────────────────────────────────────────────────────────

    def get_user_groups(self, realm: str, user_id: str) -> List[dict]:
        return self.get(f"/admin/realms/{realm}/users/{user_id}/groups").json() or []

    def get_group(self, realm: str, group_id: str) -> dict:
        return self.get(f"/admin/realms/{realm}/groups/{group_id}").json()

    def search_groups(self, realm: str, search: str, first: int = 0, max_results: int = 100,
                      exact: bool = False) -> List[dict]:
        """Search top-level groups by name (substring, or exact when ``exact``)."""
        params = {"search": search, "first": first, "max": max_results}
        if exact:
            params["exact"] = "true"
        return self.get(f"/admin/realms/{realm}/groups", params=params).json() or []

