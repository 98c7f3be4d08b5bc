"""
Momence Authentication
======================

Bearer-token lifecycle for the Momence host API.

One TokenManager owns one token pair. Tokens are acquired with the
password grant and renewed with the refresh-token grant, both on demand;
nothing refreshes in the background.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx

from studiodesk.config import Settings, settings as default_settings
from studiodesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MomenceCredentials:
    """Fixed credential set for one deployment."""
    base_url: str
    auth_token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "MomenceCredentials":
        config = config or default_settings
        return cls(
            base_url=config.momence_base_url.rstrip("/"),
            auth_token=config.momence_auth_token,
            username=config.momence_username,
            password=config.momence_password,
        )

    @property
    def missing_fields(self) -> List[str]:
        fields = {
            "auth_token": self.auth_token,
            "username": self.username,
            "password": self.password,
        }
        return [name for name, value in fields.items() if not value]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields

    @property
    def token_url(self) -> str:
        return f"{self.base_url}/auth/token"


class TokenManager:
    """
    Holds the access/refresh token pair and talks to the token endpoint.

    Neither `authenticate` nor `refresh` raises: both return True on
    success and False otherwise, logging the failure. A failed refresh
    drops the held pair so the next call starts with the password grant.

    Concurrent first-time callers may each authenticate; the grant is
    idempotent so the last writer simply wins.
    """

    def __init__(self, credentials: MomenceCredentials, http_client: httpx.AsyncClient):
        self._credentials = credentials
        self._http = http_client
        self._access_token: Optional[str] = None
        self._refresh_token: Optional[str] = None

        if not credentials.is_complete:
            logger.warning(
                "Momence credentials incomplete - member and session lookups are disabled",
                extra={"missing_fields": credentials.missing_fields}
            )

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._refresh_token

    @property
    def has_access_token(self) -> bool:
        return bool(self._access_token)

    def bearer_headers(self) -> Dict[str, str]:
        return {
            "accept": "application/json",
            "authorization": f"Bearer {self._access_token}",
        }

    async def authenticate(self) -> bool:
        """Acquire a fresh token pair with the password grant."""
        if not self._credentials.is_complete:
            logger.warning(
                "Cannot authenticate with Momence - missing credentials",
                extra={"missing_fields": self._credentials.missing_fields}
            )
            return False

        logger.info("Authenticating with Momence")
        data = await self._request_token({
            "grant_type": "password",
            "username": self._credentials.username,
            "password": self._credentials.password,
        })
        if data is None or not data.get("access_token"):
            return False

        self._access_token = data["access_token"]
        self._refresh_token = self._extract_refresh_token(data)

        logger.info(
            "Momence authentication succeeded",
            extra={
                "has_refresh_token": self._refresh_token is not None,
                "token_type": data.get("token_type"),
            }
        )
        return True

    async def refresh(self) -> bool:
        """Replace the access token using the refresh-token grant."""
        if not self._credentials.is_complete:
            return False
        if not self._refresh_token:
            logger.warning("Cannot refresh Momence token - no refresh token held")
            self._clear()
            return False

        logger.info("Refreshing Momence access token")
        data = await self._request_token({
            "grant_type": "refresh_token",
            "refresh_token": self._refresh_token,
        })
        if data is None or not data.get("access_token"):
            logger.warning("Momence token refresh failed, will re-authenticate on next call")
            self._clear()
            return False

        self._access_token = data["access_token"]
        # Some responses omit the refresh token; keep the one we have.
        self._refresh_token = self._extract_refresh_token(data) or self._refresh_token
        return True

    def _clear(self) -> None:
        self._access_token = None
        self._refresh_token = None

    @staticmethod
    def _extract_refresh_token(data: dict) -> Optional[str]:
        return data.get("refresh_token") or data.get("refreshToken")

    async def _request_token(self, form: Dict[str, Optional[str]]) -> Optional[dict]:
        grant_type = form.get("grant_type")
        try:
            response = await self._http.post(
                self._credentials.token_url,
                data=form,
                headers={
                    "accept": "application/json",
                    "authorization": f"Basic {self._credentials.auth_token}",
                    "content-type": "application/x-www-form-urlencoded",
                },
            )
        except httpx.HTTPError as e:
            logger.error(
                "Momence token request failed",
                extra={"grant_type": grant_type, "error": str(e)}
            )
            return None

        if not response.is_success:
            logger.error(
                "Momence token endpoint returned an error",
                extra={
                    "grant_type": grant_type,
                    "status_code": response.status_code,
                    "body": response.text[:500],
                }
            )
            return None

        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                "Momence token response was not JSON",
                extra={"grant_type": grant_type, "error": str(e)}
            )
            return None

        if not isinstance(data, dict):
            logger.error("Momence token response was not an object", extra={"grant_type": grant_type})
            return None
        return data
