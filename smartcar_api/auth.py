"""
OAuth2 Authentication for Smartcar API

This module handles the OAuth2 authorization code flow:
- Authorization URL generation
- Authorization code exchange
- Refresh token exchange
- Expiry checks

The client keeps no tokens of its own; every exchange returns a new
Credential and storing it is up to the caller.
"""

import functools
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple, Union
from urllib.parse import parse_qs, urlencode, urlparse

import requests

from .client import SmartcarClient, basic_authorization, join_scope
from .config import SmartcarConfig
from .exceptions import ErrorDetail, SmartcarError
from .models import Credential


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.astimezone()
    return value


def is_expired(expiration: datetime, now: Optional[datetime] = None) -> bool:
    """
    Check whether a token expiration has passed

    A token expiring exactly now counts as expired. Naive timestamps are
    taken as local time, so naive and aware values can be mixed.

    Args:
        expiration: Expiration timestamp of the token
        now: Reference time, defaults to the current time

    Returns:
        True if the token is expired
    """
    if now is None:
        now = datetime.now(timezone.utc)
    return _as_aware(now) >= _as_aware(expiration)


class AuthClient:
    """
    Handles OAuth2 authentication for Smartcar API
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        test_mode: bool = False,
        config: Optional[SmartcarConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Smartcar authentication

        Args:
            client_id: Your application's client ID
            client_secret: Your application's client secret
            redirect_uri: Registered redirect URI for your application
            test_mode: Launch the authorization flow in test mode
            config: Endpoint configuration, defaults to the production URLs
            session: HTTP session used for token requests
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.test_mode = test_mode
        self.config = config or SmartcarConfig()
        self.api = SmartcarClient(self.config, session=session)

        # Setup logger for debugging
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls, config: SmartcarConfig, session: Optional[requests.Session] = None
    ) -> "AuthClient":
        """Create an AuthClient from application configuration"""
        missing = config.validate()
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        return cls(
            client_id=config.client_id,
            client_secret=config.client_secret,
            redirect_uri=config.redirect_uri,
            test_mode=config.test_mode,
            config=config,
            session=session,
        )

    is_expired = staticmethod(is_expired)

    def get_authorization_url(
        self,
        scope: Union[str, Iterable[str]],
        state: Optional[str] = None,
        approval_prompt: Optional[bool] = None,
        make: Optional[str] = None,
        single_select: Optional[bool] = None,
        single_select_vin: Optional[str] = None,
        flags: Optional[Iterable[str]] = None,
    ) -> str:
        """
        Generate authorization URL for OAuth2 flow

        Args:
            scope: Permissions to request
            state: Optional state parameter for CSRF protection
            approval_prompt: True forces the approval screen, False lets
                previously approved users skip it
            make: Skip the brand selector and go straight to this make
            single_select: Only allow the user to select a single vehicle
            single_select_vin: Only allow the vehicle with this VIN
            flags: Feature flags to enable

        Returns:
            Authorization URL to redirect user to
        """
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "mode": "test" if self.test_mode else "live",
            "scope": join_scope(scope),
        }

        if state:
            params["state"] = state

        if approval_prompt is not None:
            params["approval_prompt"] = "force" if approval_prompt else "auto"

        if make:
            params["make"] = make

        if single_select is not None:
            params["single_select"] = "true" if single_select else "false"

        if single_select_vin:
            params["single_select_vin"] = single_select_vin

        if flags:
            joined_flags = join_scope(flags)
            if joined_flags:
                params["flags"] = joined_flags

        return f"{self.config.authorize_url}?{urlencode(params)}"

    def _request_credential(self, data: dict) -> Credential:
        envelope = self.api.execute(
            "POST",
            self.config.token_url,
            basic_authorization(self.client_id, self.client_secret),
            data=data,
            decoder=functools.partial(
                Credential.from_token_response,
                issued_at=datetime.now(timezone.utc),
            ),
        )
        return envelope.data

    def exchange_code(self, code: str) -> Credential:
        """
        Exchange authorization code for access and refresh tokens

        Args:
            code: Code received from authorization callback

        Returns:
            New Credential

        Raises:
            SmartcarError: If token exchange fails
        """
        self.logger.info("🔄 Exchanging authorization code for tokens")

        credential = self._request_credential(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
            }
        )

        self.logger.info(
            "✅ Token exchange successful! Token expires: %s",
            credential.expiration.isoformat(),
        )
        return credential

    def exchange_refresh_token(self, refresh_token: str) -> Credential:
        """
        Exchange a refresh token for a new credential

        The previous credential is left alone; revoking it is up to the API.

        Args:
            refresh_token: Refresh token of an earlier credential

        Returns:
            New Credential

        Raises:
            SmartcarError: If token refresh fails
        """
        self.logger.info("🔄 Refreshing access token")

        try:
            credential = self._request_credential(
                {"grant_type": "refresh_token", "refresh_token": refresh_token}
            )
        except SmartcarError as e:
            self.logger.error("❌ Token refresh failed: %s", str(e))
            raise

        self.logger.info(
            "✅ Token refresh successful! New token expires: %s",
            credential.expiration.isoformat(),
        )
        return credential

    @staticmethod
    def extract_code_from_callback_url(callback_url: str) -> Tuple[str, Optional[str]]:
        """
        Extract authorization code and state from callback URL

        Args:
            callback_url: The full callback URL received after authorization

        Returns:
            Tuple of (authorization_code, state)

        Raises:
            SmartcarError: If the user denied access or no code is present
        """
        parsed = urlparse(callback_url)
        params = parse_qs(parsed.query)

        # Check for error first
        if "error" in params:
            error_code = params["error"][0]
            error_description = params.get("error_description", ["Unknown error"])[0]
            raise SmartcarError(
                ErrorDetail(
                    status_code=0,
                    kind=error_code,
                    description=f"Authorization failed: {error_description}",
                )
            )

        # Extract code
        code_list = params.get("code")
        if not code_list:
            raise SmartcarError.sdk_error("No authorization code found in callback URL")

        code = code_list[0]
        state = params.get("state", [None])[0]

        return code, state
