"""
Smartcar API Client

This module sends authenticated requests to the Smartcar API and turns
the responses into ResponseEnvelope values or SmartcarError exceptions.
"""

import base64
import logging
from typing import Any, Callable, Dict, Iterable, Optional, Union
from urllib.parse import urljoin

import requests

from .config import USER_AGENT, SmartcarConfig
from .exceptions import SmartcarError, classify_response
from .models import (
    Compatibility,
    PagingRequest,
    ResponseEnvelope,
    User,
    VehicleIds,
    decode_envelope,
)


def join_scope(scope: Union[str, Iterable[str]]) -> str:
    """Space-join permissions; a single string is passed through"""
    if isinstance(scope, str):
        return scope
    return " ".join(scope)


def bearer_authorization(access_token: str) -> str:
    """Authorization header value for user-token calls"""
    return f"Bearer {access_token}"


def basic_authorization(client_id: str, client_secret: str) -> str:
    """Authorization header value for client-credential calls"""
    credentials = f"{client_id}:{client_secret}"
    encoded_credentials = base64.b64encode(credentials.encode()).decode()
    return f"Basic {encoded_credentials}"


class SmartcarClient:
    """
    Main client for interacting with Smartcar API
    """

    def __init__(
        self,
        config: Optional[SmartcarConfig] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize Smartcar API client

        Args:
            config: Client configuration, defaults to built-in endpoints
            session: HTTP session to send requests with
            timeout: Request timeout in seconds, None leaves the transport default
        """
        self.config = config or SmartcarConfig()
        self.session = session or requests.Session()
        self.timeout = timeout

        self.logger = logging.getLogger(__name__)

    def execute(
        self,
        method: str,
        path: str,
        authorization: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        paging: Optional[PagingRequest] = None,
        decoder: Optional[Callable[[Any], Any]] = None,
    ) -> ResponseEnvelope:
        """
        Make authenticated request to Smartcar API

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API path relative to the versioned API URL, or an absolute URL
            authorization: Authorization header value
            params: Query parameters
            data: Form data
            json_data: JSON data
            paging: Adds limit/offset query parameters when given
            decoder: Converts the JSON body into the payload type

        Returns:
            ResponseEnvelope with the decoded payload

        Raises:
            SmartcarError: For API errors, transport failures and
                malformed responses
        """
        url = urljoin(self.config.api_url + "/", path.lstrip("/"))

        query = dict(params or {})
        if paging is not None:
            query.update(paging.to_params())

        headers = {
            "Authorization": authorization,
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }

        self.logger.debug("%s %s", method.upper(), url)

        try:
            response = self.session.request(
                method=method.upper(),
                url=url,
                headers=headers,
                params=query or None,
                data=data,
                json=json_data,
                timeout=self.timeout,
                stream=True,
            )
        except requests.exceptions.RequestException as e:
            self.logger.error("Request to %s failed: %s", url, str(e))
            raise SmartcarError.sdk_error(f"Request failed: {str(e)}") from e

        # The body is read by the classifier or the envelope decoder
        with response:
            if not 200 <= response.status_code < 300:
                error = classify_response(response)
                self.logger.warning(
                    "API request failed with status %s (%s, request id %s)",
                    error.status_code,
                    error.kind,
                    error.request_id or "unknown",
                )
                raise SmartcarError(error)

            return decode_envelope(response, decoder)

    def _client_authorization(self) -> str:
        if not self.config.client_id or not self.config.client_secret:
            raise ValueError("client_id and client_secret must be configured")
        return basic_authorization(self.config.client_id, self.config.client_secret)

    def get_user(self, access_token: str) -> ResponseEnvelope:
        """
        Get the user the access token was issued for

        Args:
            access_token: A valid access token

        Returns:
            ResponseEnvelope wrapping a User
        """
        return self.execute(
            "GET",
            "/user",
            bearer_authorization(access_token),
            decoder=User.from_json,
        )

    def get_vehicles(
        self, access_token: str, paging: Optional[PagingRequest] = None
    ) -> ResponseEnvelope:
        """
        Get the ids of vehicles associated with the access token

        Args:
            access_token: A valid access token
            paging: Optional limit/offset, server defaults apply when omitted

        Returns:
            ResponseEnvelope wrapping VehicleIds, with paging information
        """
        return self.execute(
            "GET",
            "/vehicles",
            bearer_authorization(access_token),
            paging=paging,
            decoder=VehicleIds.from_json,
        )

    def get_compatibility(
        self, vin: str, scope: Union[str, Iterable[str]], country: str = "US"
    ) -> ResponseEnvelope:
        """
        Check whether a vehicle supports the given permissions

        Args:
            vin: Vehicle identification number
            scope: Permissions to check
            country: ISO 3166-1 alpha-2 country code

        Returns:
            ResponseEnvelope wrapping a Compatibility
        """
        params = {
            "vin": vin,
            "scope": join_scope(scope),
            "country": country,
        }
        return self.execute(
            "GET",
            "/compatibility",
            self._client_authorization(),
            params=params,
            decoder=Compatibility.from_json,
        )

    def is_compatible(
        self, vin: str, scope: Union[str, Iterable[str]], country: str = "US"
    ) -> bool:
        """
        Returns:
            False if the vehicle is not compatible, True if it likely is
        """
        return self.get_compatibility(vin, scope, country).data.compatible
