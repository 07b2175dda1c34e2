"""
Typed payloads and the response envelope returned by Smartcar API calls
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar

import requests

from .exceptions import REQUEST_ID_HEADER, SmartcarError

T = TypeVar("T")

# Refresh tokens are valid for 60 days regardless of what the server reports
REFRESH_TOKEN_LIFETIME = timedelta(days=60)


@dataclass(frozen=True)
class PagingRequest:
    """Paging parameters sent with list requests"""

    limit: int
    offset: int = 0

    def to_params(self) -> Dict[str, str]:
        return {"limit": str(self.limit), "offset": str(self.offset)}


@dataclass(frozen=True)
class Paging:
    """Paging information reported by the API"""

    count: int
    offset: int

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Paging":
        return cls(count=int(payload["count"]), offset=int(payload["offset"]))

    def to_dict(self) -> Dict[str, int]:
        return {"count": self.count, "offset": self.offset}


@dataclass(frozen=True)
class ResponseEnvelope(Generic[T]):
    """Decoded payload plus the transport metadata of the response"""

    data: T
    request_id: str
    paging: Optional[Paging] = None


@dataclass(frozen=True)
class User:
    id: str

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "User":
        return cls(id=str(payload["id"]))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id}


@dataclass(frozen=True)
class VehicleIds:
    vehicles: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "VehicleIds":
        vehicles = payload["vehicles"]
        if not isinstance(vehicles, list):
            raise TypeError("vehicles must be a list")
        return cls(vehicles=[str(vehicle) for vehicle in vehicles])

    def to_dict(self) -> Dict[str, Any]:
        return {"vehicles": list(self.vehicles)}


@dataclass(frozen=True)
class Compatibility:
    compatible: bool

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Compatibility":
        compatible = payload["compatible"]
        if not isinstance(compatible, bool):
            raise TypeError("compatible must be a boolean")
        return cls(compatible=compatible)

    def to_dict(self) -> Dict[str, Any]:
        return {"compatible": self.compatible}


@dataclass(frozen=True)
class Credential:
    """
    OAuth access/refresh token pair with computed expiries

    A refresh produces a new Credential; instances are never updated.
    """

    access_token: str
    refresh_token: str
    expiration: datetime
    refresh_expiration: datetime

    @classmethod
    def from_token_response(
        cls, payload: Mapping[str, Any], issued_at: Optional[datetime] = None
    ) -> "Credential":
        """
        Build a credential from a token endpoint response

        Args:
            payload: JSON object returned by the token endpoint
            issued_at: Issue time, defaults to now (UTC)

        Returns:
            New Credential

        Raises:
            KeyError, TypeError, ValueError: If the payload is malformed
        """
        issued_at = issued_at or datetime.now(timezone.utc)

        expires_in = payload["expires_in"]
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            raise TypeError("expires_in must be a number")
        if expires_in <= 0:
            raise ValueError(f"expires_in must be positive, got {expires_in}")

        access_token = payload["access_token"]
        refresh_token = payload["refresh_token"]
        if not isinstance(access_token, str) or not isinstance(refresh_token, str):
            raise TypeError("access_token and refresh_token must be strings")

        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expiration=issued_at + timedelta(seconds=expires_in),
            refresh_expiration=issued_at + REFRESH_TOKEN_LIFETIME,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Credential":
        """Load a credential saved with ``to_dict``"""
        return cls(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expiration=datetime.fromisoformat(data["expiration"]),
            refresh_expiration=datetime.fromisoformat(data["refresh_expiration"]),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expiration": self.expiration.isoformat(),
            "refresh_expiration": self.refresh_expiration.isoformat(),
        }


def decode_envelope(
    response: requests.Response,
    decoder: Optional[Callable[[Any], T]] = None,
) -> ResponseEnvelope:
    """
    Decode a successful response into a ResponseEnvelope

    Args:
        response: Response with a 2xx status code
        decoder: Maps the JSON body to the payload type; the raw JSON is
            used as payload when omitted

    Returns:
        ResponseEnvelope holding payload, request id and paging

    Raises:
        SmartcarError: With kind ``SDK_ERROR`` when the request id header is
            missing or the body does not decode
    """
    request_id = response.headers.get(REQUEST_ID_HEADER)
    if not request_id:
        raise SmartcarError.sdk_error(
            f"response is missing the {REQUEST_ID_HEADER} header",
            status_code=response.status_code,
        )

    try:
        response.content
    except requests.exceptions.RequestException as e:
        raise SmartcarError.sdk_error(
            "unable to read response body",
            status_code=response.status_code,
            request_id=request_id,
        ) from e

    body = response.text
    try:
        # 204 No Content carries no payload
        if response.status_code == 204 and not body.strip():
            payload = None
        else:
            payload = json.loads(body)
    except ValueError as e:
        raise SmartcarError.sdk_error(
            f"response body is not valid JSON: {body}",
            status_code=response.status_code,
            request_id=request_id,
        ) from e

    try:
        data = decoder(payload) if decoder else payload
        paging = None
        if isinstance(payload, dict) and isinstance(payload.get("paging"), dict):
            paging = Paging.from_json(payload["paging"])
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SmartcarError.sdk_error(
            f"unexpected response body: {e!r}",
            status_code=response.status_code,
            request_id=request_id,
        ) from e

    return ResponseEnvelope(data=data, request_id=request_id, paging=paging)
