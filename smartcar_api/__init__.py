"""
Smartcar API Client Library

This library provides a Python interface for the Smartcar API,
implementing OAuth2 authentication, typed responses and structured errors.
"""

from .auth import AuthClient, is_expired
from .client import SmartcarClient, basic_authorization, bearer_authorization
from .config import SmartcarConfig
from .exceptions import SDK_ERROR, ErrorDetail, SmartcarError, classify_error
from .models import (
    Compatibility,
    Credential,
    Paging,
    PagingRequest,
    ResponseEnvelope,
    User,
    VehicleIds,
)
from .version import __version__
from .webhooks import hash_challenge, verify_payload

__all__ = [
    "AuthClient",
    "SmartcarClient",
    "SmartcarConfig",
    "SmartcarError",
    "ErrorDetail",
    "SDK_ERROR",
    "classify_error",
    "Compatibility",
    "Credential",
    "Paging",
    "PagingRequest",
    "ResponseEnvelope",
    "User",
    "VehicleIds",
    "basic_authorization",
    "bearer_authorization",
    "is_expired",
    "hash_challenge",
    "verify_payload",
    "__version__",
]
