"""
Helpers for Smartcar webhook endpoints

Smartcar signs webhook deliveries with an HMAC-SHA256 of the raw request
body keyed by the application management token, and sends a challenge
that must be answered with the same hash when a webhook is registered.
"""

import base64
import hashlib
import hmac
import json
from typing import Any, Mapping, Union

Payload = Union[str, bytes, Mapping[str, Any]]


def _to_bytes(value: Payload) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    return json.dumps(value).encode("utf-8")


def hash_challenge(management_token: str, challenge: Payload) -> str:
    """
    Compute the base64 HMAC-SHA256 of a challenge or payload

    Args:
        management_token: Application management token used as HMAC key
        challenge: Challenge string or raw body

    Returns:
        Base64 encoded digest
    """
    digest = hmac.new(
        management_token.encode("utf-8"), _to_bytes(challenge), hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_payload(management_token: str, signature: str, body: Payload) -> bool:
    """
    Check a webhook signature against the delivered body

    Pass the raw request body when possible; a mapping is serialized with
    ``json.dumps`` which only matches if the sender used the same encoding.

    Args:
        management_token: Application management token used as HMAC key
        signature: Value of the ``SC-Signature`` header
        body: Request body

    Returns:
        True if the signature matches
    """
    expected = hash_challenge(management_token, body)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
