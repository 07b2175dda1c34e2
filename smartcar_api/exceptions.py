"""
Error values and exceptions for Smartcar API client

Every failed call surfaces as a single ``SmartcarError`` carrying an
immutable ``ErrorDetail``. The classifier understands both generations of
the API's error bodies:

- legacy OAuth style: ``{"error": ..., "message": ..., "code": ...}``
- current style: ``{"type": ..., "code": ..., "description": ...,
  "resolution": ..., "detail": [...], "docURL": ...}``

Anything else (HTML pages from proxies, truncated bodies, unknown JSON)
is reported with the ``SDK_ERROR`` kind and the raw body as description.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

import requests
from requests.structures import CaseInsensitiveDict

SDK_ERROR = "SDK_ERROR"
REQUEST_ID_HEADER = "SC-Request-Id"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured description of a failed API call"""

    status_code: int
    kind: str
    description: str
    request_id: str = ""
    code: Optional[str] = None
    resolution: Optional[Union[str, Dict[str, Any]]] = None
    detail: Optional[List[Any]] = None
    doc_url: Optional[str] = None

    @property
    def message(self) -> str:
        if self.code:
            return f"{self.kind}:{self.code} - {self.description}"
        return f"{self.kind} - {self.description}"


class SmartcarError(Exception):
    """Raised for every unsuccessful Smartcar request"""

    def __init__(self, error: ErrorDetail):
        self.error = error
        super().__init__(error.message)

    @classmethod
    def sdk_error(
        cls, description: str, status_code: int = 0, request_id: str = ""
    ) -> "SmartcarError":
        """Build an error for failures the API itself did not describe"""
        return cls(
            ErrorDetail(
                status_code=status_code,
                kind=SDK_ERROR,
                description=description,
                request_id=request_id,
            )
        )

    @property
    def status_code(self) -> int:
        return self.error.status_code

    @property
    def kind(self) -> str:
        return self.error.kind

    @property
    def code(self) -> Optional[str]:
        return self.error.code

    @property
    def description(self) -> str:
        return self.error.description

    @property
    def resolution(self) -> Optional[Union[str, Dict[str, Any]]]:
        return self.error.resolution

    @property
    def detail(self) -> Optional[List[Any]]:
        return self.error.detail

    @property
    def doc_url(self) -> Optional[str]:
        return self.error.doc_url

    @property
    def request_id(self) -> str:
        return self.error.request_id


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _text(value: Any) -> Optional[str]:
    """Return non-empty strings, None for anything else"""
    if isinstance(value, str) and value:
        return value
    return None


def classify_error(
    status_code: int, headers: Mapping[str, str], body: str
) -> ErrorDetail:
    """
    Turn a non-success response into a structured error

    Args:
        status_code: HTTP status code of the response
        headers: Response headers
        body: Raw response body text

    Returns:
        ErrorDetail describing the failure
    """
    headers = CaseInsensitiveDict(headers or {})
    request_id = headers.get(REQUEST_ID_HEADER) or ""

    def fallback() -> ErrorDetail:
        return ErrorDetail(
            status_code=status_code,
            kind=SDK_ERROR,
            description=body,
            request_id=request_id,
        )

    content_type = headers.get("Content-Type")
    if content_type is not None and "application/json" not in content_type:
        return fallback()

    try:
        payload = json.loads(body)
    except ValueError:
        return fallback()

    if not isinstance(payload, dict):
        return fallback()

    # Legacy shape takes priority when both markers are present
    if "error" in payload:
        description = _text(payload.get("message")) or _text(
            payload.get("error_description")
        )
        return ErrorDetail(
            status_code=status_code,
            kind=str(payload["error"]),
            description=description or body,
            request_id=request_id,
            code=_optional_str(payload.get("code")),
        )

    if "type" in payload:
        detail = payload.get("detail")
        return ErrorDetail(
            status_code=status_code,
            kind=str(payload["type"]),
            description=_text(payload.get("description")) or body,
            request_id=request_id,
            code=_optional_str(payload.get("code")),
            resolution=payload.get("resolution"),
            detail=detail if isinstance(detail, list) else None,
            doc_url=_optional_str(payload.get("docURL")),
        )

    return fallback()


def classify_response(response: requests.Response) -> ErrorDetail:
    """
    Classify a failed ``requests`` response

    Args:
        response: Response with a non-success status code

    Returns:
        ErrorDetail describing the failure
    """
    try:
        # Reads the streamed body; .text is served from the cached content
        response.content
    except requests.exceptions.RequestException:
        return ErrorDetail(
            status_code=response.status_code,
            kind=SDK_ERROR,
            description="unable to read response body",
            request_id=response.headers.get(REQUEST_ID_HEADER) or "",
        )

    return classify_error(response.status_code, response.headers, response.text)
