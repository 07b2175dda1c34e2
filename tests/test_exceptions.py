"""Tests for error classification.

Covers both generations of API error bodies, the fallback for bodies
that are not JSON, and the exception wrapper.
"""

import json

import pytest
import requests
from conftest import REQUEST_ID, StubRaw, make_response
from requests.structures import CaseInsensitiveDict

from smartcar_api import SDK_ERROR, ErrorDetail, SmartcarError, classify_error
from smartcar_api.exceptions import classify_response

JSON_HEADERS = {"Content-Type": "application/json", "SC-Request-Id": REQUEST_ID}


class TestLegacyErrorShape:
    """Tests for the OAuth style {"error": ...} body."""

    def test_error_and_message(self):
        body = json.dumps(
            {"error": "invalid_grant", "message": "Code has expired", "code": "G01"}
        )
        error = classify_error(400, JSON_HEADERS, body)

        assert error.status_code == 400
        assert error.kind == "invalid_grant"
        assert error.description == "Code has expired"
        assert error.code == "G01"
        assert error.request_id == REQUEST_ID

    def test_error_description_used_without_message(self):
        body = json.dumps(
            {"error": "invalid_client", "error_description": "Bad client secret"}
        )
        error = classify_error(401, JSON_HEADERS, body)

        assert error.kind == "invalid_client"
        assert error.description == "Bad client secret"
        assert error.code is None

    def test_missing_description_falls_back_to_body(self):
        body = json.dumps({"error": "server_error"})
        error = classify_error(500, JSON_HEADERS, body)

        assert error.kind == "server_error"
        assert error.description == body

    def test_non_string_message_falls_back(self):
        body = json.dumps(
            {"error": "server_error", "message": {"reason": "x"}, "error_description": 7}
        )
        error = classify_error(500, JSON_HEADERS, body)

        assert error.kind == "server_error"
        assert error.description == body

    def test_non_string_message_uses_error_description(self):
        body = json.dumps(
            {"error": "invalid_grant", "message": 42, "error_description": "Expired"}
        )
        error = classify_error(400, JSON_HEADERS, body)

        assert error.description == "Expired"

    def test_legacy_shape_wins_over_type(self):
        body = json.dumps(
            {
                "error": "authentication_error",
                "message": "Invalid token",
                "type": "AUTHENTICATION",
                "description": "ignored",
            }
        )
        error = classify_error(401, JSON_HEADERS, body)

        assert error.kind == "authentication_error"
        assert error.description == "Invalid token"
        assert error.doc_url is None


class TestCurrentErrorShape:
    """Tests for the {"type": ..., "description": ...} body."""

    def test_all_fields(self):
        body = json.dumps(
            {
                "type": "COMPATIBILITY",
                "code": "MAKE_NOT_COMPATIBLE",
                "description": "The vehicle's make is not supported.",
                "docURL": "https://smartcar.com/docs/errors/compatibility",
                "resolution": "CONTACT_SUPPORT",
                "detail": [{"field": "vin", "message": "unsupported"}],
                "statusCode": 409,
                "requestId": REQUEST_ID,
            }
        )
        error = classify_error(409, JSON_HEADERS, body)

        assert error == ErrorDetail(
            status_code=409,
            kind="COMPATIBILITY",
            description="The vehicle's make is not supported.",
            request_id=REQUEST_ID,
            code="MAKE_NOT_COMPATIBLE",
            resolution="CONTACT_SUPPORT",
            detail=[{"field": "vin", "message": "unsupported"}],
            doc_url="https://smartcar.com/docs/errors/compatibility",
        )

    def test_null_code_and_resolution(self):
        body = json.dumps(
            {
                "type": "SERVER",
                "code": None,
                "description": "Internal error",
                "docURL": "https://smartcar.com/docs/errors/server",
                "resolution": None,
            }
        )
        error = classify_error(500, JSON_HEADERS, body)

        assert error.kind == "SERVER"
        assert error.code is None
        assert error.resolution is None
        assert error.detail is None

    def test_resolution_object_is_kept(self):
        body = json.dumps(
            {
                "type": "VEHICLE_STATE",
                "description": "Vehicle is asleep",
                "resolution": {"type": "RETRY_LATER"},
            }
        )
        error = classify_error(409, JSON_HEADERS, body)

        assert error.resolution == {"type": "RETRY_LATER"}

    def test_missing_description_falls_back_to_body(self):
        body = json.dumps({"type": "SERVER", "code": "INTERNAL"})
        error = classify_error(500, JSON_HEADERS, body)

        assert error.kind == "SERVER"
        assert error.code == "INTERNAL"
        assert error.description == body

    @pytest.mark.parametrize("description", ["", None, ["not", "text"]])
    def test_unusable_description_falls_back_to_body(self, description):
        body = json.dumps({"type": "RATE_LIMIT", "description": description})
        error = classify_error(429, JSON_HEADERS, body)

        assert error.kind == "RATE_LIMIT"
        assert error.description == body


class TestUnrecognizedBodies:
    """Tests for the SDK_ERROR fallback."""

    def test_non_json_500_keeps_raw_body(self):
        body = "<html><body>502 Bad Gateway</body></html>"
        error = classify_error(500, {"SC-Request-Id": REQUEST_ID}, body)

        assert error.kind == SDK_ERROR
        assert error.status_code == 500
        assert error.description == body

    def test_non_json_content_type(self):
        body = '{"error": "looks like json"}'
        error = classify_error(502, {"Content-Type": "text/html"}, body)

        assert error.kind == SDK_ERROR
        assert error.description == body

    def test_unknown_json_shape(self):
        body = json.dumps({"status": "broken"})
        error = classify_error(500, JSON_HEADERS, body)

        assert error.kind == SDK_ERROR
        assert error.description == body

    def test_json_that_is_not_an_object(self):
        error = classify_error(500, JSON_HEADERS, '["a", "b"]')

        assert error.kind == SDK_ERROR
        assert error.description == '["a", "b"]'

    def test_missing_request_id_is_empty(self):
        error = classify_error(500, {}, "oops")

        assert error.request_id == ""

    def test_header_lookup_is_case_insensitive(self):
        error = classify_error(500, {"sc-request-id": "abc"}, "oops")

        assert error.request_id == "abc"


class TestClassifyResponse:
    """Tests for classifying requests.Response objects."""

    def test_reads_body_and_headers(self):
        response = make_response(
            404,
            {"type": "RESOURCE_NOT_FOUND", "description": "Not found", "code": None},
        )
        error = classify_response(response)

        assert error.kind == "RESOURCE_NOT_FOUND"
        assert error.status_code == 404
        assert error.request_id == REQUEST_ID

    def test_unreadable_body(self):
        response = requests.Response()
        response.status_code = 502
        response.headers = CaseInsensitiveDict(JSON_HEADERS)
        response.raw = StubRaw(b'{"type": "UPSTR', fail=True)

        error = classify_response(response)

        assert error.status_code == 502
        assert error.kind == SDK_ERROR
        assert error.description == "unable to read response body"
        assert error.request_id == REQUEST_ID


class TestSmartcarError:
    """Tests for the exception wrapper."""

    def test_message_with_code(self):
        error = SmartcarError(
            ErrorDetail(
                status_code=409,
                kind="VEHICLE_STATE",
                code="ASLEEP",
                description="Vehicle is asleep",
            )
        )

        assert str(error) == "VEHICLE_STATE:ASLEEP - Vehicle is asleep"
        assert error.status_code == 409
        assert error.kind == "VEHICLE_STATE"
        assert error.code == "ASLEEP"

    def test_message_without_code(self):
        error = SmartcarError.sdk_error("boom", status_code=500, request_id="r1")

        assert str(error) == "SDK_ERROR - boom"
        assert error.request_id == "r1"
        assert error.resolution is None

    def test_error_detail_is_immutable(self):
        detail = ErrorDetail(status_code=500, kind=SDK_ERROR, description="boom")

        with pytest.raises(AttributeError):
            detail.kind = "OTHER"
