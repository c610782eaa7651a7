import json

import pytest

from graphbatch.exceptions import (
    APIError,
    AuthenticationError,
    BadGraphResponse,
    ClientError,
    ServerError,
    check_response,
    extract_error_info,
)


def _error_body(**error) -> str:
    return json.dumps(obj={"error": error})


def test_success_is_not_an_error():
    assert check_response(200, json.dumps(obj={"id": "1"})) is None
    assert check_response(200, "") is None
    assert check_response(204, "true") is None


def test_client_error_from_status():
    error = check_response(400, _error_body(message="Bad", type="GraphMethodException", code=100))

    assert type(error) is ClientError
    assert error.http_status == 400
    assert error.error_type == "GraphMethodException"
    assert error.error_code == 100
    assert error.error_message == "Bad"
    assert str(error) == "type: GraphMethodException, code: 100, message: Bad [HTTP 400]"


def test_structured_error_in_successful_status():
    error = check_response(200, _error_body(message="Hidden failure", type="GraphMethodException"))

    assert isinstance(error, ClientError)
    assert error.error_message == "Hidden failure"


@pytest.mark.parametrize("code", [None, 102, 190, 450, 452, 2500])
def test_oauth_errors_are_authentication_errors(code):
    info = {"message": "Invalid token", "type": "OAuthException"}
    if code is not None:
        info["code"] = code

    assert isinstance(check_response(400, _error_body(**info)), AuthenticationError)


def test_oauth_error_with_other_code_is_client_error():
    error = check_response(400, _error_body(message="Limit", type="OAuthException", code=4))

    assert type(error) is ClientError


def test_server_error_without_details():
    error = check_response(503, "Service Unavailable")

    assert type(error) is ServerError
    assert str(error) == "[HTTP 503]"


def test_server_status_with_details_is_client_error():
    assert type(check_response(500, _error_body(message="Unknown", type="GraphMethodException"))) is ClientError


def test_debug_headers_copied_onto_error():
    error = check_response(
        400,
        _error_body(message="Bad", type="GraphMethodException"),
        {"X-FB-Debug": "debug-value", "x-fb-rev": "1234", "x-fb-trace-id": "trace"},
    )

    assert error.error_debug == "debug-value"
    assert error.error_rev == "1234"
    assert error.error_trace_id == "trace"


def test_explicit_message():
    error = BadGraphResponse(200, "", "Graph API returned an empty body")

    assert isinstance(error, APIError)
    assert str(error) == "Graph API returned an empty body"
    assert error.error_code is None


def test_error_info_parsed_from_body_when_omitted():
    error = ClientError(400, _error_body(message="Bad", code="17", error_subcode=2446079))

    assert error.error_code == 17
    assert error.error_subcode == 2446079


@pytest.mark.parametrize("body", [None, "", "not json", "[1, 2]", '{"error": "text"}'])
def test_extract_error_info_ignores_unstructured_bodies(body):
    assert extract_error_info(body=body) is None
