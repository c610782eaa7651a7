"""
Graph API error taxonomy and the response classifier shared by immediate and batched calls.
"""

from __future__ import annotations

import json
import typing as t

AUTHENTICATION_ERROR_CODES = frozenset({102, 190, 450, 452, 2500})
DEBUG_HEADERS = ("x-fb-debug", "x-fb-rev", "x-fb-trace-id")

_MESSAGE_FIELDS = (
    "type",
    "code",
    "error_subcode",
    "message",
    "error_user_title",
    "error_user_msg",
    "x-fb-trace-id",
)


class APIError(Exception):
    """
    Base error for any failed Graph API interaction.

    Parameters
    ----------
    http_status : int | None
        HTTP status code of the failing response.
    response_body : str | None
        Raw response body.
    error_info : dict[str, typing.Any] | str | None, optional
        Structured ``error`` object from the body, or an explicit message.
        When omitted, the structured error is parsed from ``response_body``.
    """

    def __init__(
        self,
        http_status: int | None,
        response_body: str | None,
        error_info: dict[str, t.Any] | str | None = None,
    ) -> None:
        self.http_status = http_status
        self.response_body = response_body.strip() if response_body else ""
        self.error_type: str | None = None
        self.error_code: int | None = None
        self.error_subcode: int | None = None
        self.error_message: str | None = None
        self.error_user_title: str | None = None
        self.error_user_msg: str | None = None
        self.error_trace_id: str | None = None
        self.error_debug: str | None = None
        self.error_rev: str | None = None

        if isinstance(error_info, str):
            message = error_info
        else:
            info = error_info if error_info is not None else extract_error_info(body=self.response_body)
            self._apply_error_info(error_info=info or {})
            message = self._build_message(error_info=info or {})
        super().__init__(message)

    def _apply_error_info(self, *, error_info: dict[str, t.Any]) -> None:
        self.error_type = error_info.get("type")
        self.error_code = _as_int(value=error_info.get("code"))
        self.error_subcode = _as_int(value=error_info.get("error_subcode"))
        self.error_message = error_info.get("message")
        self.error_user_title = error_info.get("error_user_title")
        self.error_user_msg = error_info.get("error_user_msg")
        self.error_trace_id = error_info.get("x-fb-trace-id")
        self.error_debug = error_info.get("x-fb-debug")
        self.error_rev = error_info.get("x-fb-rev")

    def _build_message(self, *, error_info: dict[str, t.Any]) -> str:
        fields = ", ".join(
            f"{key}: {error_info[key]}"
            for key in _MESSAGE_FIELDS
            if error_info.get(key) is not None
        )
        status = f"[HTTP {self.http_status}]"
        return f"{fields} {status}" if fields else status


class BadGraphResponse(APIError):
    """The composite batch response body was absent or not an array."""


class ClientError(APIError):
    """The service rejected the call (4xx, or a structured error in the body)."""


class AuthenticationError(ClientError):
    """The call failed because of an invalid, expired or missing credential."""


class ServerError(APIError):
    """The service failed without a structured explanation (5xx)."""


def _as_int(*, value: t.Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def extract_error_info(*, body: str | None) -> dict[str, t.Any] | None:
    """
    Extract the structured ``error`` object from a response body.

    Parameters
    ----------
    body : str | None
        Raw response body.

    Returns
    -------
    dict[str, typing.Any] | None
        The ``error`` object when the body is a JSON object carrying one, else ``None``.
    """
    if not body:
        return None
    try:
        payload = json.loads(s=body)
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        return payload["error"]
    return None


def is_authentication_error(*, error_info: dict[str, t.Any] | None) -> bool:
    if not error_info or error_info.get("type") != "OAuthException":
        return False
    code = _as_int(value=error_info.get("code"))
    return code is None or code in AUTHENTICATION_ERROR_CODES


def check_response(
    status_code: int,
    body: str | None,
    headers: t.Mapping[str, str] | None = None,
) -> APIError | None:
    """
    Classify a response as an error, or return ``None`` when it succeeded.

    Parameters
    ----------
    status_code : int
        HTTP status code.
    body : str | None
        Raw response body.
    headers : typing.Mapping[str, str] | None, optional
        Response headers; debug headers are copied onto the error.

    Returns
    -------
    APIError | None
        Classified error, or ``None`` for a successful response.
    """
    status = int(status_code)
    error_info = extract_error_info(body=body)
    if status < 400 and error_info is None:
        return None

    info = dict(error_info or {})
    lowered_headers = {key.lower(): value for key, value in (headers or {}).items()}
    for header in DEBUG_HEADERS:
        if header in lowered_headers:
            info[header] = lowered_headers[header]

    if is_authentication_error(error_info=error_info):
        error_class: type[APIError] = AuthenticationError
    elif status >= 500 and error_info is None:
        error_class = ServerError
    else:
        error_class = ClientError
    return error_class(status, body, info)
