"""
HTTP transport for Graph API calls.
Issues one request per call and hands back the raw status, body and headers;
interpretation of the body is left to the caller.
"""

from __future__ import annotations

import json
import typing as t
from dataclasses import dataclass, field
from urllib.parse import urlencode

import httpx
import structlog

from graphbatch.config import GraphConfig
from graphbatch.uploadable import is_binary_content, to_uploadable

log = structlog.get_logger(__name__)

READ_VERBS = frozenset({"get", "delete"})
WRITE_VERBS = frozenset({"post", "put"})
SUPPORTED_VERBS = READ_VERBS | WRITE_VERBS


@dataclass(frozen=True)
class GraphResponse:
    """
    Raw response returned by the transport.

    Parameters
    ----------
    status : int
        HTTP status code.
    body : str
        Undecoded response body.
    headers : dict[str, str]
        Response headers.
    """

    status: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)


def encode_value(*, value: t.Any) -> str:
    return value if isinstance(value, str) else json.dumps(obj=value)


def encode_params(params: t.Mapping[str, t.Any]) -> str:
    """
    Form-encode parameters in sorted key order.

    Parameters
    ----------
    params : typing.Mapping[str, typing.Any]
        Call arguments. Non-string values are JSON-encoded first.

    Returns
    -------
    str
        ``application/x-www-form-urlencoded`` string.
    """
    return urlencode(
        [(str(key), encode_value(value=value)) for key, value in sorted(params.items())]
    )


def split_files(
    *, args: t.Mapping[str, t.Any]
) -> tuple[dict[str, str], dict[str, tuple[str, bytes, str]]]:
    """
    Separate file attachments from plain form parameters.

    Parameters
    ----------
    args : typing.Mapping[str, typing.Any]
        Request parameters.

    Returns
    -------
    tuple[dict[str, str], dict[str, tuple[str, bytes, str]]]
        Encoded form fields and httpx multipart file tuples.
    """
    data: dict[str, str] = {}
    files: dict[str, tuple[str, bytes, str]] = {}
    for key, value in args.items():
        if is_binary_content(value=value):
            files[str(key)] = to_uploadable(value=value).to_upload_tuple()
        else:
            data[str(key)] = encode_value(value=value)
    return data, files


class HTTPService:
    """
    Synchronous transport built on ``httpx.Client``.

    Parameters
    ----------
    config : GraphConfig | None, optional
        Connection settings; defaults to ``GraphConfig()``.
    client_factory : typing.Callable[[], httpx.Client] | None, optional
        Factory for the client used by each request. Tests replace it to
        inject an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: GraphConfig | None = None,
        client_factory: t.Callable[[], httpx.Client] | None = None,
    ) -> None:
        self.config = config or GraphConfig()
        self._client_factory: t.Callable[[], httpx.Client] = client_factory or (
            lambda: httpx.Client(timeout=self.config.timeout)
        )

    def make_request(
        self,
        *,
        path: str,
        args: t.Mapping[str, t.Any],
        verb: str,
        options: t.Mapping[str, t.Any] | None = None,
    ) -> GraphResponse:
        """
        Send one call to the Graph API.

        Parameters
        ----------
        path : str
            Request path (already versioned).
        args : typing.Mapping[str, typing.Any]
            Call arguments. Sent as query parameters for read verbs and as
            a form (multipart when files are present) for write verbs.
        verb : str
            HTTP verb, case-insensitive.
        options : typing.Mapping[str, typing.Any] | None, optional
            Transport options: ``timeout`` and extra ``headers``.

        Returns
        -------
        GraphResponse
            Raw status, body and headers.
        """
        options = options or {}
        method = verb.lower()
        if method not in SUPPORTED_VERBS:
            raise ValueError(f"Unsupported HTTP verb: {verb!r}")

        url = f"{self.config.base_url}{path}"
        request_kwargs: dict[str, t.Any] = {"headers": dict(options.get("headers") or {})}
        if "timeout" in options:
            request_kwargs["timeout"] = options["timeout"]

        if method in READ_VERBS:
            request_kwargs["params"] = {
                str(key): encode_value(value=value) for key, value in args.items()
            }
        else:
            data, files = split_files(args=args)
            request_kwargs["data"] = data
            if files:
                request_kwargs["files"] = files

        log.debug(
            event="Sending Graph API request",
            method=method.upper(),
            path=path,
            arg_count=len(args),
        )
        with self._client_factory() as client:
            response = client.request(method.upper(), url, **request_kwargs)
        log.debug(
            event="Received Graph API response",
            method=method.upper(),
            path=path,
            status=response.status_code,
        )
        return GraphResponse(
            status=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

