"""
Graph API client.
Exposes ``GraphAPI``, whose calls go through a call strategy: performed
immediately on a regular session, queued on a batch session (see ``batch()``).
"""

from __future__ import annotations

import enum
import json
import typing as t

import structlog

from graphbatch.collection import GraphCollection, PageParams
from graphbatch.config import GraphConfig
from graphbatch.exceptions import BadGraphResponse, check_response
from graphbatch.models import HttpComponent, resolve_http_component
from graphbatch.strategies import CallStrategy, ImmediateCallStrategy, PostProcessing
from graphbatch.transport import GraphResponse, HTTPService
from graphbatch.uploadable import UploadableIO
from graphbatch.utils.signing import generate_appsecret_proof

if t.TYPE_CHECKING:
    from graphbatch.batch.api import GraphBatchAPI

log = structlog.get_logger(__name__)

TRANSPORT_OPTIONS = ("timeout", "headers")


def normalize_options(options: t.Mapping[t.Any, t.Any] | None) -> dict[str, t.Any]:
    """
    Turn option keys into plain strings.

    Parameters
    ----------
    options : typing.Mapping[typing.Any, typing.Any] | None
        Per-call options; keys may be strings or enum members.

    Returns
    -------
    dict[str, typing.Any]
        Copy of the options keyed by strings.
    """
    normalized: dict[str, t.Any] = {}
    for key, value in (options or {}).items():
        name = key.value if isinstance(key, enum.Enum) else key
        normalized[str(name)] = value
    return normalized


def decode_body(*, status: int, body: str | None) -> t.Any:
    """
    Decode a JSON response body.

    Parameters
    ----------
    status : int
        HTTP status of the response, used for error reporting.
    body : str | None
        Raw body. Scalars such as ``true`` or ``42`` are valid payloads.

    Returns
    -------
    typing.Any
        Decoded payload, ``None`` for an empty body.
    """
    if body is None or not body.strip():
        return None
    try:
        return json.loads(s=body)
    except ValueError as error:
        raise BadGraphResponse(status, body, "Graph API returned a body that is not valid JSON") from error


def select_component(
    *,
    component: HttpComponent,
    status: int,
    headers: dict[str, str],
    payload: t.Any,
) -> t.Any:
    if component is HttpComponent.STATUS:
        return int(status)
    if component is HttpComponent.HEADERS:
        return headers
    return payload


class GraphAPI:
    """
    Session against the Graph API.

    Parameters
    ----------
    access_token : str | None, optional
        Default credential sent with every call.
    app_secret : str | None, optional
        Application secret; when set, calls carry an ``appsecret_proof``.
    config : GraphConfig | None, optional
        Connection settings, ignored when ``http_service`` is given.
    http_service : HTTPService | None, optional
        Transport; built from ``config`` when omitted.
    call_strategy : CallStrategy | None, optional
        How ``graph_call`` submits calls. Defaults to immediate execution.
    """

    def __init__(
        self,
        access_token: str | None = None,
        app_secret: str | None = None,
        config: GraphConfig | None = None,
        http_service: HTTPService | None = None,
        call_strategy: CallStrategy | None = None,
    ) -> None:
        self.access_token = access_token
        self.app_secret = app_secret
        self.http_service = http_service or HTTPService(config=config)
        self._call_strategy: CallStrategy = call_strategy or ImmediateCallStrategy()

    @property
    def config(self) -> GraphConfig:
        return self.http_service.config

    def api(
        self,
        path: str,
        args: t.Mapping[str, t.Any] | None = None,
        verb: str = "get",
        options: t.Mapping[str, t.Any] | None = None,
    ) -> GraphResponse:
        """
        Send a raw call: add credentials, version the path, and hit the transport.

        Parameters
        ----------
        path : str
            Object or connection path (e.g. ``"me/friends"``).
        args : typing.Mapping[str, typing.Any] | None, optional
            Call arguments.
        verb : str, optional
            HTTP verb.
        options : typing.Mapping[str, typing.Any] | None, optional
            Per-call options. ``access_token`` overrides the session token;
            ``timeout`` and ``headers`` are passed to the transport.

        Returns
        -------
        GraphResponse
            Raw transport response.
        """
        request_args = dict(args or {})
        options = options or {}
        access_token = options.get("access_token") or self.access_token
        if access_token and "access_token" not in request_args:
            request_args["access_token"] = access_token
        token = request_args.get("access_token")
        if self.app_secret and token and "appsecret_proof" not in request_args:
            request_args["appsecret_proof"] = generate_appsecret_proof(
                access_token=token,
                app_secret=self.app_secret,
            )

        return self.http_service.make_request(
            path=self.config.versioned_path(path=path),
            args=request_args,
            verb=verb,
            options={key: options[key] for key in TRANSPORT_OPTIONS if key in options},
        )

    def graph_call(
        self,
        path: str,
        args: t.Mapping[str, t.Any] | None = None,
        verb: str = "get",
        options: t.Mapping[t.Any, t.Any] | None = None,
        post_processing: PostProcessing | None = None,
    ) -> t.Any:
        """
        Submit a call through the session's call strategy.

        Returns
        -------
        typing.Any
            The processed result for a regular session, ``None`` on a batch session.
        """
        return self._call_strategy.submit(
            api=self,
            path=path,
            args=dict(args or {}),
            verb=verb,
            options=normalize_options(options),
            post_processing=post_processing,
        )

    def fetch_payload(
        self,
        path: str,
        args: t.Mapping[str, t.Any] | None = None,
        verb: str = "get",
        options: t.Mapping[str, t.Any] | None = None,
    ) -> tuple[GraphResponse, t.Any]:
        """
        Send a call, raise its classified error if any, and decode the body.

        Returns
        -------
        tuple[GraphResponse, typing.Any]
            Raw response and decoded body (``None`` when the body is empty).
        """
        response = self.api(path=path, args=args, verb=verb, options=options)

        error = check_response(response.status, response.body, response.headers)
        if error is not None:
            log.debug(
                event="Graph API call failed",
                path=path,
                status=response.status,
                error_type=type(error).__name__,
            )
            raise error

        return response, decode_body(status=response.status, body=response.body)

    def perform_graph_call(
        self,
        path: str,
        args: t.Mapping[str, t.Any] | None = None,
        verb: str = "get",
        options: t.Mapping[t.Any, t.Any] | None = None,
        post_processing: PostProcessing | None = None,
    ) -> t.Any:
        """
        Perform a call now, raising any classified error.

        Parameters
        ----------
        path : str
            Object or connection path.
        args : typing.Mapping[str, typing.Any] | None, optional
            Call arguments.
        verb : str, optional
            HTTP verb.
        options : typing.Mapping[typing.Any, typing.Any] | None, optional
            Per-call options, including ``http_component``.
        post_processing : PostProcessing | None, optional
            Applied to the evaluated result before it is returned.

        Returns
        -------
        typing.Any
            Selected response component, pageable payloads wrapped in
            ``GraphCollection``.
        """
        options = normalize_options(options)
        component = resolve_http_component(options=options)
        response, payload = self.fetch_payload(path=path, args=args, verb=verb, options=options)
        raw_result = select_component(
            component=component,
            status=response.status,
            headers=response.headers,
            payload=payload,
        )
        result = GraphCollection.evaluate(raw_result, self, headers=response.headers)
        return post_processing(result) if post_processing else result

    def get_object(
        self,
        id: str,
        args: t.Mapping[str, t.Any] | None = None,
        options: t.Mapping[t.Any, t.Any] | None = None,
        post_processing: PostProcessing | None = None,
    ) -> t.Any:
        return self.graph_call(id, args, "get", options, post_processing)

    def get_objects(
        self,
        ids: t.Sequence[str],
        args: t.Mapping[str, t.Any] | None = None,
        options: t.Mapping[t.Any, t.Any] | None = None,
        post_processing: PostProcessing | None = None,
    ) -> t.Any:
        """Fetch several objects in one call with the ``ids`` argument."""
        if not ids:
            return {}
        return self.graph_call("", {**(args or {}), "ids": ",".join(ids)}, "get", options, post_processing)

    def get_connections(
        self,
        id: str,
        connection_name: str,
        args: t.Mapping[str, t.Any] | None = None,
        options: t.Mapping[t.Any, t.Any] | None = None,
        post_processing: PostProcessing | None = None,
    ) -> t.Any:
        return self.graph_call(f"{id}/{connection_name}", args, "get", options, post_processing)

    def put_connections(
        self,
        id: str,
        connection_name: str,
        args: t.Mapping[str, t.Any] | None = None,
        options: t.Mapping[t.Any, t.Any] | None = None,
        post_processing: PostProcessing | None = None,
    ) -> t.Any:
        return self.graph_call(f"{id}/{connection_name}", args, "post", options, post_processing)

    def put_picture(
        self,
        picture: t.Any,
        content_type: str | None = None,
        args: t.Mapping[str, t.Any] | None = None,
        target_id: str = "me",
        options: t.Mapping[t.Any, t.Any] | None = None,
        post_processing: PostProcessing | None = None,
    ) -> t.Any:
        """
        Upload a photo.

        Parameters
        ----------
        picture : typing.Any
            Path, readable binary file object, or ``UploadableIO``.
        content_type : str | None, optional
            MIME type of the picture; guessed from the filename when omitted.
        args : typing.Mapping[str, typing.Any] | None, optional
            Extra arguments such as ``message``.
        target_id : str, optional
            Object receiving the photo.
        """
        source = picture if isinstance(picture, UploadableIO) else UploadableIO(picture, content_type)
        return self.graph_call(
            f"{target_id}/photos",
            {**(args or {}), "source": source},
            "post",
            options,
            post_processing,
        )

    def delete_object(
        self,
        id: str,
        options: t.Mapping[t.Any, t.Any] | None = None,
        post_processing: PostProcessing | None = None,
    ) -> t.Any:
        return self.graph_call(id, {}, "delete", options, post_processing)

    def delete_connections(
        self,
        id: str,
        connection_name: str,
        args: t.Mapping[str, t.Any] | None = None,
        options: t.Mapping[t.Any, t.Any] | None = None,
        post_processing: PostProcessing | None = None,
    ) -> t.Any:
        return self.graph_call(f"{id}/{connection_name}", args, "delete", options, post_processing)

    def get_page(self, params: PageParams) -> t.Any:
        path, args = params
        return self.graph_call(path, args, "get")

    def batch(self, http_options: t.Mapping[t.Any, t.Any] | None = None) -> GraphBatchAPI:
        """
        Open a batch session bound to this session.

        Parameters
        ----------
        http_options : typing.Mapping[typing.Any, typing.Any] | None, optional
            Transport options for the composite requests.

        Returns
        -------
        GraphBatchAPI
            Batch session. As a context manager it executes the queued calls
            on clean exit and stores them in ``results``.

        Notes
        -----
        >>> with api.batch() as batch_api:
        ...     batch_api.get_object("me")
        ...     batch_api.get_connections("me", "friends")
        >>> me, friends = batch_api.results
        """
        from graphbatch.batch.api import GraphBatchAPI

        return GraphBatchAPI(api=self, http_options=http_options)
