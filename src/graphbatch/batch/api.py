"""
Batch session: queue calls, send them as composite requests of at most
``MAX_CALLS`` calls, and hand back one outcome per call.
"""

from __future__ import annotations

import json
import typing as t

import structlog
from pydantic import ValidationError

from graphbatch.api import GraphAPI, decode_body, select_component
from graphbatch.batch.operation import MAX_ATTEMPTS, BatchOperation, build_chunk_params, iter_chunks
from graphbatch.collection import GraphCollection
from graphbatch.exceptions import APIError, BadGraphResponse, ClientError, check_response
from graphbatch.models import BatchSlotResponse
from graphbatch.strategies import PostProcessing, QueuingCallStrategy
from graphbatch.utils.logging import logging_context

log = structlog.get_logger(__name__)

NO_RESPONSE_MESSAGE = "No response from Graph API"


class GraphBatchAPI(GraphAPI):
    """
    Batch session bound to an original ``GraphAPI`` session.

    Every call made through this session (``get_object``, ``graph_call``, ...)
    is queued and returns ``None``; ``execute()`` performs them.

    Parameters
    ----------
    api : GraphAPI
        Original session. Its credentials and transport are reused, and
        paginated results are bound to it rather than to the batch session.
    http_options : typing.Mapping[typing.Any, typing.Any] | None, optional
        Transport options for the composite requests.

    Notes
    -----
    A batch session is single-use and not thread-safe: calls must not be
    queued while ``execute()`` runs.
    """

    def __init__(
        self,
        api: GraphAPI,
        http_options: t.Mapping[t.Any, t.Any] | None = None,
    ) -> None:
        super().__init__(
            access_token=api.access_token,
            app_secret=api.app_secret,
            http_service=api.http_service,
            call_strategy=QueuingCallStrategy(),
        )
        self.original_api = api
        self.http_options = dict(http_options or {})
        self.batch_calls: list[BatchOperation] = []
        self.results: list[t.Any] | None = None

    def __enter__(self) -> GraphBatchAPI:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: t.Any,
    ) -> None:
        if exc_type is None:
            self.results = self.execute()

    def batch(self, http_options: t.Mapping[t.Any, t.Any] | None = None) -> GraphBatchAPI:
        raise TypeError("Batch sessions cannot be nested")

    def enqueue(
        self,
        path: str,
        args: t.Mapping[str, t.Any] | None = None,
        verb: str = "get",
        options: t.Mapping[str, t.Any] | None = None,
        post_processing: PostProcessing | None = None,
    ) -> None:
        """
        Queue a call for the next ``execute()``.

        Parameters
        ----------
        path : str
            Object or connection path.
        args : typing.Mapping[str, typing.Any] | None, optional
            Call arguments.
        verb : str, optional
            HTTP verb, any case.
        options : typing.Mapping[str, typing.Any] | None, optional
            Per-call options: ``access_token`` overrides the session token,
            ``http_component`` selects the result, ``batch_args`` adds
            descriptor fields such as ``name``.
        post_processing : PostProcessing | None, optional
            Stored and applied to the call's final outcome.
        """
        options = dict(options or {})
        operation = BatchOperation(
            url=path,
            args=dict(args or {}),
            method=verb,
            access_token=options.get("access_token") or self.access_token,
            http_options=options,
            post_processing=post_processing,
        )
        self.batch_calls.append(operation)
        log.debug(
            event="Queued batch call",
            operation_id=operation.identifier,
            method=operation.method,
            path=path,
            queue_length=len(self.batch_calls),
        )

    def execute(self, http_options: t.Mapping[t.Any, t.Any] | None = None) -> list[t.Any]:
        """
        Perform every queued call and return their outcomes.

        The queue is drained in chunks of at most ``MAX_CALLS``. Calls whose
        slot came back empty are collected and retried in further rounds until
        they have been sent ``MAX_ATTEMPTS`` times.

        Parameters
        ----------
        http_options : typing.Mapping[typing.Any, typing.Any] | None, optional
            Transport options merged over the session's ``http_options``.

        Returns
        -------
        list[typing.Any]
            Outcomes in processing order: first-pass results in queue order,
            then retried calls in the order their retries resolved. Service
            errors are ``APIError`` values, not raised.

        Raises
        ------
        BadGraphResponse
            If a composite response has an empty body or is not an array.
        """
        if not self.batch_calls:
            return []

        options = {**self.http_options, **(http_options or {})}
        pending, self.batch_calls = self.batch_calls, []
        results: list[t.Any] = []
        round_number = 1

        with logging_context(batch_call_count=len(pending)):
            while pending:
                retries: list[BatchOperation] = []
                for chunk in iter_chunks(pending):
                    outcomes, chunk_retries = self._execute_chunk(
                        chunk=chunk,
                        http_options=options,
                        round_number=round_number,
                    )
                    results.extend(outcomes)
                    retries.extend(chunk_retries)
                log.debug(
                    event="Batch round complete",
                    round_number=round_number,
                    call_count=len(pending),
                    requeued_count=len(retries),
                )
                pending = retries
                round_number += 1

        return results

    def _execute_chunk(
        self,
        *,
        chunk: list[BatchOperation],
        http_options: dict[str, t.Any],
        round_number: int,
    ) -> tuple[list[t.Any], list[BatchOperation]]:
        """
        Send one composite request and demultiplex its response.

        Parameters
        ----------
        chunk : list[BatchOperation]
            Calls of the composite request.
        http_options : dict[str, typing.Any]
            Transport options for the request.
        round_number : int
            Retry round, for logging.

        Returns
        -------
        tuple[list[typing.Any], list[BatchOperation]]
            Final outcomes in slot order, and calls to retry.
        """
        params = build_chunk_params(
            operations=chunk,
            access_token=self.access_token,
            app_secret=self.app_secret,
        )
        log.info(
            event="Submitting batch request",
            round_number=round_number,
            call_count=len(chunk),
            attachment_count=len(params) - 1,
        )
        _, response = self.fetch_payload(path="/", args=params, verb="post", options=http_options)

        if response is None:
            log.error(event="Batch request returned an empty body", round_number=round_number)
            raise BadGraphResponse(200, "", "Graph API returned an empty body")
        if not isinstance(response, list):
            log.error(
                event="Batch request returned a non-array body",
                round_number=round_number,
                response_type=type(response).__name__,
            )
            raise BadGraphResponse(200, json.dumps(obj=response), "Graph API returned a batch response that is not an array")

        outcomes: list[t.Any] = []
        retries: list[BatchOperation] = []
        for index, operation in enumerate(chunk):
            slot = response[index] if index < len(response) else None
            if slot is not None:
                outcomes.append(operation.finalize(self._evaluate_slot(operation=operation, slot=slot)))
            elif operation.attempts < MAX_ATTEMPTS:
                operation.attempts += 1
                log.warning(
                    event="No response for batch call, requeuing",
                    operation_id=operation.identifier,
                    path=operation.url,
                    attempt=operation.attempts,
                )
                retries.append(operation)
            else:
                log.error(
                    event="No response for batch call, giving up",
                    operation_id=operation.identifier,
                    path=operation.url,
                    attempts=operation.attempts,
                )
                outcomes.append(operation.finalize(ClientError(404, "", NO_RESPONSE_MESSAGE)))
        return outcomes, retries

    def _evaluate_slot(self, *, operation: BatchOperation, slot: t.Any) -> t.Any:
        """
        Turn one slot of a composite response into the call's evaluated value.

        Parameters
        ----------
        operation : BatchOperation
            Call the slot answers.
        slot : typing.Any
            ``{"code", "body", "headers"}`` object from the composite response.

        Returns
        -------
        typing.Any
            Classified ``APIError``, or the selected component of the slot
            with pageable payloads bound to the original session.
        """
        try:
            slot_response = BatchSlotResponse.model_validate(slot)
        except ValidationError:
            return BadGraphResponse(None, json.dumps(obj=slot, default=str), "Malformed batch response slot")

        headers = slot_response.header_map()
        body = slot_response.body or ""
        error = check_response(slot_response.code, body, headers)
        if error is not None:
            return error

        try:
            payload = decode_body(status=slot_response.code, body=body)
        except APIError as decode_error:
            return decode_error

        raw_result = select_component(
            component=operation.http_component,
            status=slot_response.code,
            headers=headers,
            payload=payload,
        )
        return GraphCollection.evaluate(raw_result, self.original_api, headers=headers)
