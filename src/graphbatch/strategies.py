"""
Call submission strategies.
A session routes every ``graph_call`` through exactly one strategy chosen at
construction: regular sessions perform calls right away, batch sessions queue
them for a later composite request.
"""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from graphbatch.api import GraphAPI
    from graphbatch.batch.api import GraphBatchAPI

PostProcessing = t.Callable[[t.Any], t.Any]


class CallStrategy(t.Protocol):
    """
    Capability to submit one logical Graph API call on behalf of a session.
    """

    def submit(
        self,
        *,
        api: GraphAPI,
        path: str,
        args: dict[str, t.Any],
        verb: str,
        options: dict[str, t.Any],
        post_processing: PostProcessing | None,
    ) -> t.Any: ...


class ImmediateCallStrategy:
    """Perform the call now and return its processed result."""

    def submit(
        self,
        *,
        api: GraphAPI,
        path: str,
        args: dict[str, t.Any],
        verb: str,
        options: dict[str, t.Any],
        post_processing: PostProcessing | None,
    ) -> t.Any:
        return api.perform_graph_call(
            path=path,
            args=args,
            verb=verb,
            options=options,
            post_processing=post_processing,
        )


class QueuingCallStrategy:
    """Queue the call on a batch session; the result arrives from ``execute()``."""

    def submit(
        self,
        *,
        api: GraphAPI,
        path: str,
        args: dict[str, t.Any],
        verb: str,
        options: dict[str, t.Any],
        post_processing: PostProcessing | None,
    ) -> None:
        batch_api = t.cast("GraphBatchAPI", api)
        batch_api.enqueue(
            path=path,
            args=args,
            verb=verb,
            options=options,
            post_processing=post_processing,
        )
        return None
