"""
Paginated result wrapper.
A Graph API connection returns ``{"data": [...], "paging": {...}}``; such payloads
are exposed as a list of items that can fetch neighbouring pages on demand.
"""

from __future__ import annotations

import typing as t
from urllib.parse import parse_qsl, urlparse

import structlog

if t.TYPE_CHECKING:
    from graphbatch.api import GraphAPI

log = structlog.get_logger(__name__)

PageParams = tuple[str, dict[str, str]]


class GraphCollection(list):
    """
    List of items from one page of a paginated Graph API connection.

    Parameters
    ----------
    response : dict[str, typing.Any]
        Decoded page payload containing a ``data`` list.
    api : GraphAPI
        Session used to fetch further pages. Never a batch session.
    headers : dict[str, str] | None, optional
        Response headers of the page, when known.
    """

    def __init__(
        self,
        response: dict[str, t.Any],
        api: GraphAPI,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(response.get("data") or [])
        self.raw_response = response
        self.paging: dict[str, t.Any] = response.get("paging") or {}
        self.summary: dict[str, t.Any] | None = response.get("summary")
        self.headers = headers or {}
        self.api = api

    @staticmethod
    def is_pageable(*, value: t.Any) -> bool:
        return isinstance(value, dict) and isinstance(value.get("data"), list)

    @classmethod
    def evaluate(
        cls,
        value: t.Any,
        api: GraphAPI,
        headers: dict[str, str] | None = None,
    ) -> t.Any:
        """
        Wrap a pageable payload, leave anything else untouched.

        Parameters
        ----------
        value : typing.Any
            Decoded call result.
        api : GraphAPI
            Session that subsequent page fetches go through.
        headers : dict[str, str] | None, optional
            Response headers to keep on the collection.

        Returns
        -------
        typing.Any
            ``GraphCollection`` for pageable payloads, else ``value``.
        """
        if cls.is_pageable(value=value):
            return cls(response=value, api=api, headers=headers)
        return value

    @staticmethod
    def parse_page_url(url: str) -> PageParams:
        """
        Split a paging URL into a request path and its query arguments.

        Parameters
        ----------
        url : str
            Absolute ``next``/``previous`` URL from the paging block.

        Returns
        -------
        PageParams
            ``(path, args)`` with the path stripped of its leading slash.
        """
        parsed = urlparse(url=url)
        return parsed.path.lstrip("/"), dict(parse_qsl(parsed.query, keep_blank_values=True))

    def next_page_params(self) -> PageParams | None:
        url = self.paging.get("next")
        return self.parse_page_url(url) if url else None

    def previous_page_params(self) -> PageParams | None:
        url = self.paging.get("previous")
        return self.parse_page_url(url) if url else None

    def next_page(self, extra_params: dict[str, t.Any] | None = None) -> t.Any:
        return self._fetch_page(params=self.next_page_params(), extra_params=extra_params)

    def previous_page(self, extra_params: dict[str, t.Any] | None = None) -> t.Any:
        return self._fetch_page(params=self.previous_page_params(), extra_params=extra_params)

    def _fetch_page(
        self,
        *,
        params: PageParams | None,
        extra_params: dict[str, t.Any] | None,
    ) -> t.Any:
        if params is None:
            return None
        path, args = params
        log.debug(event="Fetching collection page", path=path)
        return self.api.get_page(params=(path, {**args, **(extra_params or {})}))
