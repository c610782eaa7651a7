"""
Queued batch calls and the composite request built from them.
"""

from __future__ import annotations

import itertools
import json
import typing as t
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from graphbatch.exceptions import AuthenticationError
from graphbatch.models import BatchCallDescriptor, HttpComponent, resolve_http_component
from graphbatch.strategies import PostProcessing
from graphbatch.transport import READ_VERBS, SUPPORTED_VERBS, encode_params
from graphbatch.uploadable import UploadableIO, is_binary_content, to_uploadable
from graphbatch.utils.signing import generate_appsecret_proof

# Hard ceiling of calls per composite request enforced by the service.
MAX_CALLS = 50
MAX_ATTEMPTS = 3

_identifiers = itertools.count(start=1)


@dataclass(eq=False)
class BatchOperation:
    """
    A logical call waiting in a batch session's queue.

    Parameters
    ----------
    url : str
        Object or connection path, relative to the service root.
    args : dict[str, typing.Any]
        Call arguments. File-like values are moved into ``files``.
    method : str
        HTTP verb, stored lower-cased.
    access_token : str | None
        Credential resolved when the call was queued.
    http_options : dict[str, typing.Any]
        Per-call options. ``batch_args`` is moved into ``batch_args``. An unknown
        ``http_component`` is rejected here, before any request is sent.
    post_processing : PostProcessing | None
        Applied once to the final outcome, success or error.

    Notes
    -----
    Only ``attempts`` changes after creation; it counts deliveries of this
    call in composite requests.
    """

    url: str
    args: dict[str, t.Any]
    method: str
    access_token: str | None
    http_options: dict[str, t.Any] = field(default_factory=dict)
    post_processing: PostProcessing | None = None
    batch_args: dict[str, t.Any] = field(init=False, default_factory=dict)
    files: dict[str, UploadableIO] = field(init=False, default_factory=dict)
    http_component: HttpComponent = field(init=False, default=HttpComponent.BODY)
    identifier: int = field(init=False, default_factory=lambda: next(_identifiers))
    attempts: int = field(init=False, default=1)

    def __post_init__(self) -> None:
        self.method = self.method.lower()
        if self.method not in SUPPORTED_VERBS:
            raise ValueError(f"Unsupported HTTP verb for a batch call: {self.method!r}")
        if not self.access_token:
            raise AuthenticationError(None, None, "Batch operations require an access token, none provided.")

        self.args = dict(self.args)
        self.http_options = dict(self.http_options)
        self.http_component = resolve_http_component(options=self.http_options)
        self.batch_args = dict(self.http_options.pop("batch_args", None) or {})
        self._extract_files()

    def _extract_files(self) -> None:
        for key in list(self.args):
            if is_binary_content(value=self.args[key]):
                file_id = f"op{self.identifier}_file{len(self.files)}"
                self.files[file_id] = to_uploadable(value=self.args.pop(key))

    @property
    def args_in_url(self) -> bool:
        return self.method in READ_VERBS

    def to_batch_params(self, *, main_access_token: str | None, app_secret: str | None) -> BatchCallDescriptor:
        """
        Describe this call as one entry of the composite request.

        Parameters
        ----------
        main_access_token : str | None
            Credential of the batch session, sent with the outer request.
        app_secret : str | None
            Application secret used to sign a per-call credential.

        Returns
        -------
        BatchCallDescriptor
            Descriptor with the verb, the relative URL and the encoded arguments.
        """
        args = dict(self.args)
        if self.access_token != main_access_token:
            args["access_token"] = self.access_token
            if app_secret:
                args["appsecret_proof"] = generate_appsecret_proof(
                    access_token=t.cast(str, self.access_token),
                    app_secret=app_secret,
                )

        fields: dict[str, t.Any] = {
            **self.batch_args,
            "method": self.method,
            "relative_url": self.url,
        }
        if self.files:
            fields["attached_files"] = ",".join(self.files)

        args_string = encode_params(args)
        if args_string:
            if self.args_in_url:
                separator = "&" if "?" in self.url else "?"
                fields["relative_url"] = f"{self.url}{separator}{args_string}"
            else:
                fields["body"] = args_string
        return BatchCallDescriptor.model_validate(fields)

    def finalize(self, value: t.Any) -> t.Any:
        return self.post_processing(value) if self.post_processing else value

    def __repr__(self) -> str:
        return (
            f"BatchOperation(identifier={self.identifier}, method={self.method!r}, "
            f"url={self.url!r}, attempts={self.attempts})"
        )


def iter_chunks(
    operations: Sequence[BatchOperation], size: int = MAX_CALLS
) -> Iterator[list[BatchOperation]]:
    if not 0 < size <= MAX_CALLS:
        raise ValueError(f"Chunk size must be between 1 and {MAX_CALLS}, got {size}")
    for start in range(0, len(operations), size):
        yield list(operations[start : start + size])


def build_chunk_params(
    *,
    operations: Sequence[BatchOperation],
    access_token: str | None,
    app_secret: str | None,
) -> dict[str, t.Any]:
    """
    Build the parameters of one composite request.

    Parameters
    ----------
    operations : Sequence[BatchOperation]
        Calls of the chunk, at most ``MAX_CALLS``.
    access_token : str | None
        Credential of the batch session.
    app_secret : str | None
        Application secret of the batch session.

    Returns
    -------
    dict[str, typing.Any]
        ``batch`` (JSON array of call descriptors) plus every attachment of
        the chunk under its operation-scoped key.
    """
    if len(operations) > MAX_CALLS:
        raise ValueError(f"A composite request holds at most {MAX_CALLS} calls, got {len(operations)}")

    params: dict[str, t.Any] = {}
    descriptors = []
    for operation in operations:
        params.update(operation.files)
        descriptors.append(
            operation.to_batch_params(
                main_access_token=access_token,
                app_secret=app_secret,
            ).to_wire()
        )
    params["batch"] = json.dumps(obj=descriptors)
    return params
