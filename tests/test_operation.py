import io
import json

import pytest

from graphbatch.batch.operation import MAX_CALLS, BatchOperation, build_chunk_params, iter_chunks
from graphbatch.exceptions import AuthenticationError
from graphbatch.models import HttpComponent
from graphbatch.uploadable import UploadableIO


def _operation(**overrides) -> BatchOperation:
    params = {
        "url": "me",
        "args": {},
        "method": "get",
        "access_token": "main-token",
    }
    params.update(overrides)
    return BatchOperation(**params)


def test_method_is_lowercased():
    assert _operation(method="DELETE").method == "delete"


def test_unsupported_method_rejected():
    with pytest.raises(ValueError):
        _operation(method="patch")


def test_missing_access_token_rejected():
    with pytest.raises(AuthenticationError):
        _operation(access_token=None)


def test_attempts_start_at_one():
    assert _operation().attempts == 1


def test_identifiers_are_unique():
    assert _operation().identifier != _operation().identifier


def test_read_verb_args_go_in_url():
    descriptor = _operation(args={"fields": "id", "limit": 5}).to_batch_params(
        main_access_token="main-token", app_secret=None
    )

    assert descriptor.relative_url == "me?fields=id&limit=5"
    assert descriptor.body is None


def test_read_verb_args_appended_to_existing_query():
    descriptor = _operation(url="me/friends?limit=2", args={"after": "abc"}).to_batch_params(
        main_access_token="main-token", app_secret=None
    )

    assert descriptor.relative_url == "me/friends?limit=2&after=abc"


def test_delete_args_go_in_url():
    descriptor = _operation(url="123", method="delete", args={"reason": "spam"}).to_batch_params(
        main_access_token="main-token", app_secret=None
    )

    assert descriptor.relative_url == "123?reason=spam"


def test_write_verb_args_go_in_body():
    descriptor = _operation(url="me/feed", method="post", args={"message": "hi", "tags": [1, 2]}).to_batch_params(
        main_access_token="main-token", app_secret=None
    )

    assert descriptor.relative_url == "me/feed"
    assert descriptor.body == "message=hi&tags=%5B1%2C+2%5D"


def test_no_args_no_body():
    descriptor = _operation(method="post").to_batch_params(main_access_token="main-token", app_secret=None)

    assert descriptor.to_wire() == {"method": "post", "relative_url": "me"}


def test_own_token_without_secret_is_not_signed():
    descriptor = _operation(access_token="page-token").to_batch_params(
        main_access_token="main-token", app_secret=None
    )

    assert descriptor.relative_url == "me?access_token=page-token"


def test_batch_args_moved_out_of_options():
    operation = _operation(http_options={"batch_args": {"name": "first"}, "http_component": "status"})

    assert operation.http_options == {"http_component": "status"}
    assert operation.to_batch_params(main_access_token="main-token", app_secret=None).name == "first"


def test_binary_args_become_files():
    operation = _operation(
        url="me/photos",
        method="post",
        args={"source": io.BytesIO(b"png"), "caption": "hello"},
    )

    assert operation.args == {"caption": "hello"}
    assert list(operation.files) == [f"op{operation.identifier}_file0"]
    assert isinstance(operation.files[f"op{operation.identifier}_file0"], UploadableIO)
    descriptor = operation.to_batch_params(main_access_token="main-token", app_secret=None)
    assert descriptor.attached_files == f"op{operation.identifier}_file0"


def test_transform_applied_on_finalize():
    assert _operation(post_processing=lambda value: value * 2).finalize(21) == 42
    assert _operation().finalize(21) == 21


def test_iter_chunks_respects_limit():
    operations = [_operation() for _ in range(MAX_CALLS * 2 + 3)]

    assert [len(chunk) for chunk in iter_chunks(operations)] == [MAX_CALLS, MAX_CALLS, 3]


def test_iter_chunks_rejects_oversized_chunks():
    with pytest.raises(ValueError):
        list(iter_chunks([_operation()], size=MAX_CALLS + 1))


def test_build_chunk_params():
    photo = _operation(url="me/photos", method="post", args={"source": io.BytesIO(b"png")})
    params = build_chunk_params(
        operations=[_operation(), photo],
        access_token="main-token",
        app_secret=None,
    )

    assert json.loads(params["batch"]) == [
        {"method": "get", "relative_url": "me"},
        {
            "method": "post",
            "relative_url": "me/photos",
            "attached_files": f"op{photo.identifier}_file0",
        },
    ]
    assert params[f"op{photo.identifier}_file0"] is photo.files[f"op{photo.identifier}_file0"]


def test_build_chunk_params_rejects_oversized_chunk():
    with pytest.raises(ValueError):
        build_chunk_params(
            operations=[_operation() for _ in range(MAX_CALLS + 1)],
            access_token="main-token",
            app_secret=None,
        )


def test_http_component_resolved_on_creation():
    assert _operation().http_component is HttpComponent.BODY
    assert _operation(http_options={"http_component": "Headers"}).http_component is HttpComponent.HEADERS

    with pytest.raises(ValueError):
        _operation(http_options={"http_component": "cookies"})
