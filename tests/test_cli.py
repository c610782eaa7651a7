import json

import pytest
from typer.testing import CliRunner

from graphbatch.api import GraphAPI
from graphbatch.cli import main as cli_main
from graphbatch.cli.main import app
from tests.conftest import make_http_service
from tests.mocks.graph import FakeGraphAPI

runner = CliRunner()


@pytest.fixture(autouse=True)
def fake_api(monkeypatch, fake_graph: FakeGraphAPI):
    def build_api(access_token, app_secret):
        return GraphAPI(
            access_token=access_token or "cli-token",
            app_secret=app_secret,
            http_service=make_http_service(fake_graph=fake_graph),
        )

    monkeypatch.setattr(cli_main, "build_api", build_api)


@pytest.fixture
def calls_file(tmp_path):
    file_path = tmp_path / "calls.jsonl"
    calls = [
        {"path": "me", "args": {"fields": "id"}},
        {"path": "missing"},
        {"path": "me/feed", "method": "POST", "args": {"message": "hi"}},
    ]
    file_path.write_text("\n".join(json.dumps(call) for call in calls))
    return file_path


def test_run_batch(calls_file, fake_graph: FakeGraphAPI):
    fake_graph.objects["me"] = {"id": "1"}
    fake_graph.objects["me/feed"] = {"id": "post-1"}

    result = runner.invoke(app, ["run", str(calls_file)])

    assert result.exit_code == 0
    assert "Batch results" in result.output
    assert len(fake_graph.batches) == 1
    batch = fake_graph.batches[0]
    assert batch.relative_urls == ["me?fields=id", "missing", "me/feed"]
    assert batch.fields["access_token"] == "cli-token"


def test_run_batch_invalid_file(tmp_path, fake_graph: FakeGraphAPI):
    file_path = tmp_path / "calls.jsonl"
    file_path.write_text('{"args": {}}\n')

    result = runner.invoke(app, ["run", str(file_path)])

    assert result.exit_code == 1
    assert "Invalid calls file" in result.output
    assert fake_graph.requests == []


def test_run_batch_missing_file(tmp_path):
    result = runner.invoke(app, ["run", str(tmp_path / "missing.jsonl")])

    assert result.exit_code == 2


def test_run_batch_request_failure(calls_file, fake_graph: FakeGraphAPI):
    fake_graph.errors[""] = (500, {"error": {"message": "Oops", "type": "GraphMethodException"}})

    result = runner.invoke(app, ["run", str(calls_file)])

    assert result.exit_code == 1
    assert "Batch request failed" in result.output


def test_get(fake_graph: FakeGraphAPI):
    fake_graph.objects["me"] = {"id": "1", "name": "Ada"}

    result = runner.invoke(app, ["get", "me", "-a", "fields=id,name"])

    assert result.exit_code == 0
    assert json.loads(result.output) == {"id": "1", "name": "Ada"}
    assert fake_graph.requests[-1].url.params["fields"] == "id,name"


def test_get_collection_prints_raw_page(fake_graph: FakeGraphAPI):
    fake_graph.objects["me/friends"] = {"data": [{"id": "2"}]}

    result = runner.invoke(app, ["get", "me/friends"])

    assert result.exit_code == 0
    assert json.loads(result.output) == {"data": [{"id": "2"}]}


def test_get_http_component(fake_graph: FakeGraphAPI):
    fake_graph.objects["me"] = {"id": "1"}

    result = runner.invoke(app, ["get", "me", "--http-component", "STATUS"])

    assert result.exit_code == 0
    assert result.output.strip() == "200"


def test_get_invalid_http_component():
    result = runner.invoke(app, ["get", "me", "--http-component", "cookies"])

    assert result.exit_code == 2


def test_get_invalid_argument():
    result = runner.invoke(app, ["get", "me", "-a", "fields"])

    assert result.exit_code == 2


def test_get_failure():
    result = runner.invoke(app, ["get", "missing"])

    assert result.exit_code == 1
    assert "Request failed" in result.output


def test_run_batch_without_token(calls_file, monkeypatch, fake_graph: FakeGraphAPI):
    monkeypatch.setattr(
        cli_main,
        "build_api",
        lambda access_token, app_secret: GraphAPI(http_service=make_http_service(fake_graph=fake_graph)),
    )

    result = runner.invoke(app, ["run", str(calls_file)])

    assert result.exit_code == 1
    assert "Invalid call" in result.output
    assert "access token" in result.output
    assert fake_graph.requests == []


@pytest.mark.parametrize(
    "call",
    [
        {"path": "me", "method": "patch"},
        {"path": "me", "options": {"http_component": "cookies"}},
    ],
)
def test_run_batch_rejects_unsupported_call(tmp_path, fake_graph: FakeGraphAPI, call):
    file_path = tmp_path / "calls.jsonl"
    file_path.write_text(json.dumps(call))

    result = runner.invoke(app, ["run", str(file_path)])

    assert result.exit_code == 1
    assert "Invalid call" in result.output
    assert fake_graph.requests == []
