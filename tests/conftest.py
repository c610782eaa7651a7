import httpx
import pytest

from graphbatch.api import GraphAPI
from graphbatch.config import GraphConfig
from graphbatch.transport import HTTPService
from tests.mocks.graph import FakeGraphAPI


@pytest.fixture(autouse=True)
def test_clear_env(monkeypatch):
    for name in (
        "GRAPHBATCH_GRAPH_SERVER",
        "GRAPHBATCH_API_VERSION",
        "GRAPHBATCH_USE_SSL",
        "GRAPHBATCH_TIMEOUT",
        "GRAPHBATCH_ACCESS_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_graph() -> FakeGraphAPI:
    return FakeGraphAPI()


def make_http_service(*, fake_graph: FakeGraphAPI, config: GraphConfig | None = None) -> HTTPService:
    return HTTPService(
        config=config,
        client_factory=lambda: httpx.Client(transport=fake_graph.transport()),
    )


@pytest.fixture
def api(fake_graph: FakeGraphAPI) -> GraphAPI:
    """
    Create a GraphAPI session wired to the fake Graph server.

    Returns
    -------
    GraphAPI
        Session with access token ``main-token``.
    """
    return GraphAPI(access_token="main-token", http_service=make_http_service(fake_graph=fake_graph))
