"""
Client configuration resolved from explicit values, environment variables, or a ``.env`` file.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

GRAPH_SERVER_ENV_VAR = "GRAPHBATCH_GRAPH_SERVER"
API_VERSION_ENV_VAR = "GRAPHBATCH_API_VERSION"
USE_SSL_ENV_VAR = "GRAPHBATCH_USE_SSL"
TIMEOUT_ENV_VAR = "GRAPHBATCH_TIMEOUT"
ACCESS_TOKEN_ENV_VAR = "GRAPHBATCH_ACCESS_TOKEN"

_FALSY_VALUES = frozenset({"0", "false", "no", "off"})


class GraphConfig(BaseModel):
    """
    Connection settings shared by every request of a client.

    Parameters
    ----------
    graph_server : str
        Hostname of the Graph API server.
    api_version : str | None
        Version prefix added to every request path (e.g. ``"v19.0"``).
    use_ssl : bool
        Whether requests go over HTTPS.
    timeout : float
        Default transport timeout in seconds.
    """

    graph_server: str = "graph.facebook.com"
    api_version: str | None = None
    use_ssl: bool = True
    timeout: float = Field(default=30.0, gt=0)

    @property
    def base_url(self) -> str:
        scheme = "https" if self.use_ssl else "http"
        return f"{scheme}://{self.graph_server}"

    def versioned_path(self, *, path: str) -> str:
        """
        Prefix a request path with the configured API version.

        Parameters
        ----------
        path : str
            Request path, with or without a leading slash.

        Returns
        -------
        str
            Absolute path including the version segment when one is configured.
        """
        normalized = path if path.startswith("/") else f"/{path}"
        if not self.api_version or normalized.startswith(f"/{self.api_version}/"):
            return normalized
        return f"/{self.api_version}{normalized}"

    @classmethod
    def from_env(cls, *, load_env_file: bool = True) -> GraphConfig:
        """
        Build a configuration from ``GRAPHBATCH_*`` environment variables.

        Parameters
        ----------
        load_env_file : bool, optional
            If ``True``, load a ``.env`` file before reading the environment.

        Returns
        -------
        GraphConfig
            Configuration with unset variables left at their defaults.
        """
        if load_env_file:
            load_dotenv()

        values: dict[str, str | bool] = {}
        graph_server = os.getenv(GRAPH_SERVER_ENV_VAR)
        if graph_server:
            values["graph_server"] = graph_server
        api_version = os.getenv(API_VERSION_ENV_VAR)
        if api_version:
            values["api_version"] = api_version
        use_ssl = os.getenv(USE_SSL_ENV_VAR)
        if use_ssl:
            values["use_ssl"] = use_ssl.strip().lower() not in _FALSY_VALUES
        timeout = os.getenv(TIMEOUT_ENV_VAR)
        if timeout:
            values["timeout"] = timeout
        return cls.model_validate(values)


def resolve_access_token(*, access_token: str | None = None) -> str | None:
    """
    Resolve the default access token.

    Parameters
    ----------
    access_token : str | None, optional
        Explicit token, which wins over the environment.

    Returns
    -------
    str | None
        Token from the argument or ``GRAPHBATCH_ACCESS_TOKEN``.
    """
    if access_token:
        return access_token
    return os.getenv(ACCESS_TOKEN_ENV_VAR) or None
