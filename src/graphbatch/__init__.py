from .api import GraphAPI as GraphAPI
from .batch import MAX_CALLS as MAX_CALLS
from .batch import GraphBatchAPI as GraphBatchAPI
from .collection import GraphCollection as GraphCollection
from .config import GraphConfig as GraphConfig
from .exceptions import APIError as APIError
from .exceptions import AuthenticationError as AuthenticationError
from .exceptions import BadGraphResponse as BadGraphResponse
from .exceptions import ClientError as ClientError
from .exceptions import ServerError as ServerError
from .models import HttpComponent as HttpComponent
from .uploadable import UploadableIO as UploadableIO

__all__ = [
    "GraphAPI",
    "GraphBatchAPI",
    "GraphCollection",
    "GraphConfig",
    "HttpComponent",
    "UploadableIO",
    "MAX_CALLS",
    "APIError",
    "AuthenticationError",
    "BadGraphResponse",
    "ClientError",
    "ServerError",
]
