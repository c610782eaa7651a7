from .api import GraphBatchAPI as GraphBatchAPI
from .operation import MAX_ATTEMPTS as MAX_ATTEMPTS
from .operation import MAX_CALLS as MAX_CALLS
from .operation import BatchOperation as BatchOperation

__all__ = [
    "GraphBatchAPI",
    "BatchOperation",
    "MAX_CALLS",
    "MAX_ATTEMPTS",
]
