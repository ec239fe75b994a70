# mypy: ignore-errors
"""Protocol buffer messages for the Grakn wire protocol.

Do not edit the message classes directly - change proto/grakn.proto and the
schema table in grakn_pb2.py together.
"""

from .grakn_pb2 import (
    # Common
    Empty,
    # Keyspace
    KeyspaceDeleteReq,
    KeyspaceRetrieveReq,
    KeyspaceRetrieveRes,
    # Session
    SessionCloseReq,
    SessionOpenReq,
    SessionOpenRes,
    # Transaction
    TransactionReq,
    TransactionRes,
    ValueObject,
)

__all__ = [
    "Empty",
    "SessionOpenReq",
    "SessionOpenRes",
    "SessionCloseReq",
    "KeyspaceRetrieveReq",
    "KeyspaceRetrieveRes",
    "KeyspaceDeleteReq",
    "TransactionReq",
    "TransactionRes",
    "ValueObject",
]
