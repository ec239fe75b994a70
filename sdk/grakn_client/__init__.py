"""
Grakn Python client - driver for the Grakn graph database server.

This client provides a typed interface to a Grakn server:
- GraknClient / Session / Transaction for connection and transaction scope
- Concept classes (EntityType, Entity, AttributeType, Attribute, ...)
- Lazy, batched query iteration
- Value codec for attribute values

Example:
    >>> from grakn_client import GraknClient, TransactionType, ValueType
    >>>
    >>> async with GraknClient("localhost:48555") as client:
    ...     async with client.session("social") as session:
    ...         async with session.transaction(TransactionType.WRITE) as tx:
    ...             person = await tx.put_entity_type("person")
    ...             name = await tx.put_attribute_type("name", ValueType.STRING)
    ...             await person.has(name)
    ...             await tx.commit()

Invariants:
    - A transaction has at most one request in flight
    - Remote concepts are only usable while their transaction is open
    - The client never retries

Version: 1.8.0
"""

__version__ = "1.8.0"

from .answer import (
    Answer,
    AnswerGroup,
    ConceptList,
    ConceptMap,
    ConceptSet,
    ConceptSetMeasure,
    Numeric,
    Void,
)
from .client import GraknClient, KeyspaceManager
from .concept import (
    Attribute,
    AttributeType,
    BaseType,
    Concept,
    Entity,
    EntityType,
    MetaType,
    Relation,
    RelationType,
    Role,
    Rule,
    SchemaConcept,
    Thing,
    ThingType,
    Type,
)
from .config import ClientConfig
from .errors import (
    ChannelClosedError,
    GraknClientError,
    IteratorInvalidError,
    ServerRejectedError,
    TransportError,
    UnreachableError,
    UnsupportedValueError,
    UsageError,
)
from .iterator import QueryIterator, QueryOptions
from .rpc import TransactionType
from .session import Session
from .tracing import TraceContext
from .transaction import Transaction, TransactionState
from .values import ValueType

__all__ = [
    # Version
    "__version__",
    # Client
    "GraknClient",
    "KeyspaceManager",
    "ClientConfig",
    "Session",
    "Transaction",
    "TransactionState",
    "TransactionType",
    "QueryIterator",
    "QueryOptions",
    "TraceContext",
    # Concepts
    "Concept",
    "SchemaConcept",
    "Type",
    "ThingType",
    "MetaType",
    "EntityType",
    "RelationType",
    "AttributeType",
    "Role",
    "Rule",
    "Thing",
    "Entity",
    "Relation",
    "Attribute",
    "BaseType",
    "ValueType",
    # Answers
    "Answer",
    "ConceptMap",
    "Numeric",
    "ConceptList",
    "ConceptSet",
    "ConceptSetMeasure",
    "AnswerGroup",
    "Void",
    # Errors
    "GraknClientError",
    "UnsupportedValueError",
    "UnreachableError",
    "UsageError",
    "ChannelClosedError",
    "IteratorInvalidError",
    "ServerRejectedError",
    "TransportError",
]
