"""
Request builders and response readers for the Grakn wire protocol.

Every logical client operation maps to exactly one builder here. Builders
return plain dictionaries shaped like the protobuf messages of
proto/grakn.proto; the transport converts them to and from those messages.
Every request carries a ``metadata`` map filled from the caller's
TraceContext.

Groups:
- Session: session_open, session_close
- Transaction: transaction_open, transaction_commit, query_iterate,
  iterate_continue, get_schema_concept, get_concept, get_attributes_iterate,
  put_entity_type, put_attribute_type, put_relation_type, put_role,
  put_rule, concept_method, concept_method_iterate
- Concepts: concept_ref, concepts
- Keyspace: keyspace_retrieve, keyspace_delete

Invariants:
    - Attribute values are encoded only through the values module
    - A concept reference carries exactly its id and base type
    - Unknown concept variants are defects (UnreachableError)
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING, Any

from . import concept as _concept
from .errors import ServerRejectedError, UnreachableError
from .tracing import TraceContext, tracing_metadata
from .values import ValueType, encode_value, value_type_to_wire

if TYPE_CHECKING:
    from .iterator import QueryOptions


class TransactionType(Enum):
    """Access mode of a transaction, fixed when it is opened."""

    READ = "READ"
    WRITE = "WRITE"


def _request(trace: TraceContext | None, **body: Any) -> dict[str, Any]:
    request: dict[str, Any] = {"metadata": tracing_metadata(trace)}
    request.update(body)
    return request


# ----------------------------------------------------------------- Session


def session_open(keyspace: str, trace: TraceContext | None = None) -> dict[str, Any]:
    return _request(trace, keyspace=keyspace)


def session_close(session_id: str, trace: TraceContext | None = None) -> dict[str, Any]:
    return _request(trace, session_id=session_id)


# ------------------------------------------------------------- Transaction


def transaction_open(
    session_id: str,
    tx_type: TransactionType,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    return _request(trace, open_req={"session_id": session_id, "type": tx_type.value})


def transaction_commit(trace: TraceContext | None = None) -> dict[str, Any]:
    return _request(trace, commit_req={})


def _iter_options(options: QueryOptions | None) -> dict[str, Any]:
    if options is None or options.batch_size is None:
        return {}
    return {"batch_size": options.batch_size}


def query_iterate(
    query: str,
    options: QueryOptions | None = None,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    """Build the first request of a query iteration.

    Only the flags that were set on ``options`` are sent; the server
    applies its own defaults to the rest.
    """
    query_options: dict[str, Any] = {}
    if options is not None:
        if options.infer is not None:
            query_options["infer_flag"] = options.infer
        if options.explain is not None:
            query_options["explain_flag"] = options.explain

    return _request(
        trace,
        iter_req={
            "query_iter_req": {"query": query, "options": query_options},
            "options": _iter_options(options),
        },
    )


def iterate_continue(
    iterator_id: str,
    options: QueryOptions | None = None,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    """Ask for the next batch of an iteration."""
    return _request(
        trace,
        iter_req={"iterator_id": iterator_id, "options": _iter_options(options)},
    )


def get_schema_concept(label: str, trace: TraceContext | None = None) -> dict[str, Any]:
    return _request(trace, get_schema_concept_req={"label": label})


def get_concept(concept_id: str, trace: TraceContext | None = None) -> dict[str, Any]:
    return _request(trace, get_concept_req={"id": concept_id})


def get_attributes_iterate(
    value: Any,
    value_type: ValueType | None = None,
    options: QueryOptions | None = None,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    return _request(
        trace,
        iter_req={
            "get_attributes_iter_req": {"value": encode_value(value, value_type)},
            "options": _iter_options(options),
        },
    )


def put_entity_type(label: str, trace: TraceContext | None = None) -> dict[str, Any]:
    return _request(trace, put_entity_type_req={"label": label})


def put_attribute_type(
    label: str,
    value_type: ValueType,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    return _request(
        trace,
        put_attribute_type_req={
            "label": label,
            "value_type": value_type_to_wire(value_type),
        },
    )


def put_relation_type(label: str, trace: TraceContext | None = None) -> dict[str, Any]:
    return _request(trace, put_relation_type_req={"label": label})


def put_role(label: str, trace: TraceContext | None = None) -> dict[str, Any]:
    return _request(trace, put_role_req={"label": label})


def put_rule(
    label: str,
    when: str,
    then: str,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    """Build a put-rule request. Patterns are sent as opaque strings."""
    return _request(
        trace,
        put_rule_req={"label": label, "when": str(when), "then": str(then)},
    )


def _method_args(args: dict[str, Any]) -> dict[str, Any]:
    encoded: dict[str, Any] = {}
    for name, arg in args.items():
        if isinstance(arg, _concept.Concept):
            encoded[name] = concept_ref(arg)
        elif isinstance(arg, (list, tuple)):
            encoded[name] = concepts(arg)
        else:
            encoded[name] = arg
    return encoded


def concept_method(
    concept_id: str,
    method: str,
    args: dict[str, Any] | None = None,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    """Build a single-response method call on a remote concept.

    Concept arguments are sent as references, sequences of concepts as
    lists of references; other arguments are sent as given.
    """
    return _request(
        trace,
        concept_method_req={
            "id": concept_id,
            "method": {method: _method_args(args or {})},
        },
    )


def concept_method_iterate(
    concept_id: str,
    method: str,
    args: dict[str, Any] | None = None,
    options: QueryOptions | None = None,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    return _request(
        trace,
        iter_req={
            "concept_method_iter_req": {
                "id": concept_id,
                "method": {method: _method_args(args or {})},
            },
            "options": _iter_options(options),
        },
    )


# ---------------------------------------------------------------- Concepts


def base_type_of(concept: _concept.Concept) -> _concept.BaseType:
    """Wire base type of a concept; the first matching variant wins."""
    BaseType = _concept.BaseType
    if isinstance(concept, _concept.EntityType):
        return BaseType.ENTITY_TYPE
    elif isinstance(concept, _concept.RelationType):
        return BaseType.RELATION_TYPE
    elif isinstance(concept, _concept.AttributeType):
        return BaseType.ATTRIBUTE_TYPE
    elif isinstance(concept, _concept.Entity):
        return BaseType.ENTITY
    elif isinstance(concept, _concept.Relation):
        return BaseType.RELATION
    elif isinstance(concept, _concept.Attribute):
        return BaseType.ATTRIBUTE
    elif isinstance(concept, _concept.Role):
        return BaseType.ROLE
    elif isinstance(concept, _concept.Rule):
        return BaseType.RULE
    elif isinstance(concept, _concept.Type):
        return BaseType.META_TYPE
    raise UnreachableError(f"Unrecognised concept {concept!r}", concept)


def concept_ref(concept: _concept.Concept) -> dict[str, Any]:
    """Encode a concept reference for transmission."""
    return {"id": concept.id, "base_type": base_type_of(concept).value}


def concepts(items: Iterable[_concept.Concept]) -> list[dict[str, Any]]:
    return [concept_ref(item) for item in items]


# ---------------------------------------------------------------- Keyspace


def keyspace_retrieve(
    username: str | None = None,
    password: str | None = None,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if username is not None:
        body["username"] = username
    if password is not None:
        body["password"] = password
    return _request(trace, **body)


def keyspace_delete(
    name: str,
    username: str | None = None,
    password: str | None = None,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"name": name}
    if username is not None:
        body["username"] = username
    if password is not None:
        body["password"] = password
    return _request(trace, **body)


# --------------------------------------------------------------- Responses


def response_body(response: dict[str, Any], field: str) -> dict[str, Any]:
    """Return the named field of a response.

    A response carrying ``error`` instead is reported as a server
    rejection; a response missing the field entirely is a defect.
    """
    if "error" in response:
        raise ServerRejectedError(str(response["error"]))
    if field not in response:
        raise UnreachableError(f"Expected '{field}' in response, got {sorted(response)}", response)
    body = response[field]
    return body if body is not None else {}


def decode_concept(
    wire: dict[str, Any] | None,
    tx: Any = None,
    expected_value_type: ValueType | None = None,
) -> _concept.Concept | None:
    """Decode a wire concept; bound to ``tx`` when given, Local otherwise."""
    if wire is None:
        return None
    return _concept.concept_from_wire(wire, tx, expected_value_type)
