"""
Query answers.

Each item of a query iteration is decoded into one of:
- ConceptMap: variable name -> concept
- Numeric: a single number (aggregates), sent as a tagged value
- ConceptList / ConceptSet / ConceptSetMeasure: concept ids (analytics)
- AnswerGroup: answers grouped by an owner concept
- Void: an acknowledgement message (delete, undefine, ...)

Concepts inside answers are Local snapshots; call ``as_remote(tx)`` to
operate on them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from .concept import Concept, concept_from_wire
from .errors import UnreachableError
from .values import decode_value


@dataclass(frozen=True)
class ConceptMap:
    """One solution of a match query.

    Attributes:
        map: Variable name (without ``$``) to concept
        has_explanation: Whether the server can explain this answer
        query_pattern: Pattern the answer satisfies, when explained
    """

    map: dict[str, Concept] = field(default_factory=dict)
    has_explanation: bool = False
    query_pattern: str | None = None

    def get(self, variable: str) -> Concept:
        """Concept bound to ``variable``.

        Raises:
            KeyError: If the variable is not in this answer
        """
        return self.map[variable.lstrip("$")]

    def concepts(self) -> list[Concept]:
        return list(self.map.values())


@dataclass(frozen=True)
class Numeric:
    number: int | float


@dataclass(frozen=True)
class ConceptList:
    ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ConceptSet:
    ids: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ConceptSetMeasure:
    ids: frozenset[str] = frozenset()
    measurement: int | float = 0


@dataclass(frozen=True)
class AnswerGroup:
    owner: Concept
    answers: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class Void:
    message: str = ""


Answer = Union[ConceptMap, Numeric, ConceptList, ConceptSet, ConceptSetMeasure, AnswerGroup, Void]


def answer_from_wire(wire: dict[str, Any]) -> Answer:
    """Decode one query iteration item.

    Raises:
        UnreachableError: If the answer kind is unknown
    """
    if not isinstance(wire, dict) or len(wire) != 1:
        raise UnreachableError(f"Answer must have exactly one kind: {wire!r}", wire)

    kind, body = next(iter(wire.items()))
    body = body or {}
    match kind:
        case "concept_map":
            return ConceptMap(
                map={var: concept_from_wire(c) for var, c in (body.get("map") or {}).items()},
                has_explanation=bool(body.get("has_explanation", False)),
                query_pattern=body.get("pattern"),
            )
        case "numeric":
            return Numeric(number=decode_value(body["number"]))
        case "concept_list":
            return ConceptList(ids=list(body.get("ids") or []))
        case "concept_set":
            return ConceptSet(ids=frozenset(body.get("ids") or []))
        case "concept_set_measure":
            return ConceptSetMeasure(
                ids=frozenset(body.get("ids") or []),
                measurement=decode_value(body["measurement"]) if "measurement" in body else 0,
            )
        case "answer_group":
            return AnswerGroup(
                owner=concept_from_wire(body["owner"]),
                answers=[answer_from_wire(a) for a in body.get("answers") or []],
            )
        case "void":
            return Void(message=body.get("message", ""))
        case _:
            raise UnreachableError(f"Unrecognised answer kind {kind!r}", wire)
