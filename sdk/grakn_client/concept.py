"""
Concept model for the Grakn client.

Every schema or data element the server knows about is a Concept:
- Types: EntityType, RelationType, AttributeType, Role and the meta type
- Things: Entity, Relation, Attribute
- Rule

A concept is bound either Local or Remote:
- Local: a detached, immutable snapshot; never touches the network
- Remote: a live handle on one open transaction; accessors and mutators
  are round trips through that transaction

Accessors that a snapshot can answer (``label()`` on a Local type, for
example) dispatch on the binding; everything else needs a Remote binding
and raises UsageError on a Local concept.

Each Thing class is paired with its Type class directly: ``Entity.type()``
resolves to an EntityType and ``EntityType.create()`` to an Entity.

Example:
    >>> person = await tx.put_entity_type("person")
    >>> name = await tx.put_attribute_type("name", ValueType.STRING)
    >>> await person.has(name)
    >>> alice = await person.create()
    >>> await alice.has(await name.create("alice"))
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from .errors import (
    ChannelClosedError,
    UnreachableError,
    UnsupportedValueError,
    UsageError,
)
from .values import ValueType, decode_value, encode_value, value_type_from_wire

if TYPE_CHECKING:
    from .iterator import QueryIterator
    from .transaction import Transaction


class BaseType(Enum):
    """Concept variant tag used on the wire."""

    ENTITY_TYPE = "ENTITY_TYPE"
    RELATION_TYPE = "RELATION_TYPE"
    ATTRIBUTE_TYPE = "ATTRIBUTE_TYPE"
    ENTITY = "ENTITY"
    RELATION = "RELATION"
    ATTRIBUTE = "ATTRIBUTE"
    ROLE = "ROLE"
    RULE = "RULE"
    META_TYPE = "META_TYPE"


@dataclass(frozen=True)
class Snapshot:
    """Concept data captured from the response that produced a handle.

    Attributes:
        label: Label of a type, role or rule
        value_type: Value kind of an attribute or attribute type
        value: Value of an attribute
        inferred: Whether a thing was produced by rule inference
        when: Rule condition pattern
        then: Rule conclusion pattern
    """

    label: str | None = None
    value_type: ValueType | None = None
    value: Any = None
    inferred: bool = False
    when: str | None = None
    then: str | None = None


@dataclass(frozen=True)
class Local:
    """Binding of a detached snapshot."""


@dataclass(frozen=True)
class Remote:
    """Binding of a live handle to an open transaction."""

    tx: Transaction


Binding = Union[Local, Remote]

LOCAL = Local()


class Concept:
    """Base class of every concept.

    Concepts are identified by their server-assigned id: two handles with
    the same id are equal whatever their binding.
    """

    def __init__(
        self,
        concept_id: str,
        snapshot: Snapshot | None = None,
        binding: Binding = LOCAL,
    ) -> None:
        self._id = concept_id
        self._snapshot = snapshot or Snapshot()
        self._binding = binding

    @property
    def id(self) -> str:
        return self._id

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def binding(self) -> Binding:
        return self._binding

    @property
    def is_local(self) -> bool:
        return isinstance(self._binding, Local)

    @property
    def is_remote(self) -> bool:
        return isinstance(self._binding, Remote)

    def as_local(self):
        """Detached snapshot of this concept."""
        return type(self)(self._id, self._snapshot, LOCAL)

    def as_remote(self, tx: Transaction):
        """This concept bound to ``tx``."""
        return type(self)(self._id, self._snapshot, Remote(tx))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Concept):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        kind = "Remote" if self.is_remote else "Local"
        return f"{type(self).__name__}.{kind}(id={self._id!r})"

    # -------------------------------------------------------------- remote

    def _tx(self) -> Transaction:
        match self._binding:
            case Remote(tx=tx):
                if not tx.is_open:
                    raise ChannelClosedError(
                        f"{self!r} is bound to a closed transaction"
                    ) from tx.failure
                return tx
            case Local():
                raise UsageError(
                    f"{self!r} is a Local snapshot; bind it with as_remote(tx) first"
                )
        raise UnreachableError(f"Unrecognised binding {self._binding!r}", self._binding)

    async def _call(self, method: str, **args: Any) -> dict[str, Any]:
        return await self._tx().run_concept_method(self._id, method, args)

    async def _call_concept(self, method: str, **args: Any) -> Concept | None:
        tx = self._tx()
        response = await tx.run_concept_method(self._id, method, args)
        return concept_from_wire(response.get("concept"), tx)

    def _iterate(
        self,
        method: str,
        expected_value_type: ValueType | None = None,
        **args: Any,
    ) -> QueryIterator:
        tx = self._tx()
        return tx.iterate_concept_method(
            self._id,
            method,
            args,
            lambda item: concept_from_wire(item, tx, expected_value_type),
        )

    async def delete(self) -> None:
        """Delete this concept from the keyspace."""
        await self._call("delete")

    async def is_deleted(self) -> bool:
        """Whether the concept no longer exists in the transaction."""
        return await self._tx().get_concept(self._id) is None


# ------------------------------------------------------------------- schema


class SchemaConcept(Concept):
    """A labelled concept: a type, a role or a rule."""

    async def label(self) -> str | None:
        match self._binding:
            case Local():
                return self._snapshot.label
            case Remote():
                response = await self._call("label")
                return response.get("label")
        raise UnreachableError(f"Unrecognised binding {self._binding!r}", self._binding)

    async def set_label(self, label: str):
        await self._call("set_label", label=label)
        return self


class Type(SchemaConcept):
    """A schema category. Supertypes form a tree rooted at the meta type."""

    async def sup(self) -> Type | None:
        return await self._call_concept("sup")

    async def set_sup(self, sup: Type):
        await self._call("set_sup", type=sup)
        return self

    def sups(self) -> QueryIterator:
        return self._iterate("sups")

    def subs(self) -> QueryIterator:
        return self._iterate("subs")


class ThingType(Type):
    """A type whose instances are things."""

    def instances(self) -> QueryIterator:
        return self._iterate("instances")

    async def is_abstract(self) -> bool:
        response = await self._call("is_abstract")
        return bool(response.get("abstract", False))

    async def set_abstract(self, abstract: bool):
        await self._call("set_abstract", abstract=abstract)
        return self

    async def has(self, attribute_type: AttributeType):
        """Allow instances of this type to own ``attribute_type``."""
        await self._call("has", attribute_type=attribute_type)
        return self

    async def unhas(self, attribute_type: AttributeType):
        await self._call("unhas", attribute_type=attribute_type)
        return self

    async def key(self, attribute_type: AttributeType):
        await self._call("key", attribute_type=attribute_type)
        return self

    async def unkey(self, attribute_type: AttributeType):
        await self._call("unkey", attribute_type=attribute_type)
        return self

    async def plays(self, role: Role):
        await self._call("plays", role=role)
        return self

    async def unplay(self, role: Role):
        await self._call("unplay", role=role)
        return self

    def attributes(self) -> QueryIterator:
        return self._iterate("attributes")

    def keys(self) -> QueryIterator:
        return self._iterate("keys")

    def playing(self) -> QueryIterator:
        return self._iterate("playing")


class MetaType(ThingType):
    """The root of the type hierarchy."""


class EntityType(ThingType):
    async def create(self) -> Entity:
        return await self._call_concept("create")


class RelationType(ThingType):
    async def create(self) -> Relation:
        return await self._call_concept("create")

    async def relates(self, role: Role) -> RelationType:
        await self._call("relates", role=role)
        return self

    async def unrelate(self, role: Role) -> RelationType:
        await self._call("unrelate", role=role)
        return self

    def roles(self) -> QueryIterator:
        return self._iterate("roles")


class AttributeType(ThingType):
    """A type of attribute values, all of one fixed value kind."""

    @property
    def value_type(self) -> ValueType | None:
        return self._snapshot.value_type

    def _encode(self, value: Any) -> dict[str, Any]:
        return encode_value(value, self.value_type)

    async def create(self, value: Any) -> Attribute:
        return await self._call_concept("create", value=self._encode(value))

    async def attribute(self, value: Any) -> Attribute | None:
        """The attribute of this type holding ``value``, if any."""
        return await self._call_concept("attribute", value=self._encode(value))


class Role(Type):
    """A participation slot within a relation type."""

    def relations(self) -> QueryIterator:
        return self._iterate("relations")

    def players(self) -> QueryIterator:
        return self._iterate("players")


class Rule(SchemaConcept):
    """An inference rule; the patterns are interpreted by the server only."""

    @property
    def when(self) -> str | None:
        return self._snapshot.when

    @property
    def then(self) -> str | None:
        return self._snapshot.then


# ------------------------------------------------------------------- things


def _expected_value_type(attribute_types: tuple[AttributeType, ...]) -> ValueType | None:
    if len(attribute_types) == 1:
        return attribute_types[0].value_type
    return None


class Thing(Concept):
    """A data instance of exactly one type."""

    def is_inferred(self) -> bool:
        return self._snapshot.inferred

    async def type(self) -> ThingType:
        """Fetch the type of this thing. Never cached."""
        return await self._call_concept("type")

    def relations(self, *roles: Role) -> QueryIterator:
        """Relations this thing takes part in, optionally narrowed to roles."""
        return self._iterate("relations", roles=list(roles))

    def roles(self) -> QueryIterator:
        return self._iterate("roles")

    def attributes(self, *attribute_types: AttributeType) -> QueryIterator:
        """Attributes owned by this thing, optionally narrowed to types.

        With exactly one attribute type of known value kind, every result
        must hold a value of that kind; a mismatch raises
        UnsupportedValueError when the result is decoded.
        """
        return self._iterate(
            "attributes",
            _expected_value_type(attribute_types),
            attribute_types=list(attribute_types),
        )

    def keys(self, *attribute_types: AttributeType) -> QueryIterator:
        return self._iterate(
            "keys",
            _expected_value_type(attribute_types),
            attribute_types=list(attribute_types),
        )

    async def has(self, attribute: Attribute):
        """Attach ``attribute`` to this thing. Returns self for chaining."""
        await self._call("has", attribute=attribute)
        return self

    async def unhas(self, attribute: Attribute):
        await self._call("unhas", attribute=attribute)
        return self


class Entity(Thing):
    async def type(self) -> EntityType:
        return await super().type()


class Relation(Thing):
    async def type(self) -> RelationType:
        return await super().type()

    async def role_players_map(self) -> dict[Role, set[Thing]]:
        """Map every role of this relation to the things playing it."""
        tx = self._tx()
        result: dict[Role, set[Thing]] = {}

        def role_player(item: dict[str, Any]) -> tuple[Concept, Concept]:
            return concept_from_wire(item["role"], tx), concept_from_wire(item["player"], tx)

        async for role, player in tx.iterate_concept_method(
            self._id, "role_players_map", {}, role_player, item_kind="role_player"
        ):
            result.setdefault(role, set()).add(player)
        return result

    def role_players(self, *roles: Role) -> QueryIterator:
        return self._iterate("role_players", roles=list(roles))

    async def assign(self, role: Role, player: Thing) -> Relation:
        await self._call("assign", role=role, player=player)
        return self

    async def unassign(self, role: Role, player: Thing) -> Relation:
        await self._call("unassign", role=role, player=player)
        return self


class Attribute(Thing):
    """A thing holding one immutable value."""

    @property
    def value(self) -> Any:
        return self._snapshot.value

    @property
    def value_type(self) -> ValueType | None:
        return self._snapshot.value_type

    async def type(self) -> AttributeType:
        return await super().type()

    def owners(self) -> QueryIterator:
        return self._iterate("owners")


# ------------------------------------------------------------------ decoding


def _base_type_from_wire(name: Any) -> BaseType:
    try:
        return BaseType(name)
    except ValueError:
        raise UnreachableError(f"Unrecognised base type {name!r}", name) from None


def _snapshot_from_wire(
    wire: dict[str, Any],
    base_type: BaseType,
    expected_value_type: ValueType | None,
) -> Snapshot:
    value_type = None
    if wire.get("value_type") is not None:
        value_type = value_type_from_wire(wire["value_type"])

    value = None
    if base_type is BaseType.ATTRIBUTE:
        if value_type is None:
            raise UnsupportedValueError(f"Attribute {wire.get('id')!r} has no value type", wire)
        if expected_value_type is not None and value_type is not expected_value_type:
            raise UnsupportedValueError(
                f"Attribute {wire.get('id')!r} holds {value_type.value}, "
                f"expected {expected_value_type.value}",
                wire,
            )
        value = decode_value(wire.get("value"), value_type)

    return Snapshot(
        label=wire.get("label"),
        value_type=value_type,
        value=value,
        inferred=bool(wire.get("inferred", False)),
        when=wire.get("when"),
        then=wire.get("then"),
    )


def concept_from_wire(
    wire: dict[str, Any] | None,
    tx: Transaction | None = None,
    expected_value_type: ValueType | None = None,
) -> Concept | None:
    """Build a concept from its wire form.

    Args:
        wire: Wire concept, or None for an absent concept
        tx: Transaction to bind to; the concept is Local when omitted
        expected_value_type: Value kind attributes must hold

    Raises:
        UnreachableError: If the base type is unknown
        UnsupportedValueError: If an attribute value cannot be decoded
    """
    if wire is None:
        return None

    base_type = _base_type_from_wire(wire.get("base_type"))
    match base_type:
        case BaseType.ENTITY_TYPE:
            cls: type[Concept] = EntityType
        case BaseType.RELATION_TYPE:
            cls = RelationType
        case BaseType.ATTRIBUTE_TYPE:
            cls = AttributeType
        case BaseType.ENTITY:
            cls = Entity
        case BaseType.RELATION:
            cls = Relation
        case BaseType.ATTRIBUTE:
            cls = Attribute
        case BaseType.ROLE:
            cls = Role
        case BaseType.RULE:
            cls = Rule
        case BaseType.META_TYPE:
            cls = MetaType
        case _:
            raise UnreachableError(f"Unhandled base type {base_type!r}", base_type)

    binding: Binding = LOCAL if tx is None else Remote(tx)
    snapshot = _snapshot_from_wire(wire, base_type, expected_value_type)
    return cls(wire["id"], snapshot, binding)
