"""
Unit tests for request builders and response readers.

Tests cover:
- Request shapes for session, transaction and keyspace operations
- Query options forwarding
- Concept references and the base type priority order
- Response error handling
"""

import pytest

from grakn_client import rpc
from grakn_client.concept import (
    LOCAL,
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
    Snapshot,
    Thing,
)
from grakn_client.errors import ServerRejectedError, UnreachableError, UnsupportedValueError
from grakn_client.iterator import QueryOptions
from grakn_client.rpc import TransactionType
from grakn_client.values import ValueType


class TestRequestShapes:
    """Tests for builder output."""

    def test_transaction_open(self):
        request = rpc.transaction_open("session-1", TransactionType.WRITE)
        assert request == {
            "metadata": {},
            "open_req": {"session_id": "session-1", "type": "WRITE"},
        }

    def test_query_with_options(self):
        options = QueryOptions(infer=False, explain=True, batch_size=10)
        request = rpc.query_iterate("match $x isa person; get;", options)
        assert request["iter_req"] == {
            "query_iter_req": {
                "query": "match $x isa person; get;",
                "options": {"infer_flag": False, "explain_flag": True},
            },
            "options": {"batch_size": 10},
        }

    def test_query_without_options(self):
        request = rpc.query_iterate("match $x; get;")
        assert request["iter_req"]["query_iter_req"]["options"] == {}
        assert request["iter_req"]["options"] == {}

    def test_iterate_continue(self):
        request = rpc.iterate_continue("it-1", QueryOptions(batch_size=5))
        assert request["iter_req"] == {"iterator_id": "it-1", "options": {"batch_size": 5}}

    def test_put_attribute_type(self):
        request = rpc.put_attribute_type("age", ValueType.LONG)
        assert request["put_attribute_type_req"] == {"label": "age", "value_type": "LONG"}

    def test_put_rule_patterns_are_opaque(self):
        request = rpc.put_rule("r", "{ $x isa person; };", "{ $x has name 'a'; };")
        assert request["put_rule_req"] == {
            "label": "r",
            "when": "{ $x isa person; };",
            "then": "{ $x has name 'a'; };",
        }

    def test_get_attributes_encodes_value(self):
        request = rpc.get_attributes_iterate(30)
        assert request["iter_req"]["get_attributes_iter_req"] == {"value": {"long": 30}}

    def test_get_attributes_rejects_unsupported_value(self):
        with pytest.raises(UnsupportedValueError):
            rpc.get_attributes_iterate(object())

    def test_concept_method_encodes_concept_args(self):
        role = Role("V2")
        player = Entity("V3")
        request = rpc.concept_method("V1", "assign", {"role": role, "player": player})
        assert request["concept_method_req"] == {
            "id": "V1",
            "method": {
                "assign": {
                    "role": {"id": "V2", "base_type": "ROLE"},
                    "player": {"id": "V3", "base_type": "ENTITY"},
                }
            },
        }

    def test_concept_method_iterate_encodes_lists(self):
        request = rpc.concept_method_iterate(
            "V1", "attributes", {"attribute_types": [AttributeType("V5")]}
        )
        assert request["iter_req"]["concept_method_iter_req"]["method"] == {
            "attributes": {"attribute_types": [{"id": "V5", "base_type": "ATTRIBUTE_TYPE"}]}
        }

    def test_session_requests(self):
        assert rpc.session_open("social") == {"metadata": {}, "keyspace": "social"}
        assert rpc.session_close("session-1") == {"metadata": {}, "session_id": "session-1"}

    def test_keyspace_retrieve_credentials_optional(self):
        assert rpc.keyspace_retrieve() == {"metadata": {}}
        assert rpc.keyspace_retrieve("admin", "secret") == {
            "metadata": {},
            "username": "admin",
            "password": "secret",
        }

    def test_keyspace_delete(self):
        assert rpc.keyspace_delete("social") == {"metadata": {}, "name": "social"}


class TestConceptRefs:
    """Tests for concept references."""

    @pytest.mark.parametrize(
        "concept,base_type",
        [
            (EntityType("V1"), BaseType.ENTITY_TYPE),
            (RelationType("V1"), BaseType.RELATION_TYPE),
            (AttributeType("V1"), BaseType.ATTRIBUTE_TYPE),
            (Entity("V1"), BaseType.ENTITY),
            (Relation("V1"), BaseType.RELATION),
            (Attribute("V1", Snapshot(value_type=ValueType.STRING, value="a")), BaseType.ATTRIBUTE),
            (Role("V1"), BaseType.ROLE),
            (Rule("V1"), BaseType.RULE),
            (MetaType("V1"), BaseType.META_TYPE),
        ],
    )
    def test_base_type(self, concept, base_type):
        assert rpc.concept_ref(concept) == {"id": "V1", "base_type": base_type.value}

    def test_subclass_takes_first_matching_variant(self):
        class SpecialEntityType(EntityType):
            pass

        assert rpc.base_type_of(SpecialEntityType("V1")) is BaseType.ENTITY_TYPE

    @pytest.mark.parametrize("concept", [Concept("V1"), Thing("V1"), SchemaConcept("V1")])
    def test_unknown_variant_is_unreachable(self, concept):
        with pytest.raises(UnreachableError) as exc_info:
            rpc.concept_ref(concept)
        assert exc_info.value.code == "UNREACHABLE"
        assert isinstance(exc_info.value, UnsupportedValueError)

    def test_concepts_collection(self):
        refs = rpc.concepts([Entity("V1", binding=LOCAL), Role("V2")])
        assert refs == [
            {"id": "V1", "base_type": "ENTITY"},
            {"id": "V2", "base_type": "ROLE"},
        ]


class TestResponseBody:
    """Tests for response_body."""

    def test_returns_field(self):
        assert rpc.response_body({"open_res": {"a": 1}}, "open_res") == {"a": 1}

    def test_empty_field(self):
        assert rpc.response_body({"commit_res": None}, "commit_res") == {}

    def test_error_is_server_rejection(self):
        with pytest.raises(ServerRejectedError) as exc_info:
            rpc.response_body({"error": "label already in use"}, "put_role_res")
        assert exc_info.value.message == "label already in use"

    def test_missing_field_is_unreachable(self):
        with pytest.raises(UnreachableError):
            rpc.response_body({"other_res": {}}, "open_res")
