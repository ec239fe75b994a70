# mypy: ignore-errors
"""Protocol buffer classes for proto/grakn.proto.

The file descriptor is assembled from the schema table below and
registered with the default descriptor pool; message and enum classes are
then built from it exactly as protoc output builds them. Keep the table in
step with proto/grakn.proto.
"""

from google.protobuf import descriptor_pb2
from google.protobuf import descriptor_pool as _descriptor_pool
from google.protobuf.internal import builder as _builder

PACKAGE = "grakn.protocol"

_F = descriptor_pb2.FieldDescriptorProto

_SCALARS = {
    "string": _F.TYPE_STRING,
    "bool": _F.TYPE_BOOL,
    "int32": _F.TYPE_INT32,
    "int64": _F.TYPE_INT64,
    "float": _F.TYPE_FLOAT,
    "double": _F.TYPE_DOUBLE,
}

_ENUMS = (
    (
        "BaseType",
        (
            "BASE_TYPE_UNSPECIFIED",
            "ENTITY_TYPE",
            "RELATION_TYPE",
            "ATTRIBUTE_TYPE",
            "ENTITY",
            "RELATION",
            "ATTRIBUTE",
            "ROLE",
            "RULE",
            "META_TYPE",
        ),
    ),
    (
        "ValueType",
        (
            "VALUE_TYPE_UNSPECIFIED",
            "STRING",
            "BOOLEAN",
            "INTEGER",
            "LONG",
            "FLOAT",
            "DOUBLE",
            "DATETIME",
        ),
    ),
    ("TransactionType", ("READ", "WRITE")),
)

_METHODS = (
    "delete", "label", "set_label", "sup", "set_sup", "sups", "subs", "type",
    "instances", "create", "attribute", "is_abstract", "set_abstract", "has",
    "unhas", "key", "unkey", "plays", "unplay", "relates", "unrelate",
    "attributes", "keys", "playing", "roles", "relations", "players", "owners",
    "role_players_map", "role_players", "assign", "unassign",
)

# (message, ((field, number, kind[, oneof]), ...))
# kind is a scalar, enum or message name, optionally prefixed with
# "repeated ", or "map<V>" for a map keyed by string.
_MESSAGES = (
    ("Empty", ()),
    ("SessionOpenReq", (
        ("metadata", 1, "map<string>"),
        ("keyspace", 2, "string"),
    )),
    ("SessionOpenRes", (("session_id", 1, "string"),)),
    ("SessionCloseReq", (
        ("metadata", 1, "map<string>"),
        ("session_id", 2, "string"),
    )),
    ("KeyspaceRetrieveReq", (
        ("metadata", 1, "map<string>"),
        ("username", 2, "string"),
        ("password", 3, "string"),
    )),
    ("KeyspaceRetrieveRes", (("names", 1, "repeated string"),)),
    ("KeyspaceDeleteReq", (
        ("metadata", 1, "map<string>"),
        ("name", 2, "string"),
        ("username", 3, "string"),
        ("password", 4, "string"),
    )),
    ("ValueObject", (
        ("string", 1, "string", "value"),
        ("boolean", 2, "bool", "value"),
        ("integer", 3, "int32", "value"),
        ("long", 4, "int64", "value"),
        ("float", 5, "float", "value"),
        ("double", 6, "double", "value"),
        ("datetime", 7, "int64", "value"),
    )),
    ("Concept", (
        ("id", 1, "string"),
        ("base_type", 2, "BaseType"),
        ("label", 3, "string"),
        ("value_type", 4, "ValueType"),
        ("value", 5, "ValueObject"),
        ("inferred", 6, "bool"),
        ("when", 7, "string"),
        ("then", 8, "string"),
    )),
    ("MethodArgs", (
        ("type", 1, "Concept"),
        ("attribute_type", 2, "Concept"),
        ("role", 3, "Concept"),
        ("attribute", 4, "Concept"),
        ("player", 5, "Concept"),
        ("roles", 6, "repeated Concept"),
        ("attribute_types", 7, "repeated Concept"),
        ("label", 8, "string"),
        ("value", 9, "ValueObject"),
        ("abstract", 10, "bool"),
    )),
    ("Method", tuple(
        (name, number, "MethodArgs", "method")
        for number, name in enumerate(_METHODS, start=1)
    )),
    ("ConceptMethodReq", (
        ("id", 1, "string"),
        ("method", 2, "Method"),
    )),
    ("ConceptMethodRes", (
        ("concept", 1, "Concept"),
        ("label", 2, "string"),
        ("abstract", 3, "bool"),
    )),
    ("ConceptMap", (
        ("map", 1, "map<Concept>"),
        ("has_explanation", 2, "bool"),
        ("pattern", 3, "string"),
    )),
    ("Numeric", (("number", 1, "ValueObject"),)),
    ("ConceptIds", (("ids", 1, "repeated string"),)),
    ("ConceptSetMeasure", (
        ("ids", 1, "repeated string"),
        ("measurement", 2, "ValueObject"),
    )),
    ("AnswerGroup", (
        ("owner", 1, "Concept"),
        ("answers", 2, "repeated Answer"),
    )),
    ("Void", (("message", 1, "string"),)),
    ("Answer", (
        ("concept_map", 1, "ConceptMap", "answer"),
        ("numeric", 2, "Numeric", "answer"),
        ("concept_list", 3, "ConceptIds", "answer"),
        ("concept_set", 4, "ConceptIds", "answer"),
        ("concept_set_measure", 5, "ConceptSetMeasure", "answer"),
        ("answer_group", 6, "AnswerGroup", "answer"),
        ("void", 7, "Void", "answer"),
    )),
    ("QueryOptions", (
        ("infer_flag", 1, "bool", "infer"),
        ("explain_flag", 2, "bool", "explain"),
    )),
    ("IterOptions", (("batch_size", 1, "int32", "batch"),)),
    ("QueryIterReq", (
        ("query", 1, "string"),
        ("options", 2, "QueryOptions"),
    )),
    ("GetAttributesIterReq", (("value", 1, "ValueObject"),)),
    ("IterReq", (
        ("options", 1, "IterOptions"),
        ("iterator_id", 2, "string", "req"),
        ("query_iter_req", 3, "QueryIterReq", "req"),
        ("get_attributes_iter_req", 4, "GetAttributesIterReq", "req"),
        ("concept_method_iter_req", 5, "ConceptMethodReq", "req"),
    )),
    ("RolePlayer", (
        ("role", 1, "Concept"),
        ("player", 2, "Concept"),
    )),
    ("IterItem", (
        ("concept", 1, "Concept", "item"),
        ("answer", 2, "Answer", "item"),
        ("role_player", 3, "RolePlayer", "item"),
    )),
    ("IterRes", (
        ("items", 1, "repeated IterItem"),
        ("iterator_id", 2, "string", "next"),
        ("done", 3, "bool", "next"),
    )),
    ("OpenReq", (
        ("session_id", 1, "string"),
        ("type", 2, "TransactionType"),
    )),
    ("LabelReq", (("label", 1, "string"),)),
    ("GetConceptReq", (("id", 1, "string"),)),
    ("PutAttributeTypeReq", (
        ("label", 1, "string"),
        ("value_type", 2, "ValueType"),
    )),
    ("PutRuleReq", (
        ("label", 1, "string"),
        ("when", 2, "string"),
        ("then", 3, "string"),
    )),
    ("SchemaConceptRes", (("schema_concept", 1, "Concept"),)),
    ("ConceptRes", (("concept", 1, "Concept"),)),
    ("ConceptMethodResponse", (("response", 1, "ConceptMethodRes"),)),
    ("TransactionReq", (
        ("metadata", 1, "map<string>"),
        ("open_req", 2, "OpenReq", "req"),
        ("commit_req", 3, "Empty", "req"),
        ("iter_req", 4, "IterReq", "req"),
        ("get_schema_concept_req", 5, "LabelReq", "req"),
        ("get_concept_req", 6, "GetConceptReq", "req"),
        ("put_entity_type_req", 7, "LabelReq", "req"),
        ("put_attribute_type_req", 8, "PutAttributeTypeReq", "req"),
        ("put_relation_type_req", 9, "LabelReq", "req"),
        ("put_role_req", 10, "LabelReq", "req"),
        ("put_rule_req", 11, "PutRuleReq", "req"),
        ("concept_method_req", 12, "ConceptMethodReq", "req"),
    )),
    ("TransactionRes", (
        ("open_res", 1, "Empty", "res"),
        ("commit_res", 2, "Empty", "res"),
        ("iter_res", 3, "IterRes", "res"),
        ("get_schema_concept_res", 4, "SchemaConceptRes", "res"),
        ("get_concept_res", 5, "ConceptRes", "res"),
        ("put_entity_type_res", 6, "ConceptRes", "res"),
        ("put_attribute_type_res", 7, "ConceptRes", "res"),
        ("put_relation_type_res", 8, "ConceptRes", "res"),
        ("put_role_res", 9, "ConceptRes", "res"),
        ("put_rule_res", 10, "ConceptRes", "res"),
        ("concept_method_res", 11, "ConceptMethodResponse", "res"),
    )),
)

_SERVICES = (
    ("SessionService", (
        ("open", "SessionOpenReq", "SessionOpenRes", False),
        ("close", "SessionCloseReq", "Empty", False),
        ("transaction", "TransactionReq", "TransactionRes", True),
    )),
    ("KeyspaceService", (
        ("retrieve", "KeyspaceRetrieveReq", "KeyspaceRetrieveRes", False),
        ("delete", "KeyspaceDeleteReq", "Empty", False),
    )),
)

_ENUM_NAMES = frozenset(name for name, _ in _ENUMS)


def _set_type(field, kind):
    if kind in _SCALARS:
        field.type = _SCALARS[kind]
    else:
        field.type = _F.TYPE_ENUM if kind in _ENUM_NAMES else _F.TYPE_MESSAGE
        field.type_name = f".{PACKAGE}.{kind}"


def _add_field(message, name, number, kind, oneof=None):
    field = message.field.add(name=name, number=number, label=_F.LABEL_OPTIONAL)

    if kind.startswith("map<"):
        entry = message.nested_type.add(name=f"{name.title().replace('_', '')}Entry")
        entry.options.map_entry = True
        entry.field.add(name="key", number=1, label=_F.LABEL_OPTIONAL, type=_F.TYPE_STRING)
        _set_type(
            entry.field.add(name="value", number=2, label=_F.LABEL_OPTIONAL),
            kind[len("map<"):-1],
        )
        field.label = _F.LABEL_REPEATED
        field.type = _F.TYPE_MESSAGE
        field.type_name = f".{PACKAGE}.{message.name}.{entry.name}"
        return

    if kind.startswith("repeated "):
        field.label = _F.LABEL_REPEATED
        kind = kind[len("repeated "):]
    _set_type(field, kind)

    if oneof is not None:
        names = [decl.name for decl in message.oneof_decl]
        if oneof not in names:
            message.oneof_decl.add(name=oneof)
            names.append(oneof)
        field.oneof_index = names.index(oneof)


def _file_descriptor_proto():
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="grakn/protocol/grakn.proto",
        package=PACKAGE,
        syntax="proto3",
    )
    for name, values in _ENUMS:
        enum = file_proto.enum_type.add(name=name)
        for number, value in enumerate(values):
            enum.value.add(name=value, number=number)
    for name, fields in _MESSAGES:
        message = file_proto.message_type.add(name=name)
        for field in fields:
            _add_field(message, *field)
    for name, methods in _SERVICES:
        service = file_proto.service.add(name=name)
        for method, request, response, streaming in methods:
            service.method.add(
                name=method,
                input_type=f".{PACKAGE}.{request}",
                output_type=f".{PACKAGE}.{response}",
                client_streaming=streaming,
                server_streaming=streaming,
            )
    return file_proto


DESCRIPTOR = _descriptor_pool.Default().AddSerializedFile(
    _file_descriptor_proto().SerializeToString()
)

_globals = globals()
_builder.BuildMessageAndEnumDescriptors(DESCRIPTOR, _globals)
_builder.BuildTopDescriptorsAndMessages(DESCRIPTOR, __name__, _globals)
