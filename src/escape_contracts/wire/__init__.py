from escape_contracts.wire.message import FieldSpec, Kind, Message, WireField, proto_field

__all__ = [
    "FieldSpec",
    "Kind",
    "Message",
    "WireField",
    "proto_field",
]
