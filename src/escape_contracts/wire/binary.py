"""Protobuf encoding for Message classes.

Descriptors are generated at runtime from the proto_field() declarations and
registered in a private descriptor pool, so the bytes on the wire are the
standard protobuf encoding of the equivalent .proto schema (see protogen).
"""

from __future__ import annotations

import functools
from typing import Any, TypeVar

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.protobuf.message import Message as ProtoMessage

from escape_contracts.errors import DecodeError, SchemaError
from escape_contracts.wire.message import Kind, Message

M = TypeVar("M", bound=Message)

_FDP = descriptor_pb2.FieldDescriptorProto

_PROTO_TYPES = {
    Kind.STRING: _FDP.TYPE_STRING,
    Kind.INT32: _FDP.TYPE_INT32,
    Kind.INT64: _FDP.TYPE_INT64,
    Kind.BOOL: _FDP.TYPE_BOOL,
    Kind.MESSAGE: _FDP.TYPE_MESSAGE,
}

_pool = descriptor_pool.DescriptorPool()


def _file_name(cls: type[Message]) -> str:
    return cls.full_name().replace(".", "/") + ".proto"


@functools.lru_cache(maxsize=None)
def proto_class(cls: type[Message]) -> type[ProtoMessage]:
    """Generated protobuf class for a Message type (one synthetic file per message)."""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=_file_name(cls),
        package=cls.proto_package,
        syntax="proto3",
    )
    msg_proto = file_proto.message_type.add(name=cls.__name__)
    for wf in cls.wire_fields():
        spec = wf.spec
        field_proto = msg_proto.field.add(
            name=wf.name,
            number=spec.number,
            type=_PROTO_TYPES[spec.kind],
            label=_FDP.LABEL_REPEATED if spec.repeated else _FDP.LABEL_OPTIONAL,
            json_name=wf.json_key,
        )
        if spec.message is not None:
            field_proto.type_name = "." + spec.message.full_name()
            if spec.message is not cls:
                # dependency must be in the pool before this file
                proto_class(spec.message)
                dep = _file_name(spec.message)
                if dep not in file_proto.dependency:
                    file_proto.dependency.append(dep)
    try:
        _pool.AddSerializedFile(file_proto.SerializeToString())
    except (TypeError, ValueError) as exc:
        raise SchemaError(
            f"cannot register {cls.full_name()}",
            internal_details=str(exc),
        ) from exc
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(cls.full_name()))


def encode(msg: Message) -> bytes:
    pb = proto_class(type(msg))()
    _fill(pb, msg)
    return pb.SerializeToString()


def decode(cls: type[M], data: bytes) -> M:
    pb = proto_class(cls)()
    try:
        pb.ParseFromString(data)
    except ProtobufDecodeError as exc:
        raise DecodeError(f"malformed {cls.__name__} payload", internal_details=str(exc)) from exc
    return _read(cls, pb)


def _fill(pb: Any, msg: Message) -> None:
    for wf in msg.wire_fields():
        value = getattr(msg, wf.name)
        spec = wf.spec
        if spec.repeated:
            target = getattr(pb, wf.name)
            if spec.kind is Kind.MESSAGE:
                for item in value:
                    _fill(target.add(), item)
            else:
                target.extend(value)
        elif spec.kind is Kind.MESSAGE:
            if value is not None:
                sub = getattr(pb, wf.name)
                sub.SetInParent()
                _fill(sub, value)
        else:
            setattr(pb, wf.name, value)


def _read(cls: type[M], pb: Any) -> M:
    values: dict[str, Any] = {}
    for wf in cls.wire_fields():
        spec = wf.spec
        raw = getattr(pb, wf.name)
        if spec.kind is Kind.MESSAGE:
            assert spec.message is not None
            if spec.repeated:
                values[wf.name] = tuple(_read(spec.message, item) for item in raw)
            else:
                values[wf.name] = _read(spec.message, raw) if pb.HasField(wf.name) else None
        elif spec.repeated:
            values[wf.name] = tuple(raw)
        else:
            values[wf.name] = raw
    return cls(**values)
