"""
Message base: frozen dataclasses whose fields carry a wire number and kind.
Declare with proto_field(); JSON and protobuf codecs read the same declaration.
"""
from __future__ import annotations

import dataclasses
import functools
import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, TypeVar

from escape_contracts.errors import DecodeError, SchemaError, ValidationError

M = TypeVar("M", bound="Message")

_WIRE_KEY = "wire"
_INT_RE = re.compile(r"^-?\d+$")
_MAX_FIELD_NUMBER = 2**29 - 1
_RESERVED_NUMBERS = range(19000, 20000)


class Kind(Enum):
    """Scalar/message kinds supported by the contract schemas."""

    STRING = "string"
    INT32 = "int32"
    INT64 = "int64"
    BOOL = "bool"
    MESSAGE = "message"


_BOUNDS: dict[Kind, tuple[int, int]] = {
    Kind.INT32: (-(2**31), 2**31 - 1),
    Kind.INT64: (-(2**63), 2**63 - 1),
}

_ZERO: dict[Kind, Any] = {
    Kind.STRING: "",
    Kind.INT32: 0,
    Kind.INT64: 0,
    Kind.BOOL: False,
    Kind.MESSAGE: None,
}


@dataclass(frozen=True)
class FieldSpec:
    """Wire declaration of one message field."""

    number: int
    kind: Kind
    message: type[Message] | None = None
    repeated: bool = False
    required: bool = False
    json_name: str | None = None

    @property
    def default(self) -> Any:
        return () if self.repeated else _ZERO[self.kind]


@dataclass(frozen=True)
class WireField:
    name: str
    spec: FieldSpec

    @property
    def json_key(self) -> str:
        return self.spec.json_name or self.name


def proto_field(
    number: int,
    kind: Kind,
    *,
    message: type[Message] | None = None,
    repeated: bool = False,
    required: bool = False,
    json_name: str | None = None,
) -> Any:
    """Declare a message field: wire number, kind and JSON name (defaults to the attribute name)."""
    spec = FieldSpec(
        number=number,
        kind=kind,
        message=message,
        repeated=repeated,
        required=required,
        json_name=json_name,
    )
    return dataclasses.field(default=spec.default, metadata={_WIRE_KEY: spec})


@dataclass(frozen=True)
class Message:
    """
    Base for every contract message. Subclasses are frozen dataclasses:

        @dataclass(frozen=True)
        class LoginRequest(Message, package="go.escape.ship.proto.accountapi"):
            email: str = proto_field(1, Kind.STRING, required=True)

    Repeated fields hold tuples (lists are converted on construction).
    """

    proto_package: ClassVar[str] = "escape.contracts"

    def __init_subclass__(cls, *, package: str | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if package is not None:
            cls.proto_package = package

    def __post_init__(self) -> None:
        for wf in self.wire_fields():
            if wf.spec.repeated:
                value = getattr(self, wf.name)
                if not isinstance(value, tuple):
                    object.__setattr__(self, wf.name, tuple(value))

    @classmethod
    def wire_fields(cls) -> tuple[WireField, ...]:
        return _describe(cls)

    @classmethod
    def full_name(cls) -> str:
        return f"{cls.proto_package}.{cls.__name__}"

    # JSON

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict. Every field is present; int64 renders as a decimal string."""
        return {wf.json_key: _render(wf.spec, getattr(self, wf.name)) for wf in self.wire_fields()}

    @classmethod
    def from_dict(cls: type[M], data: Any, *, path: str = "", discard_unknown: bool = False) -> M:
        """
        Build from a JSON object. Wrong types, invalid UTF-8 strings and out-of-range ints
        raise DecodeError. Unknown keys raise too, unless discard_unknown is set.
        """
        if not isinstance(data, dict):
            raise DecodeError(f"{cls.__name__}: expected a JSON object", field_path=path or None)
        by_key: dict[str, WireField] = {}
        for wf in cls.wire_fields():
            by_key[wf.json_key] = wf
            by_key.setdefault(wf.name, wf)
        values: dict[str, Any] = {}
        for key, raw in data.items():
            wf = by_key.get(key)
            field_path = f"{path}.{key}" if path else key
            if wf is None:
                if discard_unknown:
                    continue
                raise DecodeError(f"{cls.__name__}: unknown field", field_path=field_path)
            values[wf.name] = _parse(wf.spec, raw, field_path, discard_unknown)
        return cls(**values)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_json(cls: type[M], raw: str | bytes) -> M:
        try:
            data = json.loads(raw) if raw else {}
        except (ValueError, UnicodeDecodeError) as exc:
            raise DecodeError(f"{cls.__name__}: body is not valid JSON") from exc
        return cls.from_dict(data)

    # Protobuf

    def to_bytes(self) -> bytes:
        from escape_contracts.wire.binary import encode

        return encode(self)

    @classmethod
    def from_bytes(cls: type[M], data: bytes) -> M:
        from escape_contracts.wire.binary import decode

        return decode(cls, data)

    # Required fields

    def missing_fields(self, prefix: str = "") -> list[str]:
        """Paths of required fields left at their zero value, nested messages included."""
        missing: list[str] = []
        for wf in self.wire_fields():
            value = getattr(self, wf.name)
            path = f"{prefix}{wf.name}"
            if wf.spec.required and value == wf.spec.default:
                missing.append(path)
            if wf.spec.kind is Kind.MESSAGE:
                if wf.spec.repeated:
                    for i, item in enumerate(value):
                        missing.extend(item.missing_fields(f"{path}[{i}]."))
                elif value is not None:
                    missing.extend(value.missing_fields(f"{path}."))
        return missing

    def validate(self: M) -> M:
        missing = self.missing_fields()
        if missing:
            raise ValidationError(type(self).__name__, missing)
        return self


@functools.lru_cache(maxsize=None)
def _describe(cls: type[Message]) -> tuple[WireField, ...]:
    if not dataclasses.is_dataclass(cls):
        raise SchemaError(f"{cls.__name__} must be a dataclass")
    result: list[WireField] = []
    seen: dict[int, str] = {}
    for f in dataclasses.fields(cls):
        spec = f.metadata.get(_WIRE_KEY)
        if spec is None:
            raise SchemaError(f"{cls.__name__}.{f.name}: declare with proto_field()")
        if not 0 < spec.number <= _MAX_FIELD_NUMBER or spec.number in _RESERVED_NUMBERS:
            raise SchemaError(f"{cls.__name__}.{f.name}: invalid field number {spec.number}")
        if spec.number in seen:
            raise SchemaError(
                f"{cls.__name__}: field number {spec.number} used by both {seen[spec.number]} and {f.name}"
            )
        seen[spec.number] = f.name
        if (spec.kind is Kind.MESSAGE) != (spec.message is not None):
            raise SchemaError(f"{cls.__name__}.{f.name}: message= is required exactly for MESSAGE fields")
        if spec.message is not None and not issubclass(spec.message, Message):
            raise SchemaError(f"{cls.__name__}.{f.name}: {spec.message!r} is not a Message")
        result.append(WireField(f.name, spec))
    return tuple(result)


def _render(spec: FieldSpec, value: Any) -> Any:
    if spec.repeated:
        return [_render_one(spec, item) for item in value]
    return _render_one(spec, value)


def _render_one(spec: FieldSpec, value: Any) -> Any:
    if spec.kind is Kind.MESSAGE:
        return value.to_dict() if value is not None else None
    if spec.kind is Kind.INT64:
        return str(value)
    return value


def _parse(spec: FieldSpec, raw: Any, path: str, discard_unknown: bool = False) -> Any:
    if raw is None:
        return spec.default
    if spec.repeated:
        if not isinstance(raw, (list, tuple)):
            raise DecodeError("expected a JSON array", field_path=path)
        return tuple(_parse_one(spec, item, f"{path}[{i}]", discard_unknown) for i, item in enumerate(raw))
    return _parse_one(spec, raw, path, discard_unknown)


def _parse_one(spec: FieldSpec, raw: Any, path: str, discard_unknown: bool = False) -> Any:
    kind = spec.kind
    if kind is Kind.MESSAGE:
        assert spec.message is not None
        return spec.message.from_dict(raw, path=path, discard_unknown=discard_unknown)
    if kind is Kind.STRING:
        if not isinstance(raw, str):
            raise DecodeError("expected a string", field_path=path)
        try:
            raw.encode("utf-8")
        except UnicodeEncodeError:
            raise DecodeError("string is not valid UTF-8", field_path=path) from None
        return raw
    if kind is Kind.BOOL:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw.lower() in ("true", "false"):
            return raw.lower() == "true"
        raise DecodeError("expected a boolean", field_path=path)
    # integers: JSON number or decimal string
    if isinstance(raw, bool):
        raise DecodeError("expected an integer", field_path=path)
    if isinstance(raw, str) and _INT_RE.match(raw.strip()):
        value = int(raw.strip())
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, float) and raw.is_integer():
        value = int(raw)
    else:
        raise DecodeError("expected an integer", field_path=path)
    low, high = _BOUNDS[kind]
    if not low <= value <= high:
        raise DecodeError(f"{kind.value} out of range", field_path=path)
    return value
