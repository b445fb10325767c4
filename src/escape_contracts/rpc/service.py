"""
Service descriptors: the method table both transports are generated from.
One ServiceDescriptor per business area; MethodDescriptor carries the HTTP rule.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from escape_contracts.errors import RpcError, SchemaError
from escape_contracts.status import StatusCode
from escape_contracts.wire import Kind, Message

_PARAM_RE = re.compile(r"\{([a-zA-Z_][a-zA-Z0-9_]*)\}")
_HTTP_VERBS = ("GET", "POST", "PUT", "PATCH", "DELETE")


def python_name(rpc_name: str) -> str:
    """GetKakaoLoginURL -> get_kakao_login_url, GetProductByID -> get_product_by_id."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "_", rpc_name).lower()


@dataclass(frozen=True)
class HttpRule:
    """HTTP mapping of one RPC: verb, path template, body binding."""

    verb: str
    path: str
    body: str | None = None  # "*" binds every non-path field from the JSON body
    response_body: str | None = None  # render only this output field

    @property
    def path_params(self) -> tuple[str, ...]:
        return tuple(_PARAM_RE.findall(self.path))


@dataclass(frozen=True)
class MethodDescriptor:
    name: str
    input_type: type[Message]
    output_type: type[Message]
    http: HttpRule
    summary: str = ""
    description: str = ""
    tags: tuple[str, ...] = ()

    @property
    def python_name(self) -> str:
        return python_name(self.name)

    def check(self) -> None:
        """Raise SchemaError when the HTTP rule does not fit the message types."""
        verb = self.http.verb
        if verb not in _HTTP_VERBS:
            raise SchemaError(f"{self.name}: unsupported HTTP verb {verb!r}")
        if verb == "GET" and self.http.body is not None:
            raise SchemaError(f"{self.name}: GET cannot bind a request body")
        if self.http.body not in (None, "*"):
            raise SchemaError(f"{self.name}: only body '*' is supported")
        fields = {wf.name: wf.spec for wf in self.input_type.wire_fields()}
        for param in self.http.path_params:
            spec = fields.get(param)
            if spec is None or spec.repeated or spec.kind is Kind.MESSAGE:
                raise SchemaError(
                    f"{self.name}: path parameter {{{param}}} is not a scalar field "
                    f"of {self.input_type.__name__}"
                )
        if self.http.response_body is not None:
            out = {wf.name for wf in self.output_type.wire_fields()}
            if self.http.response_body not in out:
                raise SchemaError(
                    f"{self.name}: response_body {self.http.response_body!r} is not a field "
                    f"of {self.output_type.__name__}"
                )


@dataclass(frozen=True)
class ServiceDescriptor:
    """Service contract: package, name and the ordered method table."""

    name: str
    package: str
    methods: tuple[MethodDescriptor, ...]
    _index: dict[str, MethodDescriptor] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: dict[str, MethodDescriptor] = {}
        for m in self.methods:
            m.check()
            if m.name in index or m.python_name in index:
                raise SchemaError(f"{self.name}: duplicate method {m.name}")
            index[m.name] = m
            index[m.python_name] = m
        object.__setattr__(self, "_index", index)

    @property
    def full_name(self) -> str:
        return f"{self.package}.{self.name}"

    def method(self, name: str) -> MethodDescriptor:
        """Look up by RPC name (InsertOrder) or Python name (insert_order)."""
        try:
            return self._index[name]
        except KeyError:
            raise RpcError(StatusCode.UNIMPLEMENTED, f"unknown method {self.full_name}/{name}") from None

    def rpc_path(self, method: MethodDescriptor | str) -> str:
        """Fixed addressing scheme: /{package}.{Service}/{Method}."""
        name = method if isinstance(method, str) else method.name
        return f"/{self.full_name}/{name}"

    def unimplemented(self) -> Unimplemented:
        return Unimplemented(self)


class Unimplemented:
    """
    Fallback implementation: every method of the service fails with UNIMPLEMENTED.
    RpcServer delegates to it for methods the consuming service does not provide.
    """

    def __init__(self, service: ServiceDescriptor) -> None:
        self._service = service

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            method = self._service.method(name)
        except RpcError:
            raise AttributeError(name) from None

        async def unimplemented(request: Message, context: Any) -> Message:
            raise RpcError(StatusCode.UNIMPLEMENTED, f"method {method.name} not implemented")

        return unimplemented
