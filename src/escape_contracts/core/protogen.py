"""Render .proto source for a service, so other ecosystems can regenerate stubs."""
from __future__ import annotations

from typing import TYPE_CHECKING

from escape_contracts.wire import Kind, Message

if TYPE_CHECKING:
    from escape_contracts.rpc.service import MethodDescriptor, ServiceDescriptor

INDENT = "    "


def _messages(service: ServiceDescriptor) -> list[type[Message]]:
    """Every message reachable from the method table, first-seen order."""
    seen: list[type[Message]] = []

    def visit(cls: type[Message]) -> None:
        if cls in seen:
            return
        seen.append(cls)
        for wf in cls.wire_fields():
            if wf.spec.message is not None:
                visit(wf.spec.message)

    for method in service.methods:
        visit(method.input_type)
        visit(method.output_type)
    return seen


def _type_name(cls: type[Message], package: str) -> str:
    if cls.proto_package == package:
        return cls.__name__
    return cls.full_name()


def render_message(cls: type[Message], package: str) -> str:
    fields = cls.wire_fields()
    if not fields:
        return f"message {cls.__name__} {{}}\n"
    lines = [f"message {cls.__name__} {{"]
    for wf in fields:
        spec = wf.spec
        type_name = _type_name(spec.message, package) if spec.message is not None else spec.kind.value
        label = "repeated " if spec.repeated else ""
        option = f' [json_name = "{spec.json_name}"]' if spec.json_name else ""
        lines.append(f"{INDENT}{label}{type_name} {wf.name} = {spec.number}{option};")
    lines.append("}")
    return "\n".join(lines) + "\n"


def _render_rpc(method: MethodDescriptor, package: str) -> list[str]:
    inp = _type_name(method.input_type, package)
    out = _type_name(method.output_type, package)
    rule = method.http
    lines = [
        f"{INDENT}rpc {method.name}({inp}) returns ({out}) {{",
        f"{INDENT * 2}option (google.api.http) = {{",
        f'{INDENT * 3}{rule.verb.lower()}: "{rule.path}"',
    ]
    if rule.body:
        lines.append(f'{INDENT * 3}body: "{rule.body}"')
    if rule.response_body:
        lines.append(f'{INDENT * 3}response_body: "{rule.response_body}"')
    lines.append(f"{INDENT * 2}}};")
    if method.summary or method.description or method.tags:
        lines.append(f"{INDENT * 2}option (grpc.gateway.protoc_gen_openapiv2.options.openapiv2_operation) = {{")
        if method.summary:
            lines.append(f'{INDENT * 3}summary: "{method.summary}"')
        if method.description:
            lines.append(f'{INDENT * 3}description: "{method.description}"')
        for tag in method.tags:
            lines.append(f'{INDENT * 3}tags: "{tag}"')
        lines.append(f"{INDENT * 2}}};")
    lines.append(f"{INDENT}}}")
    return lines


def render_proto(service: ServiceDescriptor) -> str:
    """Full .proto file: header, service with HTTP annotations, messages."""
    package = service.package
    has_openapi = any(m.summary or m.description or m.tags for m in service.methods)
    out = ['syntax = "proto3";', f"package {package};", "", 'import "google/api/annotations.proto";']
    if has_openapi:
        out.append('import "protoc-gen-openapiv2/options/annotations.proto";')
    out += ["", f"service {service.name} {{"]
    for method in service.methods:
        out += _render_rpc(method, package)
    out += ["}", ""]
    out += [render_message(cls, package) for cls in _messages(service)]
    return "\n".join(out)
