"""Minimal OpenAPI 3.0 for the gateway routes, plus Swagger UI: /openapi.json and /docs."""
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from escape_contracts.wire import Kind, Message

if TYPE_CHECKING:
    from escape_contracts.rpc.service import MethodDescriptor, ServiceDescriptor

# (path, method) -> OpenAPI operation object
Operations = dict[tuple[str, str], dict[str, Any]]

ERROR_SCHEMA_NAME = "ErrorEnvelope"
ERROR_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "error": {
            "type": "object",
            "properties": {
                "code": {"type": "string", "description": "status code name, e.g. NOT_FOUND"},
                "message": {"type": "string"},
            },
            "required": ["code", "message"],
        }
    },
    "required": ["error"],
}

_CONVERTER = re.compile(r"\{([^}:]+):[^}]+\}")


def _path_to_openapi(path: str) -> str:
    """Strip Starlette converters: {id:int} -> {id}."""
    return _CONVERTER.sub(r"{\1}", path)


def _ref(name: str) -> dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def _scalar_schema(kind: Kind) -> dict[str, Any]:
    if kind is Kind.INT64:
        # rendered as a decimal string on the JSON transport
        return {"type": "string", "format": "int64"}
    if kind is Kind.INT32:
        return {"type": "integer", "format": "int32"}
    if kind is Kind.BOOL:
        return {"type": "boolean"}
    return {"type": "string"}


def schema_from_message(
    cls: type[Message],
    components: dict[str, Any],
    *,
    exclude: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Register cls (and nested messages) in components; return a $ref to it.

    With exclude, an inline schema without those fields is returned instead
    (request bodies minus path parameters).
    """
    props: dict[str, Any] = {}
    required: list[str] = []
    for wf in cls.wire_fields():
        if wf.name in exclude:
            continue
        spec = wf.spec
        if spec.kind is Kind.MESSAGE:
            assert spec.message is not None
            item = schema_from_message(spec.message, components)
        else:
            item = _scalar_schema(spec.kind)
        prop = {"type": "array", "items": item} if spec.repeated else dict(item)
        if "$ref" not in prop:
            prop["description"] = wf.name.replace("_", " ")
        props[wf.json_key] = prop
        if spec.required:
            required.append(wf.json_key)
    schema: dict[str, Any] = {"type": "object", "properties": props}
    if required:
        schema["required"] = required
    if exclude:
        return schema
    components.setdefault(cls.full_name(), schema)
    return _ref(cls.full_name())


def parameters_for(method: MethodDescriptor) -> list[dict[str, Any]]:
    """Path parameters, plus query parameters for scalar fields of GET inputs."""
    path_params = method.http.path_params
    params: list[dict[str, Any]] = []
    for wf in method.input_type.wire_fields():
        spec = wf.spec
        if wf.name in path_params:
            params.append({"name": wf.name, "in": "path", "required": True, "schema": _scalar_schema(spec.kind)})
        elif method.http.verb == "GET" and spec.kind is not Kind.MESSAGE and not spec.repeated:
            params.append(
                {"name": wf.json_key, "in": "query", "required": spec.required, "schema": _scalar_schema(spec.kind)}
            )
    return params


def operation_for(
    service: ServiceDescriptor,
    method: MethodDescriptor,
    components: dict[str, Any],
) -> dict[str, Any]:
    op: dict[str, Any] = {
        "operationId": f"{service.name}_{method.name}",
        "summary": method.summary or f"{service.name}.{method.name}",
        "tags": list(method.tags or (service.name,)),
    }
    if method.description:
        op["description"] = method.description
    params = parameters_for(method)
    if params:
        op["parameters"] = params
    if method.http.body == "*":
        op["requestBody"] = {
            "required": True,
            "content": {
                "application/json": {
                    "schema": schema_from_message(
                        method.input_type, components, exclude=method.http.path_params
                    )
                }
            },
        }
    output = schema_from_message(method.output_type, components)
    if method.http.response_body:
        spec = {wf.name: wf.spec for wf in method.output_type.wire_fields()}[method.http.response_body]
        assert spec.message is not None
        output = schema_from_message(spec.message, components)
    components.setdefault(ERROR_SCHEMA_NAME, ERROR_SCHEMA)
    op["responses"] = {
        "200": {"description": "OK", "content": {"application/json": {"schema": output}}},
        "default": {
            "description": "Error envelope",
            "content": {"application/json": {"schema": _ref(ERROR_SCHEMA_NAME)}},
        },
    }
    return op


def build_openapi_spec(
    operations: Operations,
    components: dict[str, Any],
    *,
    title: str = "API",
    version: str = "0.1.0",
) -> dict[str, Any]:
    """Assemble the OpenAPI 3.0 document from collected operations."""
    paths: dict[str, Any] = {}
    for (path, verb), op in operations.items():
        paths.setdefault(_path_to_openapi(path), {})[verb.lower()] = op
    return {
        "openapi": "3.0.0",
        "info": {"title": title, "version": version},
        "paths": paths,
        "components": {"schemas": dict(sorted(components.items()))},
    }


def build_for_services(
    services: list[ServiceDescriptor],
    *,
    title: str = "API",
    version: str = "0.1.0",
) -> dict[str, Any]:
    """OpenAPI document straight from descriptors (CLI export)."""
    components: dict[str, Any] = {}
    operations: Operations = {}
    for service in services:
        for method in service.methods:
            operations[(method.http.path, method.http.verb)] = operation_for(service, method, components)
    return build_openapi_spec(operations, components, title=title, version=version)


SWAGGER_UI_HTML = """<!DOCTYPE html>
<html>
<head>
  <link rel="stylesheet" type="text/css" href="https://unpkg.com/swagger-ui-dist@5/swagger-ui.css">
</head>
<body>
  <div id="swagger-ui"></div>
  <script src="https://unpkg.com/swagger-ui-dist@5/swagger-ui-bundle.js"></script>
  <script>
    SwaggerUIBundle({
      url: "%(openapi_path)s",
      dom_id: "#swagger-ui",
    });
  </script>
</body>
</html>
"""
