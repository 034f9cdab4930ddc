"""Endpoint Routes — mounts an Endpoint on a FastAPI router as a thin adapter.

Invariants:
    - The route function only translates: Request → raw mapping → pipeline →
      JSONResponse. No business logic, no validation rules
    - Path parameters are merged into the raw input (path wins on key clash)
    - Query/path values are text; they are converted by the schema descriptor
    - An unparseable JSON body is a validation failure at path "body";
      NaN and Infinity literals count as unparseable
    - Every response carries X-Request-ID
    - Client disconnect → empty 499, never a partial envelope

Design Decisions:
    - Route signature takes only Request: FastAPI does no body/param parsing
      of its own, so the declared Schema is the single validation authority
    - The Schema descriptor is published via openapi_extra, so the generated
      OpenAPI document matches what the validator enforces
"""

import json
import re

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from boundary.api.auth_guard import AuthGuard
from boundary.core.domain_types import FieldType, InputSource
from boundary.core.endpoint import Endpoint, RequestContext
from boundary.core.errors import ClientDisconnected, FieldIssue, SchemaValidationError
from boundary.core.schema import BODY_PATH, Schema, coerce_text_values
from boundary.services.pipeline import RequestPipeline

REQUEST_ID_HEADER = "X-Request-ID"
CLIENT_CLOSED_REQUEST = 499

_PATH_PARAM = re.compile(r"{([^}:]+)(?::[^}]*)?}")


def mount_endpoint(
    router: APIRouter,
    endpoint: Endpoint,
    method: str,
    path: str,
    pipeline: RequestPipeline,
    guard: AuthGuard | None = None,
) -> None:
    """Register endpoint on router under method + path."""
    if endpoint.requires_auth and guard is None:
        raise ValueError(f"endpoint '{endpoint.name}' requires an AuthGuard")

    async def route(request: Request) -> Response:
        context = RequestContext.new(
            endpoint.name,
            request_id=request.headers.get(REQUEST_ID_HEADER),
            method=request.method,
            path=request.url.path,
        )
        try:
            raw_input = await extract_raw_input(request, endpoint)
        except SchemaValidationError as exc:
            outcome = pipeline.reject(endpoint, exc, context)
        else:
            try:
                outcome = await pipeline.handle(
                    endpoint, raw_input, context,
                    is_disconnected=request.is_disconnected,
                )
            except ClientDisconnected:
                return Response(status_code=CLIENT_CLOSED_REQUEST)
        return JSONResponse(
            status_code=outcome.status_code,
            content=jsonable_encoder(outcome.envelope.to_wire()),
            headers={REQUEST_ID_HEADER: context.request_id},
        )

    route.__name__ = endpoint.name
    dependencies = [Depends(guard.dependency)] if endpoint.requires_auth else []
    router.add_api_route(
        path,
        route,
        methods=[method.upper()],
        name=endpoint.name,
        summary=endpoint.name.replace("_", " ").capitalize(),
        description=endpoint.description,
        status_code=endpoint.success_status,
        dependencies=dependencies,
        openapi_extra=_openapi_extra(endpoint, path),
    )


async def extract_raw_input(request: Request, endpoint: Endpoint) -> object:
    """Reduce the transport request to the raw structure the validator sees."""
    schema = endpoint.schema
    path_values = coerce_text_values(schema, dict(request.path_params))
    if endpoint.source is InputSource.QUERY:
        raw = coerce_text_values(schema, _query_values(request, schema))
        return {**raw, **path_values}
    body = await _read_json(request, schema)
    if isinstance(body, dict):
        return {**body, **path_values}
    return body


async def _read_json(request: Request, schema: Schema) -> object:
    payload = await request.body()
    if not payload.strip():
        return {}
    try:
        return json.loads(payload, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError):
        raise SchemaValidationError(
            schema.name,
            [FieldIssue(BODY_PATH, "malformed JSON", "json_invalid")],
        ) from None


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def _query_values(request: Request, schema: Schema) -> dict:
    values: dict = {}
    for key, value in request.query_params.multi_items():
        spec = schema.get_field(key)
        if spec is not None and spec.type is FieldType.LIST:
            values.setdefault(key, []).append(value)
        else:
            values[key] = value
    return values


def _openapi_extra(endpoint: Endpoint, path: str) -> dict:
    schema = endpoint.schema
    path_names = _PATH_PARAM.findall(path)
    parameters = [
        {
            "name": name,
            "in": "path",
            "required": True,
            "schema": (
                schema.get_field(name).to_json_schema()
                if schema.get_field(name) else {"type": "string"}
            ),
        }
        for name in path_names
    ]
    extra: dict = {}
    if endpoint.source is InputSource.QUERY:
        parameters += [
            {
                "name": spec.name,
                "in": "query",
                "required": spec.required,
                "schema": spec.to_json_schema(),
            }
            for spec in schema.fields
            if spec.name not in path_names
        ]
    else:
        extra["requestBody"] = {
            "required": True,
            "content": {
                "application/json": {"schema": _body_schema(schema, path_names)},
            },
        }
    if parameters:
        extra["parameters"] = parameters
    return extra


def _body_schema(schema: Schema, path_names: list[str]) -> dict:
    rendered = schema.to_json_schema()
    for name in path_names:
        rendered["properties"].pop(name, None)
        if name in rendered["required"]:
            rendered["required"].remove(name)
    return rendered
