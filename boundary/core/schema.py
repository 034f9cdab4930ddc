"""Schema Validator — explicit schema descriptors compiled to pydantic models.

Invariants:
    - A Schema is a declared, inspectable data structure (field name → type + constraints)
    - validate() is pure: ValidatedInput on full success, SchemaValidationError otherwise
    - Every failing field is reported (path + reason) — never a partial ValidatedInput
    - Unknown fields are rejected unless the schema opts in to STRIP
    - An optional field sent as null is treated as absent: it takes its default
    - Numbers are finite: NaN and infinities are rejected
    - Choices narrow the declared type; they never widen it (True is not 1)
    - Body input is type-strict: no str → number coercion, bool is not an int,
      int is accepted where a number is expected
    - The same descriptor renders JSON Schema for documentation

Design Decisions:
    - Descriptor compiled once per Schema instance (cached_property) into a
      frozen pydantic model; pydantic collects all errors in one pass
    - Model fields named positionally with the declared name as alias:
      declared names never collide with BaseModel attributes
    - Query/path input is text on the wire: coerce_text_values() converts it
      using the descriptor before validation
"""

import copy
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field,
    StrictBool, StrictFloat, StrictInt, StrictStr, create_model,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from boundary.core.domain_types import FieldType, UnknownFieldPolicy
from boundary.core.errors import FieldIssue, SchemaValidationError

BODY_PATH = "body"

_TRUE_TEXT = frozenset({"true", "1", "yes", "on"})
_FALSE_TEXT = frozenset({"false", "0", "no", "off"})

_STRICT_TYPES = {
    FieldType.STRING: StrictStr,
    FieldType.INTEGER: StrictInt,
    FieldType.NUMBER: StrictFloat,
    FieldType.BOOLEAN: StrictBool,
}

_JSON_TYPES = {
    FieldType.STRING: "string",
    FieldType.INTEGER: "integer",
    FieldType.NUMBER: "number",
    FieldType.BOOLEAN: "boolean",
    FieldType.LIST: "array",
    FieldType.OBJECT: "object",
}

# pydantic error type → readable reason
_REASONS = {
    "missing": "required",
    "extra_forbidden": "unknown field",
    "string_type": "must be a string",
    "int_type": "must be an integer",
    "float_type": "must be a number",
    "bool_type": "must be a boolean",
    "list_type": "must be a list",
    "model_type": "must be an object",
    "model_attributes_type": "must be an object",
    "dict_type": "must be an object",
    "finite_number": "must be a finite number",
}

_REASON_TEMPLATES = {
    "string_too_short": "must be at least {min_length} characters",
    "string_too_long": "must be at most {max_length} characters",
    "too_short": "must contain at least {min_length} items",
    "too_long": "must contain at most {max_length} items",
    "greater_than_equal": "must be >= {ge}",
    "less_than_equal": "must be <= {le}",
    "string_pattern_mismatch": "must match pattern {pattern}",
    "literal_error": "must be one of: {expected}",
}


# ─── Descriptors ─────────────────────────────────────────────────

@dataclass(frozen=True)
class FieldSpec:
    """One declared field and its constraints."""
    name: str
    type: FieldType
    required: bool = True
    default: Any = None
    min_length: int | None = None
    max_length: int | None = None
    minimum: float | None = None
    maximum: float | None = None
    pattern: str | None = None
    choices: tuple | None = None
    items: "FieldSpec | None" = None
    schema: "Schema | None" = None
    description: str | None = None

    def __post_init__(self):
        if self.type is FieldType.LIST and self.items is None:
            raise ValueError(f"list field '{self.name}' requires items")
        if self.type is FieldType.OBJECT and self.schema is None:
            raise ValueError(f"object field '{self.name}' requires schema")
        if self.required and self.default is not None:
            raise ValueError(f"required field '{self.name}' cannot have a default")
        if self.choices is not None:
            object.__setattr__(self, "choices", tuple(self.choices))

    def to_json_schema(self) -> dict:
        """Render this field as a JSON Schema property."""
        if self.type is FieldType.OBJECT:
            prop = self.schema.to_json_schema()
        else:
            prop = {"type": _JSON_TYPES[self.type]}
        if self.type is FieldType.LIST:
            prop["items"] = self.items.to_json_schema()
            _put(prop, "minItems", self.min_length)
            _put(prop, "maxItems", self.max_length)
        elif self.type is FieldType.STRING:
            _put(prop, "minLength", self.min_length)
            _put(prop, "maxLength", self.max_length)
            _put(prop, "pattern", self.pattern)
        _put(prop, "minimum", self.minimum)
        _put(prop, "maximum", self.maximum)
        if self.choices is not None:
            prop["enum"] = list(self.choices)
        _put(prop, "default", self.default)
        _put(prop, "description", self.description)
        return prop


@dataclass(frozen=True)
class Schema:
    """Named, closed set of fields with an unknown-field policy."""
    name: str
    fields: tuple[FieldSpec, ...] = field(default_factory=tuple)
    unknown_fields: UnknownFieldPolicy = UnknownFieldPolicy.REJECT

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        names = [spec.name for spec in self.fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(
                f"schema '{self.name}' declares duplicate fields: {', '.join(duplicates)}",
            )

    def get_field(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    @cached_property
    def model(self) -> type[BaseModel]:
        """Pydantic model compiled from this descriptor."""
        return _compile(self)

    def to_json_schema(self) -> dict:
        """Render the descriptor as a JSON Schema object."""
        return {
            "title": self.name,
            "type": "object",
            "properties": {
                spec.name: spec.to_json_schema() for spec in self.fields
            },
            "required": [spec.name for spec in self.fields if spec.required],
            "additionalProperties": (
                self.unknown_fields is UnknownFieldPolicy.STRIP
            ),
        }


class ValidatedInput(Mapping):
    """Immutable field values that satisfied a schema. Built only by validate()."""

    __slots__ = ("_schema_name", "_values")

    def __init__(self, schema_name: str, values: dict):
        self._schema_name = schema_name
        self._values = MappingProxyType(dict(values))

    @property
    def schema_name(self) -> str:
        return self._schema_name

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "_values"):
            raise AttributeError("ValidatedInput is immutable")
        super().__setattr__(name, value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ValidatedInput):
            return (
                self._schema_name == other._schema_name
                and dict(self._values) == dict(other._values)
            )
        return NotImplemented

    __hash__ = None

    def to_dict(self) -> dict:
        """Deep copy of the values as plain dicts/lists."""
        return _deep_copy(self._values)

    def __repr__(self) -> str:
        return f"ValidatedInput({self._schema_name!r}, {dict(self._values)!r})"


# ─── Operations ──────────────────────────────────────────────────

def validate(schema: Schema, raw_input: Any) -> ValidatedInput:
    """Validate raw input against schema. Raises SchemaValidationError listing every failure."""
    try:
        instance = schema.model.model_validate(raw_input)
    except PydanticValidationError as exc:
        issues = [_to_issue(error) for error in exc.errors()]
        raise SchemaValidationError(schema.name, issues) from None
    return ValidatedInput(
        schema.name, instance.model_dump(by_alias=True, exclude_none=True),
    )


def coerce_text_values(schema: Schema, raw: Mapping[str, Any]) -> dict:
    """Convert query/path text values to the declared scalar types.

    Values that cannot be converted are returned unchanged so validate()
    reports them. Undeclared keys pass through for the unknown-field policy.
    """
    coerced = {}
    for key, value in raw.items():
        spec = schema.get_field(key)
        if spec is None:
            coerced[key] = value
        elif spec.type is FieldType.LIST:
            values = value if isinstance(value, list) else [value]
            coerced[key] = [_coerce_text(spec.items.type, v) for v in values]
        else:
            if isinstance(value, list):
                value = value[-1] if value else ""
            coerced[key] = _coerce_text(spec.type, value)
    return coerced


# ─── Internals ───────────────────────────────────────────────────

def _compile(schema: Schema) -> type[BaseModel]:
    definitions = {
        f"field_{index}": (_field_annotation(spec), _field_info(spec))
        for index, spec in enumerate(schema.fields)
    }
    extra = (
        "forbid" if schema.unknown_fields is UnknownFieldPolicy.REJECT
        else "ignore"
    )
    return create_model(
        _model_name(schema.name),
        __config__=ConfigDict(extra=extra, frozen=True),
        **definitions,
    )


def _model_name(name: str) -> str:
    parts = [p for p in re.split(r"\W+", name) if p]
    return "".join(p[:1].upper() + p[1:] for p in parts) or "Input"


def _field_annotation(spec: FieldSpec) -> Any:
    annotation = _constrained(spec)
    if spec.required:
        return annotation
    annotation = Optional[annotation]
    if spec.default is None:
        return annotation
    # null becomes the default before the nullable branch can accept it
    return Annotated[annotation, BeforeValidator(_null_as(spec.default))]


def _annotation(spec: FieldSpec) -> Any:
    if spec.type is FieldType.LIST:
        return list[_constrained(spec.items)]
    if spec.type is FieldType.OBJECT:
        return spec.schema.model
    base = _STRICT_TYPES[spec.type]
    if spec.choices is not None:
        return Annotated[base, AfterValidator(_one_of(spec.choices))]
    return base


def _constrained(spec: FieldSpec) -> Any:
    constraints = _constraints(spec)
    base = _annotation(spec)
    return Annotated[base, Field(**constraints)] if constraints else base


def _constraints(spec: FieldSpec) -> dict:
    if spec.choices is not None:
        return {}
    constraints = {}
    if spec.type in (FieldType.STRING, FieldType.LIST):
        _put(constraints, "min_length", spec.min_length)
        _put(constraints, "max_length", spec.max_length)
    if spec.type is FieldType.STRING:
        _put(constraints, "pattern", spec.pattern)
    if spec.type in (FieldType.INTEGER, FieldType.NUMBER):
        _put(constraints, "ge", spec.minimum)
        _put(constraints, "le", spec.maximum)
    if spec.type is FieldType.NUMBER:
        constraints["allow_inf_nan"] = False
    return constraints


def _field_info(spec: FieldSpec) -> Any:
    default = ... if spec.required else spec.default
    return Field(default, alias=spec.name, description=spec.description)


def _null_as(default: Any):
    def replace_null(value: Any) -> Any:
        return copy.deepcopy(default) if value is None else value
    return replace_null


def _one_of(choices: tuple):
    expected = ", ".join(repr(choice) for choice in choices)

    def check_choice(value: Any) -> Any:
        if value not in choices:
            raise PydanticCustomError(
                "literal_error", "Input should be one of: {expected}",
                {"expected": expected},
            )
        return value
    return check_choice


def _to_issue(error: dict) -> FieldIssue:
    path = ".".join(str(part) for part in error["loc"]) or BODY_PATH
    code = error["type"]
    if code in _REASONS:
        reason = _REASONS[code]
    elif code in _REASON_TEMPLATES:
        reason = _REASON_TEMPLATES[code].format(**error.get("ctx", {}))
    else:
        reason = error["msg"]
    return FieldIssue(path=path, reason=reason, code=code)


def _coerce_text(field_type: FieldType, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if field_type is FieldType.INTEGER:
        try:
            return int(value)
        except ValueError:
            return value
    if field_type is FieldType.NUMBER:
        try:
            return float(value)
        except ValueError:
            return value
    if field_type is FieldType.BOOLEAN:
        lowered = value.strip().lower()
        if lowered in _TRUE_TEXT:
            return True
        if lowered in _FALSE_TEXT:
            return False
    return value


def _deep_copy(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _deep_copy(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_deep_copy(v) for v in value]
    return value


def _put(target: dict, key: str, value: Any) -> None:
    if value is not None:
        target[key] = value
