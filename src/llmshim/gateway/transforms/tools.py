"""Tool definitions derived from pydantic models.

Tool parameter schemas are generated once per tool and cached in a
:class:`ToolRegistry` that the caller creates and passes around; there is
no module-level cache.

Usage:
    class GetWeather(BaseModel):
        location: str = Field(description="The city and state, e.g. San Francisco, CA")
        unit: Unit | None = None

    registry = ToolRegistry()
    tool = registry.register("get_weather", GetWeather, "Get the current weather")
    body["tools"] = [t.to_anthropic() for t in registry]
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel

from llmshim.core.transforms.types import ToolDefinition
from llmshim.gateway.errors import ToolSchemaError

_ROOT_ONLY_KEYS = ("$schema", "$defs", "definitions")


def _resolve_ref(ref: str, defs: dict[str, Any]) -> dict[str, Any]:
    name = ref.rsplit("/", 1)[-1]
    if name not in defs:
        raise ToolSchemaError(f"Unresolvable schema reference {ref!r}")
    return defs[name]


def _clean(schema: Any, defs: dict[str, Any], seen: tuple[str, ...] = ()) -> Any:
    """Inline refs, collapse nullable unions and drop titles, recursively."""
    if isinstance(schema, list):
        return [_clean(item, defs, seen) for item in schema]
    if not isinstance(schema, dict):
        return schema

    if "$ref" in schema:
        ref = schema["$ref"]
        if ref in seen:
            raise ToolSchemaError(f"Recursive schema reference {ref!r} cannot be inlined")
        siblings = {k: v for k, v in schema.items() if k != "$ref"}
        merged = {**_resolve_ref(ref, defs), **siblings}
        return _clean(merged, defs, (*seen, ref))

    # Optional[X] = None is rendered as anyOf [X, null]; keep X only.
    any_of = schema.get("anyOf")
    if isinstance(any_of, list):
        non_null = [s for s in any_of if s != {"type": "null"}]
        if len(non_null) == 1 and len(non_null) < len(any_of):
            rest = {k: v for k, v in schema.items() if k != "anyOf"}
            if rest.get("default", ...) is None:
                del rest["default"]
            return _clean({**non_null[0], **rest}, defs, seen)

    cleaned: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "title" or key in _ROOT_ONLY_KEYS:
            continue
        if key == "properties" and isinstance(value, dict):
            cleaned[key] = {name: _clean(sub, defs, seen) for name, sub in value.items()}
        elif key in ("items", "additionalProperties", "not") and isinstance(value, dict):
            cleaned[key] = _clean(value, defs, seen)
        elif key in ("anyOf", "oneOf", "allOf", "prefixItems"):
            cleaned[key] = _clean(value, defs, seen)
        else:
            cleaned[key] = value
    return cleaned


def input_schema_for(model: type[BaseModel]) -> dict[str, Any]:
    """JSON schema for a tool's parameters.

    The schema is self-contained (no ``$ref``), carries no generated titles,
    and renders ``Optional[X] = None`` fields as plain, non-required ``X``.

    Raises:
        ToolSchemaError: If the model's schema is not ``type: object``.
    """
    raw = model.model_json_schema()
    if raw.get("type") != "object":
        raise ToolSchemaError(f"Tool parameters of {model.__name__} must be a JSON object schema")
    defs = copy.deepcopy(raw.get("$defs", {}))
    return _clean(raw, defs)


class ToolRegistry:
    """Caller-owned cache of tool definitions, keyed by tool name."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._models: dict[str, type[BaseModel]] = {}

    def register(
        self,
        name: str,
        params: type[BaseModel],
        description: str | None = None,
    ) -> ToolDefinition:
        """Define a tool, generating its schema on first registration.

        Registering the same name with the same model returns the cached
        definition.

        Raises:
            ValueError: If ``name`` is already registered with another model.
            ToolSchemaError: If the model does not yield an object schema.
        """
        existing = self._models.get(name)
        if existing is not None:
            if existing is not params:
                raise ValueError(f"Tool {name!r} is already registered with {existing.__name__}")
            return self._tools[name]

        tool = ToolDefinition(name=name, description=description, input_schema=input_schema_for(params))
        self._tools[name] = tool
        self._models[name] = params
        return tool

    def get(self, name: str) -> ToolDefinition:
        return self._tools[name]

    def parse_input(self, name: str, arguments: dict[str, Any]) -> BaseModel:
        """Validate a tool call's input against the tool's model."""
        return self._models[name].model_validate(arguments)

    def definitions(self) -> tuple[ToolDefinition, ...]:
        return tuple(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
