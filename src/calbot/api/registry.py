from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

JsonSchema = Dict[str, Any]

DATE_TIME_FORMAT = "date-time"
EMAIL_FORMAT = "email"


@dataclass(frozen=True)
class ToolSpec:
    """A tool the model may call: name, description and its parameter contract."""

    name: str
    description: str
    properties: Dict[str, JsonSchema] = field(default_factory=dict)
    required: Tuple[str, ...] = ()
    ordering: Tuple[Tuple[str, str], ...] = ()
    category: str = "calendar"

    @property
    def parameter_schema(self) -> JsonSchema:
        return {
            "type": "object",
            "properties": deepcopy(self.properties),
            "required": list(self.required),
        }

    @property
    def datetime_fields(self) -> List[str]:
        return [name for name, schema in self.properties.items() if schema.get("format") == DATE_TIME_FORMAT]

    @property
    def requires_calendar(self) -> bool:
        return self.category == "calendar"

    def as_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameter_schema,
            },
        }


class ToolRegistry:
    """Ordered, name-unique catalog of tool specs, built once per process."""

    def __init__(self, specs: Optional[Iterable[ToolSpec]] = None) -> None:
        self._specs: Dict[str, ToolSpec] = {}
        for spec in specs or ():
            self.register(spec)

    def register(self, spec: ToolSpec) -> ToolSpec:
        if spec.name in self._specs:
            raise ValueError(f"Tool '{spec.name}' is already registered.")
        unknown = [name for name in spec.required if name not in spec.properties]
        if unknown:
            raise ValueError(f"Tool '{spec.name}' requires undeclared parameters: {', '.join(unknown)}")
        self._specs[spec.name] = spec
        return spec

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._specs.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    @property
    def names(self) -> List[str]:
        return list(self._specs)

    def as_tools(self) -> List[Dict[str, Any]]:
        return [spec.as_tool() for spec in self._specs.values()]
