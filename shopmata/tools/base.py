"""Base class for assistant tools.

A tool is a named unit of work the chat model can call. Its parameters are a
pydantic model, so the JSON schema advertised to the model and the values
``run`` reads come from the same declaration.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy.orm import Session, sessionmaker

from ..db import session_scope

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ToolParams(BaseModel):
    """Base for tool parameter models. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class NoParams(ToolParams):
    pass


def _clean_schema(node: Any) -> Any:
    """Strip pydantic titles and collapse ``Optional[X]`` to ``X``."""
    if isinstance(node, list):
        return [_clean_schema(item) for item in node]
    if not isinstance(node, dict):
        return node

    node = {k: v for k, v in node.items() if k != "title"}

    variants = node.get("anyOf")
    if variants:
        non_null = [v for v in variants if v.get("type") != "null"]
        if len(non_null) == 1:
            node.pop("anyOf")
            node = {**non_null[0], **node}

    if "default" in node and node["default"] is None:
        node.pop("default")

    if "properties" in node:
        node["properties"] = {
            name: _clean_schema(prop) for name, prop in node["properties"].items()
        }
    for key in ("items", "anyOf"):
        if key in node:
            node[key] = _clean_schema(node[key])

    return node


def params_schema(params_model: Type[ToolParams], required: Tuple[str, ...] = ()) -> Dict[str, Any]:
    """JSON schema object for a parameter model."""
    raw = params_model.model_json_schema()
    schema = {
        "type": "object",
        "properties": {
            name: _clean_schema(prop) for name, prop in raw.get("properties", {}).items()
        },
    }
    if required:
        schema["required"] = list(required)
    return schema


class ChatTool(ABC):
    """
    A schema-described, store-scoped unit of work.

    Subclasses set ``name``, ``description``, ``params_model`` and
    ``required`` and implement :meth:`run`.
    """

    name: str = ""
    description: str = ""
    params_model: Type[ToolParams] = NoParams
    required: Tuple[str, ...] = ()
    status_message: str = "Working on it..."

    def __init__(self, session_factory: sessionmaker, clock: Optional[Clock] = None):
        self.session_factory = session_factory
        self.clock = clock or datetime.now

    def definition(self) -> Dict[str, Any]:
        """Anthropic-style tool definition."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": params_schema(self.params_model, self.required),
        }

    def openai_definition(self) -> Dict[str, Any]:
        """OpenAI/litellm function-calling definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": params_schema(self.params_model, self.required),
            },
        }

    def parse_params(self, params: Optional[Mapping[str, Any]]) -> ToolParams:
        """
        Validate ``params``, replacing invalid values with their defaults.

        Raises:
            ValidationError: If the params still do not validate once the
                invalid values are dropped
        """
        data = dict(params or {})
        try:
            return self.params_model.model_validate(data)
        except ValidationError as e:
            invalid = {err["loc"][0] for err in e.errors() if err.get("loc")}
            logger.warning(
                f"Tool {self.name}: ignoring invalid parameters {sorted(map(str, invalid))}"
            )
            for key in invalid:
                data.pop(key, None)
            return self.params_model.model_validate(data)

    def execute(self, params: Optional[Mapping[str, Any]], store_id: int) -> Dict[str, Any]:
        """
        Run the tool for one store.

        Expected no-data conditions come back as zero results with a
        ``message``; bad input comes back as ``{"error": ...}``.
        """
        try:
            parsed = self.parse_params(params)
        except ValidationError as e:
            return {"error": f"Invalid parameters: {e.error_count()} validation error(s)"}

        for field_name in self.required:
            value = getattr(parsed, field_name, None)
            if value is None or value == "":
                return {"error": f"Missing required parameter: {field_name}"}

        return self.run(parsed, store_id)

    @abstractmethod
    def run(self, params: Any, store_id: int) -> Dict[str, Any]:
        """Do the work with validated params."""
        pass

    def now(self) -> datetime:
        return self.clock()

    def session(self):
        """Transactional session scope for this tool."""
        return session_scope(self.session_factory)


def scalar_or_zero(session: Session, statement) -> float:
    """Execute an aggregate and treat NULL as 0."""
    value = session.execute(statement).scalar()
    return float(value or 0)
