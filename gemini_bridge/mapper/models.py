"""Typed views over OpenAI chat-completion requests.

The wire payload is ingested leniently: badly typed optional fields are
dropped instead of rejected, and the loosely shaped parts of the schema
(message content, tool declarations, JSON schema nodes) are resolved once
into small tagged structures so the converters never probe raw shapes.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gemini_bridge.mapper.constants import (
    FLAT_TOOL_STRIPPED_KEYS,
    GEMINI_SCHEMA_WHITELIST,
    ROLE_USER,
)

logger = logging.getLogger(__name__)


def stringify_json(value: Any) -> str:
    """Render a JSON value as a string; strings are returned unchanged."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


# =============================================================================
# MESSAGE CONTENT
# =============================================================================


@dataclass(frozen=True)
class TextItem:
    text: str


@dataclass(frozen=True)
class ImageItem:
    url: str


@dataclass(frozen=True)
class UnknownItem:
    type: str


ContentItem = Union[TextItem, ImageItem, UnknownItem]


@dataclass(frozen=True)
class AbsentContent:
    def as_text(self) -> str:
        return ""


@dataclass(frozen=True)
class PlainText:
    text: str

    def as_text(self) -> str:
        return self.text


@dataclass(frozen=True)
class MixedItems:
    items: Tuple[ContentItem, ...]
    raw: Any = field(default=None, compare=False)

    def as_text(self) -> str:
        """Serialize the original item list, as sent by the client."""
        return stringify_json(self.raw)


MessageContent = Union[AbsentContent, PlainText, MixedItems]


def _parse_content_item(item: Any) -> ContentItem:
    if not isinstance(item, dict) or not isinstance(item.get("type"), str):
        return UnknownItem(type=type(item).__name__)

    item_type = item["type"]
    if item_type == "text":
        text = item.get("text")
        return TextItem(text=text if isinstance(text, str) else "")

    if item_type == "image_url":
        image = item.get("image_url")
        # Some clients send the URL directly instead of {"url": ...}
        if isinstance(image, dict):
            image = image.get("url")
        return ImageItem(url=image if isinstance(image, str) else "")

    return UnknownItem(type=item_type)


def parse_message_content(value: Any) -> MessageContent:
    """Resolve raw OpenAI message content into a tagged content value.

    - None -> AbsentContent
    - str -> PlainText
    - list -> MixedItems (one tagged item per entry)
    - anything else -> PlainText holding its JSON serialization
    """
    if value is None:
        return AbsentContent()
    if isinstance(value, str):
        return PlainText(text=value)
    if isinstance(value, list):
        return MixedItems(items=tuple(_parse_content_item(item) for item in value), raw=value)
    return PlainText(text=stringify_json(value))


# =============================================================================
# REQUEST MODELS
# =============================================================================


class OpenAIMessage(BaseModel):
    """One entry of an OpenAI ``messages`` list."""

    model_config = ConfigDict(extra="allow")

    role: str = ROLE_USER
    content: Any = None
    tool_calls: Optional[List[Any]] = None
    tool_call_id: Optional[str] = None
    name: Optional[str] = None

    @field_validator("role", mode="wrap")
    @classmethod
    def _lenient_role(cls, value: Any, handler: Any) -> str:
        if not isinstance(value, str):
            return ROLE_USER
        return handler(value)

    @field_validator("tool_call_id", "name", mode="before")
    @classmethod
    def _lenient_identifier(cls, value: Any) -> Optional[str]:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return str(value)
        return value if isinstance(value, str) else None

    @field_validator("tool_calls", mode="before")
    @classmethod
    def _lenient_tool_calls(cls, value: Any) -> Optional[List[Any]]:
        return value if isinstance(value, list) else None

    @property
    def typed_content(self) -> MessageContent:
        return parse_message_content(self.content)


class OpenAIRequest(BaseModel):
    """The subset of an OpenAI chat-completion request the mapper consumes.

    ``instructions`` and ``input`` carry Responses-style (Codex) payloads,
    see :func:`normalize_responses_input`.
    """

    model_config = ConfigDict(extra="allow")

    model: str = ""
    messages: List[OpenAIMessage] = Field(default_factory=list)
    tools: Optional[List[Any]] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    stream: bool = False
    tool_choice: Any = None
    parallel_tool_calls: Optional[bool] = None
    instructions: Optional[str] = None
    input: Any = None

    @field_validator("messages", mode="before")
    @classmethod
    def _drop_malformed_messages(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [msg for msg in value if isinstance(msg, (dict, OpenAIMessage))]

    @field_validator("tools", mode="before")
    @classmethod
    def _lenient_tools(cls, value: Any) -> Optional[List[Any]]:
        return value if isinstance(value, list) else None

    @field_validator(
        "model",
        "max_tokens",
        "temperature",
        "top_p",
        "stream",
        "parallel_tool_calls",
        "instructions",
        mode="wrap",
    )
    @classmethod
    def _drop_invalid(cls, value: Any, handler: Any, info: Any) -> Any:
        try:
            return handler(value)
        except ValidationError:
            logger.debug("Ignoring invalid value for %s: %r", info.field_name, value)
            return cls.model_fields[info.field_name].default

    @classmethod
    def from_payload(cls, payload: Union[Dict[str, Any], "OpenAIRequest"]) -> "OpenAIRequest":
        if isinstance(payload, cls):
            return payload
        if not isinstance(payload, dict):
            payload = {}
        return cls.model_validate(payload)


# =============================================================================
# RESPONSES-STYLE (CODEX) INPUT
# =============================================================================


def _responses_content_to_chat(content: Any) -> Any:
    """Flatten Responses content parts (input_text/output_text/input_image) to chat items."""
    if not isinstance(content, list):
        return content

    items: List[Dict[str, Any]] = []
    for part in content:
        if not isinstance(part, dict):
            continue
        part_type = part.get("type")
        if part_type in ("input_text", "output_text", "text"):
            items.append({"type": "text", "text": part.get("text", "")})
        elif part_type == "input_image":
            items.append({"type": "image_url", "image_url": {"url": part.get("image_url", "")}})
        else:
            items.append(part)
    return items


def _responses_items_to_messages(items: List[Any]) -> List[Dict[str, Any]]:
    messages: List[Dict[str, Any]] = []
    # Consecutive calls belong to the same model turn
    pending_calls: List[Dict[str, Any]] = []

    def flush_calls() -> None:
        if pending_calls:
            messages.append(
                {"role": "assistant", "content": None, "tool_calls": list(pending_calls)}
            )
            pending_calls.clear()

    for item in items:
        if not isinstance(item, dict):
            continue
        item_type = item.get("type", "message")

        if item_type == "function_call":
            pending_calls.append(
                {
                    "id": item.get("call_id") or item.get("id"),
                    "type": "function",
                    "function": {
                        "name": item.get("name"),
                        "arguments": item.get("arguments", "{}"),
                    },
                }
            )
            continue

        if item_type == "local_shell_call":
            pending_calls.append(
                {
                    "id": item.get("call_id") or item.get("id"),
                    "type": "function",
                    "function": {
                        "name": "local_shell_call",
                        "arguments": stringify_json(item.get("action", {})),
                    },
                }
            )
            continue

        flush_calls()

        if item_type in ("function_call_output", "local_shell_call_output"):
            messages.append(
                {
                    "role": "tool",
                    "tool_call_id": item.get("call_id"),
                    "content": item.get("output"),
                }
            )
        elif item_type == "message":
            messages.append(
                {
                    "role": item.get("role", ROLE_USER),
                    "content": _responses_content_to_chat(item.get("content")),
                }
            )
        else:
            logger.warning("Skipping unsupported Responses input item: %s", item_type)

    flush_calls()
    return messages


def normalize_responses_input(request: OpenAIRequest) -> OpenAIRequest:
    """Turn a Responses-style request (``instructions`` + ``input``) into chat messages.

    Requests that already carry ``messages`` are returned unchanged.
    """
    if request.messages or (request.instructions is None and request.input is None):
        return request

    messages: List[Dict[str, Any]] = []
    if request.instructions:
        messages.append({"role": "system", "content": request.instructions})

    if isinstance(request.input, str):
        messages.append({"role": ROLE_USER, "content": request.input})
    elif isinstance(request.input, list):
        messages.extend(_responses_items_to_messages(request.input))

    logger.debug("Normalized Responses input into %d chat messages", len(messages))
    return request.model_copy(
        update={"messages": [OpenAIMessage.model_validate(msg) for msg in messages]}
    )


# =============================================================================
# TOOL DECLARATIONS
# =============================================================================


@dataclass(frozen=True)
class WrappedTool:
    """``{"type": "function", "function": {...}}`` (OpenAI standard)."""

    function: Dict[str, Any]

    def to_function_declaration(self) -> Dict[str, Any]:
        return dict(self.function)


@dataclass(frozen=True)
class FlatTool:
    """A tool object that is itself the function definition (Codex style)."""

    definition: Dict[str, Any]

    def to_function_declaration(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in self.definition.items()
            if key not in FLAT_TOOL_STRIPPED_KEYS
        }


ToolDeclaration = Union[WrappedTool, FlatTool]


def parse_tool_declaration(raw: Any) -> Optional[ToolDeclaration]:
    """Classify a raw tool entry; returns None for non-function tools."""
    if not isinstance(raw, dict):
        return None

    tool_type = raw.get("type")
    if tool_type is not None and tool_type != "function":
        return None

    function = raw.get("function")
    if isinstance(function, dict):
        return WrappedTool(function=function)
    if "name" in raw:
        return FlatTool(definition=raw)
    return None


# =============================================================================
# JSON SCHEMA NODES
# =============================================================================


class SchemaNode(BaseModel):
    """A JSON schema node restricted to the keys Gemini accepts.

    Unknown keys (``default``, ``title``, ``additionalProperties``, ...) are
    ignored at parse time, so a round trip through :meth:`to_gemini` is the
    whitelist filter.
    """

    model_config = ConfigDict(extra="ignore")

    type: Any = None
    description: Any = None
    properties: Any = None
    required: Any = None
    items: Any = None
    enum: Any = None
    format: Any = None
    nullable: Any = None

    @field_validator("properties", mode="before")
    @classmethod
    def _parse_properties(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {name: SchemaNode.parse(prop) for name, prop in value.items()}
        return value

    @field_validator("items", mode="before")
    @classmethod
    def _parse_items(cls, value: Any) -> Any:
        return SchemaNode.parse(value)

    @classmethod
    def parse(cls, value: Any) -> Any:
        """Parse dict nodes; any other JSON value is kept as-is."""
        if isinstance(value, dict):
            return cls.model_validate(value)
        return value

    def to_gemini(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key in GEMINI_SCHEMA_WHITELIST:
            if key not in self.model_fields_set:
                continue
            value = getattr(self, key)
            if key == "type" and isinstance(value, str):
                value = value.upper()
            elif key == "properties" and isinstance(value, dict):
                value = {name: schema_to_gemini(prop) for name, prop in value.items()}
            elif key == "items":
                value = schema_to_gemini(value)
            result[key] = value
        return result


def schema_to_gemini(value: Any) -> Any:
    """Translate a parsed schema value (node or raw JSON) to Gemini form."""
    if isinstance(value, SchemaNode):
        return value.to_gemini()
    return value
