"""Tool calling utilities for the OpenAI → Gemini mapper.

Function name aliasing, the tool_call_id → function name index used to
name functionResponse parts, and conversion of OpenAI tool declarations to
Gemini function_declarations.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from gemini_bridge.mapper.constants import FUNCTION_NAME_ALIASES, GEMINI_ROOT_SCHEMA_TYPE
from gemini_bridge.mapper.models import (
    OpenAIMessage,
    SchemaNode,
    parse_tool_declaration,
    schema_to_gemini,
)

logger = logging.getLogger(__name__)


def normalize_function_name(name: str) -> str:
    """Map client-side tool names onto the names the backend knows.

    ``local_shell_call`` -> ``shell``; every other name passes through.
    """
    return FUNCTION_NAME_ALIASES.get(name, name)


# =============================================================================
# TOOL CALL INDEX
# =============================================================================


def build_tool_call_index(messages: Iterable[OpenAIMessage]) -> Dict[str, str]:
    """Map every tool call id in the conversation to its (aliased) function name.

    Tool result messages often omit ``name``; the index lets the converter
    recover it from the matching ``tool_call_id``. Entries without a string
    id or function name are skipped.

    Args:
        messages: The request's messages

    Returns:
        Dict of tool_call_id -> function name
    """
    index: Dict[str, str] = {}
    for msg in messages:
        for call in msg.tool_calls or []:
            if not isinstance(call, dict):
                continue
            call_id = call.get("id")
            func = call.get("function")
            if not isinstance(call_id, str) or not isinstance(func, dict):
                continue
            name = func.get("name")
            if isinstance(name, str):
                index[call_id] = normalize_function_name(name)
    return index


# =============================================================================
# TOOL DECLARATIONS
# =============================================================================


def to_gemini_schema(schema: Any) -> Any:
    """Transform a JSON Schema to the Gemini function declaration vocabulary.

    Key transformations:
    - Keeps only type, description, properties, required, items, enum,
      format and nullable; everything else (default, title,
      additionalProperties, $schema, ...) is dropped
    - Converts type values to uppercase (object -> OBJECT, string -> STRING)
    - Recurses into each property schema and into items

    Non-object values are returned unchanged.

    Example:
        {"type": "integer", "default": 5, "additionalProperties": False}
        -> {"type": "INTEGER"}
    """
    return schema_to_gemini(SchemaNode.parse(schema))


def convert_tool_to_function_declaration(tool: Any) -> Optional[Dict[str, Any]]:
    """Convert one OpenAI tool entry to a Gemini function declaration.

    Accepts both the wrapped OpenAI shape
    ``{"type": "function", "function": {...}}`` and the flat Codex shape
    where the tool object itself carries ``name``/``parameters``.

    Returns:
        The declaration, or None for non-function tools and tools without a name
    """
    declaration_source = parse_tool_declaration(tool)
    if declaration_source is None:
        logger.debug("Skipping non-function tool declaration: %r", tool)
        return None

    declaration = declaration_source.to_function_declaration()

    name = declaration.get("name")
    if not isinstance(name, str) or not name:
        logger.warning("Skipping tool declaration without a name")
        return None
    declaration["name"] = normalize_function_name(name)

    params = declaration.get("parameters")
    if isinstance(params, dict):
        # Gemini requires an explicit root type
        if "type" not in params:
            params = {**params, "type": GEMINI_ROOT_SCHEMA_TYPE}
        declaration["parameters"] = to_gemini_schema(params)

    return declaration


def convert_tools_to_gemini_format(tools: Optional[List[Any]]) -> List[Dict[str, Any]]:
    """Convert OpenAI-style tools to Gemini function_declarations format.

    OpenAI format:
        [{"type": "function", "function": {"name": "...", "description": "...", "parameters": {...}}}]

    Gemini format:
        [{"function_declarations": [{"name": "...", "description": "...", "parameters": {...}}]}]

    Args:
        tools: OpenAI-style tool definitions

    Returns:
        A single-entry tool list, or [] when no function declaration survives
    """
    if not tools:
        return []

    function_declarations = []
    for tool in tools:
        declaration = convert_tool_to_function_declaration(tool)
        if declaration is not None:
            function_declarations.append(declaration)

    if not function_declarations:
        return []

    return [{"function_declarations": function_declarations}]
