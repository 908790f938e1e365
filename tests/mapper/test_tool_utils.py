"""Unit tests for tool_utils.py."""

import copy

from gemini_bridge.mapper.models import OpenAIMessage
from gemini_bridge.mapper.tool_utils import (
    build_tool_call_index,
    convert_tool_to_function_declaration,
    convert_tools_to_gemini_format,
    normalize_function_name,
    to_gemini_schema,
)


class TestNormalizeFunctionName:
    """Tests for normalize_function_name."""

    def test_local_shell_call_maps_to_shell(self):
        assert normalize_function_name("local_shell_call") == "shell"

    def test_other_names_pass_through(self):
        assert normalize_function_name("read_file") == "read_file"
        assert normalize_function_name("shell") == "shell"


class TestToGeminiSchema:
    """Tests for to_gemini_schema."""

    def test_drops_non_whitelisted_keys(self):
        """Should keep only whitelisted keys and uppercase the type."""
        schema = {"type": "integer", "default": 5, "additionalProperties": False}
        assert to_gemini_schema(schema) == {"type": "INTEGER"}

    def test_keeps_whitelisted_keys(self):
        schema = {
            "type": "string",
            "description": "Color",
            "enum": ["red", "green"],
            "format": "enum",
            "nullable": True,
            "title": "Color",
            "$schema": "http://json-schema.org/draft-07/schema#",
        }
        assert to_gemini_schema(schema) == {
            "type": "STRING",
            "description": "Color",
            "enum": ["red", "green"],
            "format": "enum",
            "nullable": True,
        }

    def test_recurses_into_properties_and_items(self):
        """Should clean every property schema and array items."""
        schema = {
            "type": "object",
            "properties": {
                "paths": {
                    "type": "array",
                    "items": {"type": "string", "minLength": 1},
                    "maxItems": 10,
                },
                "options": {
                    "type": "object",
                    "properties": {"force": {"type": "boolean", "default": False}},
                    "additionalProperties": False,
                },
            },
            "required": ["paths"],
        }
        assert to_gemini_schema(schema) == {
            "type": "OBJECT",
            "properties": {
                "paths": {"type": "ARRAY", "items": {"type": "STRING"}},
                "options": {"type": "OBJECT", "properties": {"force": {"type": "BOOLEAN"}}},
            },
            "required": ["paths"],
        }

    def test_non_object_values_pass_through(self):
        assert to_gemini_schema(True) is True
        assert to_gemini_schema("string") == "string"
        assert to_gemini_schema(None) is None

    def test_non_string_type_kept_as_is(self):
        """Union types like ["string", "null"] are not uppercased."""
        assert to_gemini_schema({"type": ["string", "null"]}) == {"type": ["string", "null"]}

    def test_non_object_property_values_kept(self):
        schema = {"type": "object", "properties": {"anything": True}}
        assert to_gemini_schema(schema) == {"type": "OBJECT", "properties": {"anything": True}}

    def test_input_not_mutated(self):
        schema = {"type": "object", "properties": {"a": {"type": "string", "title": "A"}}}
        original = copy.deepcopy(schema)
        to_gemini_schema(schema)
        assert schema == original


class TestConvertToolDeclarations:
    """Tests for converting OpenAI tools to Gemini function_declarations."""

    def test_wrapped_tool(self):
        """Should convert the standard OpenAI tool shape."""
        tools = [
            {
                "type": "function",
                "function": {
                    "name": "get_weather",
                    "description": "Get the weather",
                    "parameters": {
                        "type": "object",
                        "properties": {"city": {"type": "string", "title": "City"}},
                        "required": ["city"],
                        "additionalProperties": False,
                    },
                },
            }
        ]
        assert convert_tools_to_gemini_format(tools) == [
            {
                "function_declarations": [
                    {
                        "name": "get_weather",
                        "description": "Get the weather",
                        "parameters": {
                            "type": "OBJECT",
                            "properties": {"city": {"type": "STRING"}},
                            "required": ["city"],
                        },
                    }
                ]
            }
        ]

    def test_flat_tool_strips_top_level_keys(self):
        """Flat tools lose type/strict/additionalProperties and get aliased."""
        declaration = convert_tool_to_function_declaration(
            {
                "type": "function",
                "name": "local_shell_call",
                "description": "Run a command",
                "strict": True,
                "additionalProperties": False,
                "parameters": {
                    "type": "object",
                    "properties": {"command": {"type": "array", "items": {"type": "string"}}},
                },
            }
        )
        assert declaration == {
            "name": "shell",
            "description": "Run a command",
            "parameters": {
                "type": "OBJECT",
                "properties": {"command": {"type": "ARRAY", "items": {"type": "STRING"}}},
            },
        }

    def test_flat_tool_without_type(self):
        declaration = convert_tool_to_function_declaration({"name": "ls"})
        assert declaration == {"name": "ls"}

    def test_wrapped_tool_is_aliased(self):
        declaration = convert_tool_to_function_declaration(
            {"type": "function", "function": {"name": "local_shell_call"}}
        )
        assert declaration["name"] == "shell"

    def test_root_type_added_when_missing(self):
        """Parameters without a root type get OBJECT."""
        declaration = convert_tool_to_function_declaration(
            {"type": "function", "function": {"name": "ls", "parameters": {"properties": {}}}}
        )
        assert declaration["parameters"] == {"type": "OBJECT", "properties": {}}

    def test_non_function_tools_skipped(self):
        tools = [{"type": "web_search"}, {"type": "local_shell"}, "garbage", None]
        assert convert_tools_to_gemini_format(tools) == []

    def test_nameless_tools_skipped(self):
        tools = [
            {"type": "function", "function": {"description": "no name"}},
            {"type": "function", "function": {"name": ""}},
            {"type": "function", "function": {"name": "ok"}},
        ]
        result = convert_tools_to_gemini_format(tools)
        assert result == [{"function_declarations": [{"name": "ok"}]}]

    def test_empty_tools(self):
        assert convert_tools_to_gemini_format(None) == []
        assert convert_tools_to_gemini_format([]) == []

    def test_tools_not_mutated(self):
        tools = [
            {
                "type": "function",
                "name": "local_shell_call",
                "strict": True,
                "parameters": {"properties": {"cmd": {"type": "string", "default": "ls"}}},
            }
        ]
        original = copy.deepcopy(tools)
        convert_tools_to_gemini_format(tools)
        assert tools == original


class TestBuildToolCallIndex:
    """Tests for build_tool_call_index."""

    def _messages(self, *raw):
        return [OpenAIMessage.model_validate(msg) for msg in raw]

    def test_indexes_calls_across_messages(self):
        messages = self._messages(
            {
                "role": "assistant",
                "tool_calls": [
                    {"id": "c1", "function": {"name": "read_file"}},
                    {"id": "c2", "function": {"name": "local_shell_call"}},
                ],
            },
            {"role": "tool", "tool_call_id": "c1", "content": "x"},
            {"role": "assistant", "tool_calls": [{"id": "c3", "function": {"name": "ls"}}]},
        )
        assert build_tool_call_index(messages) == {"c1": "read_file", "c2": "shell", "c3": "ls"}

    def test_skips_malformed_entries(self):
        messages = self._messages(
            {
                "role": "assistant",
                "tool_calls": [
                    "garbage",
                    {"function": {"name": "no_id"}},
                    {"id": 7, "function": {"name": "int_id"}},
                    {"id": "c1"},
                    {"id": "c2", "function": {"name": 42}},
                    {"id": "c3", "function": {"name": "ok"}},
                ],
            }
        )
        assert build_tool_call_index(messages) == {"c3": "ok"}

    def test_no_tool_calls(self):
        messages = self._messages({"role": "user", "content": "hi"})
        assert build_tool_call_index(messages) == {}
