"""OpenAI → Gemini request mapping.

- request: message conversion and envelope assembly (entry point)
- tool_utils: tool call index, function name aliases, tool schema translation
- request_config: backend model / request type resolution, search injection
- signatures: per-conversation thought signature store
- models: lenient pydantic request models and tagged content types
"""

from gemini_bridge.mapper.request import ConversationContext, transform_openai_request
from gemini_bridge.mapper.request_config import (
    RequestConfig,
    inject_google_search_tool,
    resolve_request_config,
)
from gemini_bridge.mapper.signatures import (
    SignatureStore,
    get_signature_store,
    reset_signature_store,
)
from gemini_bridge.mapper.tool_utils import (
    build_tool_call_index,
    convert_tools_to_gemini_format,
    normalize_function_name,
    to_gemini_schema,
)

__all__ = [
    "ConversationContext",
    "RequestConfig",
    "SignatureStore",
    "build_tool_call_index",
    "convert_tools_to_gemini_format",
    "get_signature_store",
    "inject_google_search_tool",
    "normalize_function_name",
    "reset_signature_store",
    "resolve_request_config",
    "to_gemini_schema",
    "transform_openai_request",
]
