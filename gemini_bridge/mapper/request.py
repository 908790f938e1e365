"""OpenAI chat-completion request → Gemini (Antigravity) request envelope.

Pipeline, applied once per request:

1. index tool call ids to function names
2. convert each message to at most one Gemini content entry, folding the
   system message into ``systemInstruction``
3. convert tool declarations to ``function_declarations``
4. assemble generation config, safety settings and tools, apply model
   family post-processing and wrap everything in the outer envelope

Translation never raises on request content; problems are logged and the
offending piece is dropped or replaced with a default.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from gemini_bridge.mapper.constants import (
    DATA_URL_PREFIX,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    FUNCTION_RESPONSE_ROLES,
    GEMINI_ROLE_MAP,
    HTTP_URL_PREFIX,
    IMAGE_GEN_UNSUPPORTED_CONFIG_KEYS,
    REMOTE_IMAGE_MIME_TYPE,
    REQUEST_ID_PREFIX,
    ROLE_SYSTEM,
    ROLE_USER,
    SAFETY_CATEGORIES,
    SAFETY_THRESHOLD_OFF,
    SYSTEM_NOTE,
    THINKING_MODEL_MARKER,
    THINKING_PLACEHOLDER,
    UNKNOWN_FUNCTION_NAME,
    UNKNOWN_TOOL_CALL_ID,
    USER_AGENT,
    USER_REMINDER,
)
from gemini_bridge.mapper.models import (
    AbsentContent,
    ImageItem,
    MessageContent,
    OpenAIMessage,
    OpenAIRequest,
    PlainText,
    TextItem,
    normalize_responses_input,
)
from gemini_bridge.mapper.request_config import (
    ConfigResolver,
    RequestConfig,
    inject_google_search_tool,
    resolve_request_config,
)
from gemini_bridge.mapper.signatures import SignatureStore, get_signature_store
from gemini_bridge.mapper.tool_utils import (
    build_tool_call_index,
    convert_tools_to_gemini_format,
    normalize_function_name,
)

logger = logging.getLogger(__name__)


@dataclass
class ConversationContext:
    """Identifies the conversation a request belongs to.

    Thought signatures are looked up by ``session_id``; without one no
    signature is attached. ``signature_store`` defaults to the process-wide
    store.
    """

    session_id: Optional[str] = None
    signature_store: Optional[SignatureStore] = None

    def thought_signature(self) -> Optional[str]:
        if not self.session_id:
            return None
        store = self.signature_store
        if store is None:
            store = get_signature_store()
        return store.get(self.session_id)


def map_role(role: str) -> str:
    """Gemini role for a non-system OpenAI role: assistant -> model, everything else -> user."""
    return GEMINI_ROLE_MAP.get(role, ROLE_USER)


# =============================================================================
# MESSAGE CONVERSION
# =============================================================================


def _with_user_reminder(text: str, role: str) -> str:
    if role == ROLE_USER:
        return f"{text}{USER_REMINDER}"
    return text


def convert_image_url_to_part(url: str) -> Optional[Dict[str, Any]]:
    """Convert an OpenAI image URL to an inlineData or fileData part.

    ``data:image/png;base64,QUJD`` -> {"inlineData": {"mimeType": "image/png", "data": "QUJD"}}
    ``https://...`` -> {"fileData": {"fileUri": url, "mimeType": "image/jpeg"}}

    Returns:
        The part, or None for malformed data URLs and unsupported schemes
    """
    if url.startswith(DATA_URL_PREFIX):
        header, sep, data = url[len(DATA_URL_PREFIX) :].partition(",")
        if not sep:
            logger.warning("Skipping malformed image data URL (no payload separator)")
            return None
        mime_type = header.split(";", 1)[0]
        logger.info("Converting inline image: mime=%s, %d bytes of base64", mime_type, len(data))
        return {"inlineData": {"mimeType": mime_type, "data": data}}

    if url.startswith(HTTP_URL_PREFIX):
        logger.info("Converting remote image URL: %s", url)
        return {"fileData": {"fileUri": url, "mimeType": REMOTE_IMAGE_MIME_TYPE}}

    logger.warning("Skipping image with unsupported URL: %.80s", url)
    return None


def convert_content_to_parts(content: MessageContent, role: str) -> List[Dict[str, Any]]:
    """Convert plain message content to Gemini parts.

    Text sent with the ``user`` role gets the tool usage reminder appended.
    Empty text produces no part.
    """
    if isinstance(content, AbsentContent):
        return []

    if isinstance(content, PlainText):
        if not content.text:
            return []
        return [{"text": _with_user_reminder(content.text, role)}]

    parts: List[Dict[str, Any]] = []
    for item in content.items:
        if isinstance(item, TextItem):
            if item.text:
                parts.append({"text": _with_user_reminder(item.text, role)})
        elif isinstance(item, ImageItem):
            part = convert_image_url_to_part(item.url)
            if part is not None:
                parts.append(part)
        else:
            logger.warning("Skipping unknown content item type: %s", item.type)
    return parts


def parse_tool_call_arguments(arguments: Any) -> Any:
    """Parse a tool call's JSON ``arguments`` string; failures yield {}."""
    if arguments is None:
        return {}
    if isinstance(arguments, dict):
        # Some clients send arguments already decoded
        return arguments
    if not isinstance(arguments, str):
        logger.error("Tool call arguments must be a JSON string, got %r", arguments)
        return {}
    try:
        return json.loads(arguments)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse tool call arguments %r: %s", arguments, e)
        return {}


def convert_tool_calls_to_gemini_parts(
    msg: OpenAIMessage,
    mapped_model: str,
    context: ConversationContext,
) -> List[Dict[str, Any]]:
    """Convert a message carrying OpenAI tool_calls to Gemini parts.

    OpenAI format:
        {"content": "...", "tool_calls": [{"id": "...", "function": {"name": "...", "arguments": "..."}}]}

    Gemini format:
        [{"text": "..."}, {"functionCall": {"name": "...", "args": {...}}, "thoughtSignature": "..."}]

    The message text (or, for Gemini 3 models, a thinking placeholder) leads
    the first call. Only the first functionCall carries the conversation's
    thoughtSignature; it sits beside functionCall at part level.
    """
    parts: List[Dict[str, Any]] = []
    text = msg.typed_content.as_text()
    signature = context.thought_signature()
    signature_pending = True

    for index, call in enumerate(msg.tool_calls or []):
        if index == 0:
            if text:
                parts.append({"text": text})
            elif THINKING_MODEL_MARKER in mapped_model:
                parts.append({"text": THINKING_PLACEHOLDER})

        func = call.get("function") if isinstance(call, dict) else None
        if not isinstance(func, dict):
            logger.warning("Skipping tool call without a function object: %r", call)
            continue

        raw_name = func.get("name")
        if not isinstance(raw_name, str):
            raw_name = UNKNOWN_FUNCTION_NAME
        name = normalize_function_name(raw_name)
        args = parse_tool_call_arguments(func.get("arguments"))
        logger.debug("Function %s args: %r", name, args)

        part: Dict[str, Any] = {"functionCall": {"name": name, "args": args}}
        if signature_pending:
            signature_pending = False
            if signature:
                part["thoughtSignature"] = signature
                logger.info("Attached thoughtSignature (%d chars) to %s", len(signature), name)
            else:
                logger.warning(
                    "No thoughtSignature stored for session %s; Gemini 3 models may reject %s",
                    context.session_id,
                    name,
                )
        parts.append(part)

    return parts


def convert_tool_message_to_gemini_part(
    msg: OpenAIMessage, tool_index: Dict[str, str]
) -> Dict[str, Any]:
    """Convert an OpenAI tool result message to a Gemini functionResponse part.

    OpenAI format:
        {"role": "tool", "tool_call_id": "...", "name": "...", "content": "..."}

    Gemini format:
        {"functionResponse": {"name": "...", "id": "...", "response": {"content": "..."}}}

    The name comes from the originating tool call when the id is known,
    otherwise from the message itself.
    """
    name = None
    if msg.tool_call_id is not None:
        name = tool_index.get(msg.tool_call_id)
    if name is None:
        name = normalize_function_name(msg.name or UNKNOWN_FUNCTION_NAME)

    logger.debug(
        "Mapping function response: id=%s, name=%s, resolved=%s",
        msg.tool_call_id,
        msg.name,
        name,
    )

    return {
        "functionResponse": {
            "name": name,
            "id": msg.tool_call_id if msg.tool_call_id is not None else UNKNOWN_TOOL_CALL_ID,
            "response": {"content": msg.typed_content.as_text()},
        }
    }


def build_system_instruction(msg: OpenAIMessage) -> Dict[str, Any]:
    return {"parts": [{"text": f"{msg.typed_content.as_text()}{SYSTEM_NOTE}"}]}


def convert_message(
    msg: OpenAIMessage,
    mapped_model: str,
    tool_index: Dict[str, str],
    context: ConversationContext,
) -> Optional[Dict[str, Any]]:
    """Convert one non-system message to a Gemini content entry.

    An empty ``tool_calls`` list counts as no tool calls, so the message is
    converted from its content.

    Returns:
        {"role": ..., "parts": [...]}, or None when the message yields no parts
    """
    role = map_role(msg.role)

    if msg.tool_calls:
        parts = convert_tool_calls_to_gemini_parts(msg, mapped_model, context)
    elif msg.role in FUNCTION_RESPONSE_ROLES:
        parts = [convert_tool_message_to_gemini_part(msg, tool_index)]
    else:
        parts = convert_content_to_parts(msg.typed_content, role)

    if not parts:
        return None
    return {"role": role, "parts": parts}


def convert_messages(
    messages: List[OpenAIMessage],
    mapped_model: str,
    tool_index: Dict[str, str],
    context: ConversationContext,
) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
    """Convert the message list, preserving order.

    Returns:
        (contents, systemInstruction or None)
    """
    contents: List[Dict[str, Any]] = []
    system_instruction = None

    for msg in messages:
        if msg.role == ROLE_SYSTEM:
            if system_instruction is None:
                system_instruction = build_system_instruction(msg)
            else:
                logger.warning("Ignoring additional system message; only the first is used")
            continue

        content = convert_message(msg, mapped_model, tool_index, context)
        if content is not None:
            contents.append(content)

    return contents, system_instruction


# =============================================================================
# ENVELOPE ASSEMBLY
# =============================================================================


def build_generation_config(request: OpenAIRequest) -> Dict[str, Any]:
    return {
        "maxOutputTokens": (
            request.max_tokens if request.max_tokens is not None else DEFAULT_MAX_OUTPUT_TOKENS
        ),
        "temperature": (
            request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE
        ),
        "topP": request.top_p if request.top_p is not None else DEFAULT_TOP_P,
    }


def build_safety_settings() -> List[Dict[str, str]]:
    return [
        {"category": category, "threshold": SAFETY_THRESHOLD_OFF}
        for category in SAFETY_CATEGORIES
    ]


def apply_image_generation_config(request: Dict[str, Any], image_config: Dict[str, Any]) -> None:
    """Strip what image generation models reject and set imageConfig, in place."""
    request.pop("tools", None)
    request.pop("systemInstruction", None)

    generation_config = request.setdefault("generationConfig", {})
    for key in IMAGE_GEN_UNSUPPORTED_CONFIG_KEYS:
        generation_config.pop(key, None)
    generation_config["imageConfig"] = image_config


def build_envelope(
    request_body: Dict[str, Any],
    project_id: str,
    config: RequestConfig,
    user_agent: str = USER_AGENT,
) -> Dict[str, Any]:
    """Wrap a Gemini request body with the Antigravity routing metadata."""
    return {
        "project": project_id,
        "requestId": f"{REQUEST_ID_PREFIX}{uuid.uuid4()}",
        "request": request_body,
        "model": config.final_model,
        "userAgent": user_agent,
        "requestType": config.request_type,
    }


def transform_openai_request(
    request: Union[OpenAIRequest, Dict[str, Any]],
    project_id: str,
    mapped_model: str,
    session_id: Optional[str] = None,
    signature_store: Optional[SignatureStore] = None,
    config_resolver: ConfigResolver = resolve_request_config,
    user_agent: str = USER_AGENT,
) -> Dict[str, Any]:
    """Translate an OpenAI chat-completion request into a Gemini request envelope.

    Args:
        request: OpenAI request payload (dict or parsed model)
        project_id: Backend project id
        mapped_model: Backend model the client's alias was mapped to
        session_id: Conversation id used to look up the thought signature
        signature_store: Store to read signatures from (defaults to the process-wide one)
        config_resolver: Resolves final model, request type, search and image settings
        user_agent: Value for the envelope's userAgent field

    Returns:
        The envelope: {project, requestId, request, model, userAgent, requestType}
    """
    openai_request = normalize_responses_input(OpenAIRequest.from_payload(request))
    config = config_resolver(openai_request.model, mapped_model)
    logger.info(
        "OpenAI request: original=%s, mapped=%s, type=%s, has_image_config=%s",
        openai_request.model,
        mapped_model,
        config.request_type,
        config.image_config is not None,
    )

    context = ConversationContext(session_id=session_id, signature_store=signature_store)
    tool_index = build_tool_call_index(openai_request.messages)
    contents, system_instruction = convert_messages(
        openai_request.messages, mapped_model, tool_index, context
    )

    request_body: Dict[str, Any] = {
        "contents": contents,
        "generationConfig": build_generation_config(openai_request),
        "safetySettings": build_safety_settings(),
    }
    if system_instruction is not None:
        request_body["systemInstruction"] = system_instruction

    tools = convert_tools_to_gemini_format(openai_request.tools)
    if tools:
        request_body["tools"] = tools

    if config.inject_google_search:
        inject_google_search_tool(request_body)

    if config.image_config is not None:
        apply_image_generation_config(request_body, config.image_config)

    envelope = build_envelope(request_body, project_id, config, user_agent=user_agent)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Gemini request envelope: %s", json.dumps(envelope, ensure_ascii=False))
    return envelope
