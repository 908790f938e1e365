"""Constants for the OpenAI → Gemini request mapper.

Contains the fixed prompt notes, generation defaults, safety settings,
schema whitelist and envelope metadata shared by the mapper modules.
"""

from typing import Dict, List

# ============================================================================
# Envelope metadata
# ============================================================================

USER_AGENT = "antigravity-openai"
REQUEST_ID_PREFIX = "openai-"
DEFAULT_PROJECT_ID = "bamboo-precept-lgxtn"

# ============================================================================
# Role mapping
# ============================================================================

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_MODEL = "model"

# OpenAI role -> Gemini role; anything not listed maps to "user"
GEMINI_ROLE_MAP: Dict[str, str] = {
    "assistant": ROLE_MODEL,
    "tool": ROLE_USER,
    "function": ROLE_USER,
}

FUNCTION_RESPONSE_ROLES = ("tool", "function")

# ============================================================================
# Function name aliases
# ============================================================================

# Codex clients call their shell tool "local_shell_call"; the backend only knows "shell"
FUNCTION_NAME_ALIASES: Dict[str, str] = {
    "local_shell_call": "shell",
}

UNKNOWN_FUNCTION_NAME = "unknown"
UNKNOWN_TOOL_CALL_ID = "unknown"

# ============================================================================
# Prompt notes
# ============================================================================

# Appended to the system instruction
SYSTEM_NOTE = (
    "\n\n[SYSTEM NOTE: You are a coding agent. You MUST use the provided 'shell' tool to "
    "perform ANY filesystem operations (reading, writing, creating files). Do not output "
    "JSON code blocks for tool execution; invoke the functions directly. To create a file, "
    "use the 'shell' tool with 'New-Item' or 'Set-Content' (Powershell). NEVER "
    "simulate/hallucinate actions in text without calling the tool first.]"
)

# Appended to every user-role text part
USER_REMINDER = (
    "\n\n(SYSTEM REMINDER: You MUST use the 'shell' tool to perform this action. "
    "Do not simply state it is done.)"
)

# Gemini 3 expects a text part before the first functionCall of a model turn
THINKING_PLACEHOLDER = "Thinking Process: Determining necessary tool actions."
THINKING_MODEL_MARKER = "gemini-3"

# ============================================================================
# Generation defaults
# ============================================================================

DEFAULT_MAX_OUTPUT_TOKENS = 8192
DEFAULT_TEMPERATURE = 1.0
DEFAULT_TOP_P = 1.0

# Removed from generationConfig for image generation models
IMAGE_GEN_UNSUPPORTED_CONFIG_KEYS = ("thinkingConfig", "responseMimeType", "responseModalities")

SAFETY_CATEGORIES = [
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
]
SAFETY_THRESHOLD_OFF = "OFF"

# ============================================================================
# Multimodal content
# ============================================================================

DATA_URL_PREFIX = "data:"
HTTP_URL_PREFIX = "http"
# Remote image URLs are not sniffed
REMOTE_IMAGE_MIME_TYPE = "image/jpeg"

# ============================================================================
# Tool schema translation
# ============================================================================

# Schema keys the Gemini function declaration format accepts; everything else is dropped
GEMINI_SCHEMA_WHITELIST: List[str] = [
    "type",
    "description",
    "properties",
    "required",
    "items",
    "enum",
    "format",
    "nullable",
]

# Stripped from flat (Codex-style) tool declarations
FLAT_TOOL_STRIPPED_KEYS = ("type", "strict", "additionalProperties")

GEMINI_ROOT_SCHEMA_TYPE = "OBJECT"

# ============================================================================
# Request config resolution
# ============================================================================

REQUEST_TYPE_AGENT = "agent"
REQUEST_TYPE_WEB_SEARCH = "web_search"
REQUEST_TYPE_IMAGE_GEN = "image_gen"

IMAGE_GEN_MODEL = "gemini-3-pro-image"
ONLINE_MODEL_SUFFIX = "-online"

# Checked in order; the first matching suffix wins
IMAGE_ASPECT_RATIO_SUFFIXES = [
    (("-21x9", "-21-9"), "21:9"),
    (("-16x9", "-16-9"), "16:9"),
    (("-9x16", "-9-16"), "9:16"),
    (("-4x3", "-4-3"), "4:3"),
    (("-3x4", "-3-4"), "3:4"),
    (("-1x1", "-1-1"), "1:1"),
]
DEFAULT_IMAGE_ASPECT_RATIO = "1:1"
IMAGE_SIZE_4K_SUFFIXES = ("-4k", "-hd")
IMAGE_SIZE_2K_SUFFIXES = ("-2k",)

# ============================================================================
# Thought signature cache
# ============================================================================

SIGNATURE_CACHE_TTL_SECONDS = 2 * 60 * 60  # 2 hours
SIGNATURE_CACHE_MAX_ENTRIES = 1000
