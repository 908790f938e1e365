"""Per-request backend configuration.

Decides, from the client's model alias and the backend model it was mapped
to, which backend model and request type to use, whether Google Search
grounding is injected, and the image settings for image generation models.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from gemini_bridge.mapper.constants import (
    DEFAULT_IMAGE_ASPECT_RATIO,
    IMAGE_ASPECT_RATIO_SUFFIXES,
    IMAGE_GEN_MODEL,
    IMAGE_SIZE_2K_SUFFIXES,
    IMAGE_SIZE_4K_SUFFIXES,
    ONLINE_MODEL_SUFFIX,
    REQUEST_TYPE_AGENT,
    REQUEST_TYPE_IMAGE_GEN,
    REQUEST_TYPE_WEB_SEARCH,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestConfig:
    final_model: str
    request_type: str
    inject_google_search: bool = False
    image_config: Optional[Dict[str, Any]] = None


ConfigResolver = Callable[[str, str], RequestConfig]


def parse_image_config(model_alias: str) -> Tuple[Dict[str, Any], str]:
    """Derive imageConfig from suffixes on the client's model alias.

    ``gemini-3-pro-image-16x9-4k`` -> ({"aspectRatio": "16:9", "imageSize": "4K"},
    "gemini-3-pro-image")
    """
    lower = model_alias.lower()

    aspect_ratio = DEFAULT_IMAGE_ASPECT_RATIO
    for suffixes, ratio in IMAGE_ASPECT_RATIO_SUFFIXES:
        if any(suffix in lower for suffix in suffixes):
            aspect_ratio = ratio
            break

    image_config: Dict[str, Any] = {"aspectRatio": aspect_ratio}
    if any(suffix in lower for suffix in IMAGE_SIZE_4K_SUFFIXES):
        image_config["imageSize"] = "4K"
    elif any(suffix in lower for suffix in IMAGE_SIZE_2K_SUFFIXES):
        image_config["imageSize"] = "2K"

    return image_config, IMAGE_GEN_MODEL


def resolve_request_config(original_model: str, mapped_model: str) -> RequestConfig:
    """Resolve the backend model and request features for one request.

    - ``gemini-3-pro-image*`` backends: image generation, settings parsed
      from the original alias
    - aliases ending in ``-online``: web search grounding
    - everything else: a plain agent request
    """
    if mapped_model.startswith(IMAGE_GEN_MODEL):
        image_config, final_model = parse_image_config(original_model)
        return RequestConfig(
            final_model=final_model,
            request_type=REQUEST_TYPE_IMAGE_GEN,
            image_config=image_config,
        )

    if original_model.endswith(ONLINE_MODEL_SUFFIX):
        final_model = mapped_model
        if final_model.endswith(ONLINE_MODEL_SUFFIX):
            final_model = final_model[: -len(ONLINE_MODEL_SUFFIX)]
        return RequestConfig(
            final_model=final_model,
            request_type=REQUEST_TYPE_WEB_SEARCH,
            inject_google_search=True,
        )

    return RequestConfig(final_model=mapped_model, request_type=REQUEST_TYPE_AGENT)


def inject_google_search_tool(request: Dict[str, Any]) -> None:
    """Append the googleSearch grounding tool to a Gemini request body in place.

    Existing tools, function declarations included, are kept; an existing
    googleSearch entry is not duplicated.
    """
    tools = request.get("tools")
    if not isinstance(tools, list):
        tools = []

    if any(isinstance(tool, dict) and "googleSearch" in tool for tool in tools):
        logger.debug("googleSearch tool already present")
        request["tools"] = tools
        return

    request["tools"] = [*tools, {"googleSearch": {}}]
