# chronicle/agents/illustrator.py

import base64
import binascii
import logging
import os
from io import BytesIO
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

from PIL import Image

from chronicle.config import IMAGE_ASPECT_RATIO, IMAGE_MODEL_NAME
from chronicle.exceptions import MissingImageDataError
from chronicle.llm_service import LLMService
from chronicle.models import ImageSize
from chronicle.prompts.illustrator_instructions import SCENE_IMAGE_PROMPT

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/png"


def build_image_prompt(scene: str, style: str) -> str:
    return SCENE_IMAGE_PROMPT.format(style=style, scene=scene)


def first_inline_image(parts: Iterable[Any]) -> Optional[str]:
    """Returns the first inline-data part as a data URI, or None when no part carries image data."""
    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is None or not inline.data:
            continue
        data = inline.data
        b64 = data if isinstance(data, str) else base64.b64encode(data).decode("utf-8")
        mime = inline.mime_type or DEFAULT_IMAGE_MIME
        return f"data:{mime};base64,{b64}"
    return None


async def generate_scene_image(
    llm: LLMService,
    prompt: str,
    style: str,
    size: ImageSize = ImageSize.LOW,
) -> str:
    """
    Renders one 16:9 illustration of the scene and returns it as a data URI.

    Raises:
        MissingImageDataError: the response carried no inline image data.
    """
    full_prompt = build_image_prompt(prompt, style)
    logger.info(f"[Illustrator] Requesting {size.value} image: '{prompt[:100]}'")

    parts = await llm.generate_image_parts(
        prompt=full_prompt,
        aspect_ratio=IMAGE_ASPECT_RATIO,
        image_size=size.value,
        model_name=IMAGE_MODEL_NAME,
    )
    image_url = first_inline_image(parts)
    if image_url is None:
        logger.error(f"[Illustrator] Response had {len(parts)} parts and none carried image data.")
        raise MissingImageDataError(f"No image data returned from {IMAGE_MODEL_NAME}.")
    return image_url


# --- Export helpers for front-ends ---

def decode_data_uri(uri: str) -> Tuple[str, bytes]:
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URI.")
    mime = header[len("data:"):-len(";base64")] or DEFAULT_IMAGE_MIME
    try:
        return mime, base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload in data URI: {e}") from e


def save_scene_image(uri: str, directory: str, stem: str) -> Path:
    """Writes the illustration to `<directory>/<stem>.png` and returns the path."""
    _, image_bytes = decode_data_uri(uri)
    os.makedirs(directory, exist_ok=True)
    image_path = Path(directory) / f"{stem}.png"
    with Image.open(BytesIO(image_bytes)) as pil_image:
        pil_image.save(image_path, format="PNG")
    logger.info(f"[Illustrator] Saved image: {image_path}")
    return image_path


def show_scene_image(uri: str) -> None:
    """Opens the illustration in the platform's default image viewer."""
    _, image_bytes = decode_data_uri(uri)
    with Image.open(BytesIO(image_bytes)) as pil_image:
        pil_image.show()
