# app/infrastructure/images/loader.py
import asyncio
import base64
import io
import logging
import os
from typing import Optional, Tuple

import aiofiles
import aiohttp
from PIL import Image, UnidentifiedImageError

from app.config.settings import settings
from app.domain.errors import InvalidSource

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] [IMAGES] %(message)s', '%Y-%m-%d %H:%M:%S')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False


def read_image_size(data: bytes) -> Tuple[int, int]:
    """Native pixel size from the image header; pixels are not decoded."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise InvalidSource(f"Unreadable image data: {type(e).__name__}") from e


class ImageLoader:
    """Resolves image sources (http(s) URL, local path, data URL or bare base64)."""

    def __init__(self, timeout: int = settings.REQUEST_TIMEOUT):
        self.timeout = timeout

    async def load_bytes(self, src: str) -> Optional[bytes]:
        try:
            if src.startswith(("http://", "https://")):
                async with aiohttp.ClientSession() as session:
                    async with session.get(src, timeout=aiohttp.ClientTimeout(total=self.timeout)) as response:
                        response.raise_for_status()
                        return await response.read()
            if os.path.isfile(src):
                async with aiofiles.open(src, "rb") as f:
                    return await f.read()
            if src.startswith("data:image"):
                _, encoded = src.split(",", 1)
                return base64.b64decode(encoded + "===")
            return base64.b64decode(src + "===")
        except Exception as e:
            logger.warning(f"Failed to load image from source '{src[:70]}...': {type(e).__name__}")
            return None

    async def resolve_size(self, src: str) -> Tuple[int, int]:
        data = await self.load_bytes(src)
        if not data:
            raise InvalidSource(f"No image data behind source '{src[:70]}'")
        loop = asyncio.get_running_loop()
        width, height = await loop.run_in_executor(None, read_image_size, data)
        if width <= 0 or height <= 0:
            raise InvalidSource(f"Image at '{src[:70]}' reports size {width}x{height}")
        return width, height
