"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/image_service.py
Image decoding helpers shared by the perceptual hasher and the SSIM verifier.
Decoding failures are reported as None, never raised.
"""
import os
import logging
from typing import Optional

import numpy as np
from PIL import Image, ImageFile, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

# Allow loading truncated images (common with partially copied JPEG files)
ImageFile.LOAD_TRUNCATED_IMAGES = True


class ImageService:
    """
    Opens images and produces the small fixed-size arrays used by the core.
    """

    IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".gif", ".webp", ".tiff", ".tif", ".ico")

    @staticmethod
    def is_previewable_image(file_path: str) -> bool:
        """Cheap extension check; does not touch the file."""
        ext = os.path.splitext(file_path)[1].lower()
        return ext in ImageService.IMAGE_EXTENSIONS

    @staticmethod
    def load_rgb(file_path: str) -> Optional[Image.Image]:
        """
        Decode an image into an upright RGB copy.
        Returns None for unreadable or corrupt files.
        """
        try:
            with Image.open(file_path) as img:
                img = ImageOps.exif_transpose(img)
                return img.convert("RGB")
        except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as e:
            logger.debug(f"Failed to decode {file_path}: {e}")
            return None

    @staticmethod
    def load_thumbnail(file_path: str, size: int) -> Optional[np.ndarray]:
        """
        Square grayscale thumbnail as a uint8 array of shape (size, size).
        The image is scaled to fit (up or down) keeping its aspect ratio and
        centred on black padding.
        """
        img = ImageService.load_rgb(file_path)
        if img is None:
            return None
        try:
            padded = ImageOps.pad(img, (size, size), method=Image.Resampling.LANCZOS,
                                  color=(0, 0, 0), centering=(0.5, 0.5))
            return np.asarray(padded.convert("L"), dtype=np.uint8)
        except (OSError, ValueError) as e:
            logger.debug(f"Failed to build thumbnail for {file_path}: {e}")
            return None
