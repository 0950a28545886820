"""Image decoding services used by the detection core."""

from .image_service import ImageService

__all__ = ["ImageService"]
