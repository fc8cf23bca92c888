"""Media import."""

from .thumbnails import ThumbnailImporter, image_extension, slugify

__all__ = ["ThumbnailImporter", "image_extension", "slugify"]
