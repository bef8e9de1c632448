"""Catpoint Hardware - camera image classifiers"""

from .image_service import (
    ImageService,
    FakeImageService,
    StaticImageService,
)

__all__ = [
    'ImageService',
    'FakeImageService',
    'StaticImageService',
]
