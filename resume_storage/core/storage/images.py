"""
Image normalization for pictures and previews.

Uploaded images arrive in whatever format and size the browser produced.
Before they are stored they are bounded to a 600x600 box and re-encoded
as JPEG so every stored image has the same format as its key suggests.
"""

import io
import logging

from PIL import Image

from .models import StorageError, StorageErrorKind

logger = logging.getLogger(__name__)

MAX_DIMENSION = 600
JPEG_QUALITY = 80


def normalize_image(
    data: bytes,
    max_dimension: int = MAX_DIMENSION,
    quality: int = JPEG_QUALITY,
) -> bytes:
    """
    Shrink an image to fit within max_dimension x max_dimension and
    re-encode it as JPEG.

    Aspect ratio is preserved and images already inside the box keep
    their size. Raises StorageError(INVALID_CONTENT) when the bytes
    are not a decodable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            original_size = image.size

            # JPEG has no alpha channel or palette
            if image.mode != "RGB":
                image = image.convert("RGB")

            image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

            output = io.BytesIO()
            image.save(output, format="JPEG", quality=quality)
    except (OSError, Image.DecompressionBombError) as e:
        raise StorageError(
            f"Could not process image: {e}",
            kind=StorageErrorKind.INVALID_CONTENT,
        ) from e

    logger.debug(
        "Normalized image",
        extra={
            "original_size": f"{original_size[0]}x{original_size[1]}",
            "size": f"{image.size[0]}x{image.size[1]}",
            "size_bytes": output.tell(),
        }
    )

    return output.getvalue()
