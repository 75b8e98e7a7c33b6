"""
Domain models for resume object storage.

Everything here is pure: no boto3, no FastAPI, no Pillow. Object paths,
content metadata and the error taxonomy can be reasoned about (and tested)
without a bucket anywhere in sight.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import quote, unquote


class UploadType(Enum):
    """
    The kinds of objects the resume application stores.

    The value doubles as the path segment, so renaming a member
    orphans every object already stored under it.
    """
    PICTURES = "pictures"  # profile pictures
    PREVIEWS = "previews"  # rendered resume thumbnails
    RESUMES = "resumes"    # exported PDF documents

    @property
    def extension(self) -> str:
        return "pdf" if self is UploadType.RESUMES else "jpg"

    @property
    def content_type(self) -> str:
        return "application/pdf" if self is UploadType.RESUMES else "image/jpeg"

    @property
    def is_image(self) -> bool:
        return self is not UploadType.RESUMES

    @classmethod
    def parse(cls, value: "UploadType | str") -> "UploadType":
        """Coerce a path segment into an UploadType, rejecting unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise StorageError(
                f"Unknown upload category '{value}'. Expected one of: {allowed}",
                kind=StorageErrorKind.INVALID_REQUEST,
            )


class StorageErrorKind(Enum):
    """
    Why a storage operation failed.

    Callers branch on the kind instead of parsing messages; the HTTP
    layer maps each kind onto a status code.
    """
    NOT_FOUND = "not_found"
    POLICY_DENIED = "policy_denied"
    NETWORK = "network"
    QUOTA = "quota"
    INVALID_REQUEST = "invalid_request"
    INVALID_CONTENT = "invalid_content"
    UNKNOWN = "unknown"


class StorageError(Exception):
    """Raised when storage operations fail."""

    def __init__(
        self,
        message: str,
        kind: StorageErrorKind = StorageErrorKind.UNKNOWN,
        path: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.path = path


def encode_name(name: str) -> str:
    """
    Percent-encode an object name for use as a single path segment.

    Nothing is left unescaped except unreserved characters, so a name
    containing '/' can never escape its category folder.
    """
    return quote(name, safe="")


def decode_name(encoded: str) -> str:
    return unquote(encoded)


@dataclass(frozen=True)
class ObjectPath:
    """
    Location of a stored object: {owner_id}/{category}/{encoded_name}.{ext}

    Frozen because a path is a value. The same (owner, category, name)
    triple always yields the same key.
    """
    owner_id: str
    category: UploadType
    name: str

    def __post_init__(self) -> None:
        if not self.owner_id:
            raise StorageError(
                "Owner id cannot be empty", kind=StorageErrorKind.INVALID_REQUEST
            )
        if not self.name:
            raise StorageError(
                "Object name cannot be empty", kind=StorageErrorKind.INVALID_REQUEST
            )

    @property
    def filename(self) -> str:
        return f"{encode_name(self.name)}.{self.category.extension}"

    @property
    def key(self) -> str:
        return f"{self.owner_id}/{self.category.value}/{self.filename}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class ObjectMetadata:
    """Headers persisted alongside the object bytes."""
    content_type: str
    content_disposition: Optional[str] = None

    @classmethod
    def for_path(cls, path: ObjectPath) -> "ObjectMetadata":
        """
        Documents download with their original name (RFC 5987 notation);
        images are served inline.
        """
        if path.category.is_image:
            return cls(content_type=path.category.content_type)
        return cls(
            content_type=path.category.content_type,
            content_disposition=f"attachment; filename*=UTF-8''{path.filename}",
        )


def build_public_url(base_url: str, path: ObjectPath) -> str:
    """Join the configured public base URL and an object key."""
    return f"{base_url.rstrip('/')}/{path.key}"
