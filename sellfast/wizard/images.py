from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

MAX_IMAGE_BYTES = 1 * 1024 * 1024
MAX_IMAGES = 10


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    data: bytes
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> ImageUpload:
        p = Path(path)
        return cls(filename=p.name, data=p.read_bytes(), content_type=mimetypes.guess_type(p.name)[0])

    @property
    def mime(self) -> str:
        return self.content_type or mimetypes.guess_type(self.filename)[0] or "application/octet-stream"

    def to_data_uri(self) -> str:
        return f"data:{self.mime};base64,{base64.b64encode(self.data).decode('ascii')}"


@dataclass
class ImageUploadResult:
    images: list[str]
    added: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def error(self) -> str | None:
        return "; ".join(self.errors) if self.errors else None


def add_images(
    existing: Sequence[str],
    uploads: Sequence[ImageUpload],
    *,
    max_bytes: int = MAX_IMAGE_BYTES,
    max_images: int = MAX_IMAGES,
) -> ImageUploadResult:
    """
    Append valid uploads as data URIs, in upload order.

    Oversized or non-image files are skipped with a message naming them. If
    the valid ones would not fit under `max_images`, none are added.
    """
    limit_mb = max_bytes / (1024 * 1024)
    errors: list[str] = []
    valid: list[ImageUpload] = []
    for upload in uploads:
        if len(upload.data) > max_bytes:
            errors.append(f"{upload.filename} exceeds {limit_mb:g}MB limit. Please compress it.")
            continue
        if not upload.mime.startswith("image/"):
            errors.append(f"{upload.filename} is not an image file.")
            continue
        valid.append(upload)

    if not valid:
        return ImageUploadResult(images=list(existing), errors=errors)

    if len(existing) + len(valid) > max_images:
        errors.append(f"You can only upload up to {max_images} images. You already have {len(existing)} image(s).")
        return ImageUploadResult(images=list(existing), errors=errors)

    images = list(existing) + [u.to_data_uri() for u in valid]
    return ImageUploadResult(images=images, added=len(valid), errors=errors)


def remove_image(images: Sequence[str], index: int) -> list[str]:
    return [img for i, img in enumerate(images) if i != index]
