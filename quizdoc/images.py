"""
Embedded Image Handling.

The pipeline does not upload anything. It hands back ExtractedImage values
(bytes, sniffed content type, suggested object key); an ImageUploader
collaborator stores them and returns public URLs, which
`attach_image_urls` writes onto new question values.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Protocol

from loguru import logger

from .models import ExtractedImage, ImageHandle, ParsedQuestion

# Signature prefix -> (content type, extension)
_SIGNATURES: tuple[tuple[bytes, str, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png", "png"),
    (b"\xff\xd8\xff", "image/jpeg", "jpg"),
    (b"GIF87a", "image/gif", "gif"),
    (b"GIF89a", "image/gif", "gif"),
    (b"BM", "image/bmp", "bmp"),
)

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "application/octet-stream": "bin",
}


def sniff_content_type(data: bytes) -> str:
    """Content type from the file signature; octet-stream when unknown."""
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    for signature, content_type, _ in _SIGNATURES:
        if data.startswith(signature):
            return content_type
    return "application/octet-stream"


def suggested_key(data: bytes, content_type: str, prefix: str = "quiz-images") -> str:
    """Content-addressed object key: `<prefix>/<sha256>.<ext>`."""
    digest = hashlib.sha256(data).hexdigest()
    extension = _EXTENSIONS.get(content_type, "bin")
    prefix = prefix.strip("/")
    return f"{prefix}/{digest}.{extension}" if prefix else f"{digest}.{extension}"


def collect_images(
    questions: Iterable[ParsedQuestion],
    handles: Mapping[str, ImageHandle],
    prefix: str = "quiz-images",
) -> list[ExtractedImage]:
    """
    ExtractedImage values for every image the questions reference.

    Each reference is emitted once, in question order. References whose
    handle carries no bytes are skipped.
    """
    images: list[ExtractedImage] = []
    seen: set[str] = set()
    for question in questions:
        refs = [question.image_ref] + [option.image_ref for option in question.options]
        for ref in refs:
            if ref is None or ref in seen:
                continue
            seen.add(ref)
            handle = handles.get(ref)
            if handle is None or not handle.data:
                logger.debug(f"Image {ref} has no data, skipping")
                continue
            content_type = sniff_content_type(handle.data)
            images.append(
                ExtractedImage(
                    ref_id=ref,
                    data=handle.data,
                    content_type=content_type,
                    suggested_key=suggested_key(handle.data, content_type, prefix),
                )
            )
    return images


class ImageUploader(Protocol):
    """Object storage collaborator: store bytes, return a public URL."""

    async def upload(self, image: ExtractedImage) -> str:
        ...


async def upload_images(
    images: Iterable[ExtractedImage],
    uploader: ImageUploader,
) -> dict[str, str]:
    """Upload images one after another; returns ref_id -> URL."""
    urls: dict[str, str] = {}
    for image in images:
        urls[image.ref_id] = await uploader.upload(image)
        logger.debug(f"Uploaded {image.ref_id} -> {urls[image.ref_id]}")
    return urls


def attach_image_urls(
    questions: Iterable[ParsedQuestion],
    urls: Mapping[str, str],
) -> list[ParsedQuestion]:
    """New questions with `image_url` filled in from `urls`."""
    attached = []
    for question in questions:
        options = tuple(
            replace(option, image_url=urls.get(option.image_ref, option.image_url))
            if option.image_ref else option
            for option in question.options
        )
        image_url = (
            urls.get(question.image_ref, question.image_url)
            if question.image_ref else question.image_url
        )
        attached.append(replace(question, options=options, image_url=image_url))
    return attached
