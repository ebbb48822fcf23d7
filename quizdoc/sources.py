"""
Document Sources.

The edge of the pipeline that acquires input: plain text, an uploaded
buffer (.docx or text), a local file, or a remote URL fetched with httpx.
Every source resolves to an ImportInput holding either a run stream or
plain text; the parsing core never touches the container format.

.docx run extraction uses python-docx: body paragraphs and table cells in
document order, run flags (bold, underline, italic, non-black color),
explicit line breaks and embedded pictures.
"""

from __future__ import annotations

import io
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import httpx
from docx import Document
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph
from loguru import logger

from .exceptions import DocumentReadError
from .models import PARAGRAPH_BREAK, ImageHandle, RunStreamItem, TextRun

DEFAULT_MAX_BYTES = 8 * 1024 * 1024
DOCX_SUFFIX = ".docx"
_ZIP_SIGNATURE = b"PK\x03\x04"


@dataclass(frozen=True)
class ImportInput:
    """
    Pipeline input: a run stream, plain text, or both.

    When runs are present they win; `plain_text` is the fallback used if
    the runs normalize to nothing.
    """
    runs: tuple[RunStreamItem, ...] | None = None
    plain_text: str | None = None
    name: str = "<input>"
    images: dict[str, ImageHandle] = field(default_factory=dict)

    @classmethod
    def from_text(cls, text: str, name: str = "<text>") -> ImportInput:
        return cls(plain_text=text, name=name)

    @classmethod
    def from_runs(cls, runs, name: str = "<runs>") -> ImportInput:
        runs = tuple(runs)
        images = {
            run.image_ref.ref_id: run.image_ref
            for run in runs
            if isinstance(run, TextRun) and run.is_image_ref and run.image_ref is not None
        }
        return cls(runs=runs, name=name, images=images)


class DocumentSource(Protocol):
    """Anything that can produce an ImportInput."""

    async def read(self) -> ImportInput:
        ...


# =============================================================================
# Sources
# =============================================================================


@dataclass
class TextSource:
    text: str
    name: str = "<text>"

    async def read(self) -> ImportInput:
        return ImportInput.from_text(self.text, self.name)


@dataclass
class BytesSource:
    """An uploaded buffer; .docx when the name or signature says so."""

    data: bytes
    name: str = "<upload>"
    max_bytes: int = DEFAULT_MAX_BYTES

    async def read(self) -> ImportInput:
        return read_buffer(self.data, self.name, self.max_bytes)


@dataclass
class FileSource:
    path: Path
    max_bytes: int = DEFAULT_MAX_BYTES

    async def read(self) -> ImportInput:
        path = Path(self.path)
        if not path.is_file():
            raise DocumentReadError(f"File not found: {path}")
        size = path.stat().st_size
        if size > self.max_bytes:
            raise DocumentReadError(f"{path.name} is {size} bytes, limit is {self.max_bytes}")
        return read_buffer(path.read_bytes(), path.name, self.max_bytes)


@dataclass
class RemoteSource:
    """A document fetched over HTTP."""

    url: str
    max_bytes: int = DEFAULT_MAX_BYTES
    timeout: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)
    transport: httpx.AsyncBaseTransport | None = None

    async def read(self) -> ImportInput:
        logger.debug(f"Fetching {self.url}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(self.url, headers=self.headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise DocumentReadError(f"Could not fetch {self.url}: {e}") from e

        data = response.content
        name = os.path.basename(httpx.URL(self.url).path) or self.url
        return read_buffer(data, name, self.max_bytes)


# =============================================================================
# Buffer decoding
# =============================================================================


def read_buffer(data: bytes, name: str, max_bytes: int = DEFAULT_MAX_BYTES) -> ImportInput:
    """Decode an in-memory document into an ImportInput."""
    if len(data) > max_bytes:
        raise DocumentReadError(f"{name} is {len(data)} bytes, limit is {max_bytes}")
    if not data:
        raise DocumentReadError(f"{name} is empty")

    if name.lower().endswith(DOCX_SUFFIX) or data.startswith(_ZIP_SIGNATURE):
        runs, plain_text = read_docx_runs(data)
        source = ImportInput.from_runs(runs, name)
        return ImportInput(
            runs=source.runs,
            plain_text=plain_text,
            name=name,
            images=source.images,
        )

    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DocumentReadError(f"{name} is neither .docx nor UTF-8 text") from e
    return ImportInput.from_text(text, name)


def read_docx_runs(data: bytes) -> tuple[list[RunStreamItem], str]:
    """
    Extract the run stream and a plain-text fallback from a .docx buffer.

    Raises:
        DocumentReadError: If the buffer is not a readable .docx package.
    """
    try:
        document = Document(io.BytesIO(data))
    except Exception as e:
        raise DocumentReadError(f"Not a readable .docx document: {e}") from e

    items: list[RunStreamItem] = []
    texts: list[str] = []
    images: dict[str, ImageHandle] = {}

    for paragraph in _iter_paragraphs(document):
        for run in paragraph.runs:
            if run.text:
                items.append(
                    TextRun(
                        text=run.text,
                        bold=bool(run.bold),
                        underline=bool(run.underline),
                        italic=bool(run.italic),
                        colored=_is_colored(run),
                    )
                )
            for rel_id in run._element.xpath(".//a:blip/@r:embed"):
                handle = images.get(rel_id) or _image_handle(document, rel_id)
                if handle is None:
                    continue
                images[rel_id] = handle
                items.append(TextRun(text="", is_image_ref=True, image_ref=handle))
        items.append(PARAGRAPH_BREAK)
        texts.append(paragraph.text)

    logger.debug(f"Read {len(texts)} paragraphs and {len(images)} images from .docx")
    return items, "\n".join(texts)


def _iter_paragraphs(document):
    """Body paragraphs and table-cell paragraphs in document order."""
    for child in document.element.body.iterchildren():
        if child.tag == qn("w:p"):
            yield Paragraph(child, document)
        elif child.tag == qn("w:tbl"):
            table = Table(child, document)
            seen = set()
            for row in table.rows:
                for cell in row.cells:
                    # Merged cells repeat across the grid
                    if cell._tc in seen:
                        continue
                    seen.add(cell._tc)
                    yield from cell.paragraphs


def _is_colored(run) -> bool:
    color = run.font.color
    if color is None or color.type is None:
        return False
    rgb = color.rgb
    return rgb is not None and str(rgb).upper() != "000000"


def _image_handle(document, rel_id: str) -> ImageHandle | None:
    part = document.part.related_parts.get(rel_id)
    if part is None:
        logger.warning(f"Image relationship {rel_id} not found")
        return None
    return ImageHandle(
        ref_id=rel_id,
        data=part.blob,
        filename=os.path.basename(str(part.partname)),
    )
