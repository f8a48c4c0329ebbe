"""Normalisation of uploaded financial documents into model-ready payloads.

Spreadsheets become CSV text, Word documents become plain text and images are
downscaled and recompressed to JPEG. Everything else is passed through as the
raw bytes. A failed conversion falls back to the raw bytes so that one odd
file never blocks an upload batch.
"""

from __future__ import annotations

import base64
import hashlib
import io
import logging
import mimetypes
from dataclasses import dataclass
from typing import Iterable, Sequence

import pandas as pd
from docx import Document
from PIL import Image, ImageOps

from .config import Settings

logger = logging.getLogger(__name__)

MAX_FILES_PER_CATEGORY = 10

CATEGORIES = (
    "Bank Statements",
    "Miscellaneous Bills (Rent, Utilities, Subscriptions, School fees, Salary slip, "
    "Loan statement, Credit Card Bill, etc.)",
)

SPREADSHEET_MIME_TYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

ACCEPTED_MIME_TYPES = SPREADSHEET_MIME_TYPES | {
    "application/pdf",
    "text/csv",
    "application/msword",
    DOCX_MIME_TYPE,
    "text/plain",
}
ACCEPTED_EXTENSIONS = (".pdf", ".xls", ".xlsx", ".csv", ".doc", ".docx", ".txt")
IMAGE_EXTENSIONS = ("png", "jpg", "jpeg", "webp", "gif", "bmp", "tif", "tiff", "heic", "heif")

# Types the AI model accepts as inline data
MODEL_MIME_TYPES = (
    "application/pdf",
    "text/plain",
    "text/csv",
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
    "image/heif",
)

FILE_TYPE_HINT = "PDF, EXCEL, CSV, Doc, DOCX, Image, Scanned copy, or Text-based files"


class UnsupportedFileError(ValueError):
    """Raised when an upload is not one of the accepted document types."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid file type: {name}. Please upload only {FILE_TYPE_HINT}.")


@dataclass(frozen=True)
class UploadedDocument:
    """An upload as received from the browser or the command line."""

    name: str
    data: bytes
    mime_type: str = ""


@dataclass(frozen=True)
class PreparedDocument:
    """A converted document ready to be attached to an analysis request."""

    name: str
    category: str
    size: int
    fingerprint: str
    data: str
    mime_type: str

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def identity(self) -> str:
        return f"{self.name}-{self.size}-{self.fingerprint}"

    @property
    def payload(self) -> bytes:
        return base64.b64decode(self.data)


def _extension(name: str) -> str:
    dot = name.rfind(".")
    return name[dot:].lower() if dot != -1 else ""


def guess_mime_type(name: str, mime_type: str | None = None) -> str:
    if mime_type:
        return mime_type
    guessed, _ = mimetypes.guess_type(name)
    return guessed or ""


def is_supported(name: str, mime_type: str | None = None) -> bool:
    mime_type = mime_type or ""
    if mime_type.startswith("image/"):
        return True
    if mime_type in ACCEPTED_MIME_TYPES:
        return True
    return _extension(name) in ACCEPTED_EXTENSIONS


def validate_uploads(files: Iterable[UploadedDocument]) -> None:
    """Reject the whole batch when any file is not an accepted type."""

    for upload in files:
        if not is_supported(upload.name, guess_mime_type(upload.name, upload.mime_type)):
            logger.warning("Rejected upload with unsupported type: %s", upload.name)
            raise UnsupportedFileError(upload.name)


def spreadsheet_to_csv(raw: bytes) -> str:
    """Flatten every sheet of a workbook into one CSV text block."""

    sheets = pd.read_excel(io.BytesIO(raw), sheet_name=None, header=None, dtype=str)
    chunks: list[str] = []
    for sheet_name, frame in sheets.items():
        csv_text = frame.fillna("").to_csv(index=False, header=False, lineterminator="\n")
        chunks.append(f"--- Sheet: {sheet_name} ---\n{csv_text}\n\n")
    return "".join(chunks)


def docx_to_text(raw: bytes) -> str:
    """Extract the raw text of a DOCX file: paragraphs first, then tables."""

    document = Document(io.BytesIO(raw))
    lines = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                lines.append(" | ".join(cells))
    return "\n".join(lines)


def _scaled_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    if width > height:
        if width > max_dimension:
            return max_dimension, max(1, round(height * max_dimension / width))
    elif height > max_dimension:
        return max(1, round(width * max_dimension / height)), max_dimension
    return width, height


def compress_image(raw: bytes, max_dimension: int = 1024, quality: int = 70) -> bytes:
    """Downscale an image to fit ``max_dimension`` and re-encode it as JPEG."""

    with Image.open(io.BytesIO(raw)) as source:
        image = ImageOps.exif_transpose(source)
        size = _scaled_size(image.width, image.height, max_dimension)
        if size != image.size:
            image = image.resize(size, Image.Resampling.LANCZOS)

        if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
            rgba = image.convert("RGBA")
            flattened = Image.new("RGB", rgba.size, (255, 255, 255))
            flattened.paste(rgba, mask=rgba.getchannel("A"))
            image = flattened
        elif image.mode != "RGB":
            image = image.convert("RGB")

        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def _encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _is_spreadsheet(name: str, mime_type: str) -> bool:
    return _extension(name) in (".xls", ".xlsx") or mime_type in SPREADSHEET_MIME_TYPES


def _is_docx(name: str, mime_type: str) -> bool:
    return _extension(name) == ".docx" or mime_type == DOCX_MIME_TYPE


def prepare_document(
    upload: UploadedDocument,
    category: str,
    settings: Settings | None = None,
) -> PreparedDocument:
    """Convert one upload into a :class:`PreparedDocument`."""

    settings = settings or Settings()
    raw = upload.data
    mime_type = guess_mime_type(upload.name, upload.mime_type)
    payload = raw
    payload_mime = mime_type

    try:
        if _is_spreadsheet(upload.name, mime_type):
            payload = spreadsheet_to_csv(raw).encode("utf-8")
            payload_mime = "text/csv"
        elif _is_docx(upload.name, mime_type):
            payload = docx_to_text(raw).encode("utf-8")
            payload_mime = "text/plain"
        elif mime_type.startswith("image/"):
            payload = compress_image(raw, settings.image_max_dimension, settings.image_quality)
            payload_mime = "image/jpeg"
    except Exception:
        logger.exception("Could not convert %s; sending the original bytes", upload.name)
        payload = raw
        payload_mime = mime_type

    document = PreparedDocument(
        name=upload.name,
        category=category,
        size=len(raw),
        fingerprint=hashlib.sha256(raw).hexdigest()[:16],
        data=_encode(payload),
        mime_type=payload_mime,
    )
    logger.info(
        "Prepared %s (%s, %d bytes) as %s (%d bytes)",
        upload.name,
        category,
        document.size,
        payload_mime or "unknown type",
        len(payload),
    )
    return document


def prepare_documents(
    uploads: Sequence[UploadedDocument],
    category: str,
    settings: Settings | None = None,
) -> list[PreparedDocument]:
    """Validate then convert a batch of uploads for one category."""

    validate_uploads(uploads)
    return [prepare_document(upload, category, settings) for upload in uploads]


def add_documents(
    existing: Sequence[PreparedDocument],
    new: Sequence[PreparedDocument],
    limit: int = MAX_FILES_PER_CATEGORY,
) -> tuple[list[PreparedDocument], int]:
    """Append ``new`` up to the per-category ``limit``.

    Returns the combined list and how many new documents were dropped.
    """

    remaining = max(0, limit - len(existing))
    accepted = list(new[:remaining])
    return [*existing, *accepted], len(new) - len(accepted)


def remove_document(documents: Sequence[PreparedDocument], index: int) -> list[PreparedDocument]:
    return [document for position, document in enumerate(documents) if position != index]


def resolve_mime_type(document: PreparedDocument) -> str:
    """Return the MIME type to declare to the AI model for ``document``."""

    if document.mime_type in MODEL_MIME_TYPES:
        return document.mime_type

    extension = _extension(document.name)
    if extension == ".csv":
        return "text/csv"
    if extension == ".pdf":
        return "application/pdf"
    if extension in (".jpg", ".jpeg"):
        return "image/jpeg"
    if extension == ".png":
        return "image/png"
    return "text/plain"
