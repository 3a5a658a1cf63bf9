"""
I/O utilities for MathDoc.

Handles:
- Word (.docx/.doc) import via mammoth
- PDF rasterisation (pdf2image) for vision OCR or local Tesseract OCR
- Image import for vision OCR
- Plain text import
- File type detection and naming
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Union

if TYPE_CHECKING:
    from PIL import Image
    from ..config import ImportConfig
    from .vision import GeminiClient, ImagePayload

logger = logging.getLogger(__name__)


WORD_EXTENSIONS = ('.docx', '.doc')
IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.webp')
TEXT_EXTENSIONS = ('.txt', '.tex', '.md')

IMAGE_MIME_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.webp': 'image/webp',
}


class UnsupportedFormatError(ValueError):
    """Raised for files MathDoc cannot import."""


@dataclass
class ImportedDocument:
    """Editor content produced from an uploaded file."""
    text: str
    rich_text: bool
    base_name: str
    source_type: str


# ============================================================================
# File Type Detection
# ============================================================================

def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of an input file from its extension.

    Returns:
        One of: 'docx', 'doc', 'pdf', 'image', 'text', 'unknown'
    """
    suffix = Path(input_path).suffix.lower()

    if suffix == '.docx':
        return 'docx'
    elif suffix == '.doc':
        return 'doc'
    elif suffix == '.pdf':
        return 'pdf'
    elif suffix in IMAGE_EXTENSIONS:
        return 'image'
    elif suffix in TEXT_EXTENSIONS:
        return 'text'

    return 'unknown'


def strip_extension(file_name: str) -> str:
    """'lesson.v2.docx' -> 'lesson.v2'"""
    name = Path(file_name).name
    return Path(name).stem if Path(name).suffix else name


# ============================================================================
# Word Import
# ============================================================================

def docx_to_html(data: bytes) -> str:
    """
    Convert a .docx file to HTML with mammoth.

    Raises:
        ImportError: If mammoth is not installed
    """
    try:
        import mammoth
    except ImportError:
        raise ImportError(
            "mammoth is required for Word import. Install with: pip install mammoth"
        )

    result = mammoth.convert_to_html(io.BytesIO(data))
    for message in result.messages:
        logger.debug(f"mammoth: {message}")
    return result.value


def is_binary_text(text: str) -> bool:
    """True if decoded bytes look like a binary (OLE) file rather than text."""
    return text.startswith("\ufffd") or "\0" in text


def load_doc(data: bytes) -> ImportedDocument:
    """
    Import a legacy .doc file.

    Some ".doc" files are really .docx or XML/text; binary Word 97-2003
    files are rejected.
    """
    try:
        html = docx_to_html(data)
        if html:
            return ImportedDocument(html, True, "", "doc")
    except ImportError:
        raise
    except Exception as e:
        logger.debug(f"Not a docx container: {e}")

    text = data.decode("utf-8", errors="replace")
    if is_binary_text(text):
        raise UnsupportedFormatError(
            "This .doc file uses the old Word 97-2003 binary format, which is not supported. "
            "Open it in Word, choose 'Save As' -> '.docx' and try again."
        )
    return ImportedDocument(text, False, "", "doc")


# ============================================================================
# PDF / Image Import
# ============================================================================

def render_pdf_pages(
    data: bytes,
    max_pages: int = 5,
    dpi: int = 108
) -> List["Image.Image"]:
    """
    Rasterise the first pages of a PDF using pdf2image (poppler backend).

    Raises:
        ImportError: If pdf2image is not installed
        RuntimeError: If the PDF cannot be parsed or poppler is missing
    """
    try:
        from pdf2image import convert_from_bytes
        from pdf2image.exceptions import PDFPageCountError, PDFSyntaxError
    except ImportError:
        raise ImportError(
            "pdf2image is required. Install with: pip install pdf2image\n"
            "Also ensure poppler is installed on your system."
        )

    try:
        pages = convert_from_bytes(data, dpi=dpi, first_page=1, last_page=max_pages)
    except (PDFPageCountError, PDFSyntaxError) as e:
        raise RuntimeError(f"Failed to parse PDF: {e}")
    except Exception as e:
        if "poppler" in str(e).lower():
            raise RuntimeError(
                "Poppler is not installed. Install with:\n"
                "  macOS: brew install poppler\n"
                "  Linux: sudo apt-get install poppler-utils"
            )
        raise

    logger.info(f"Rendered {len(pages)} PDF page(s) at {dpi} DPI")
    return pages


def encode_jpeg(image: "Image.Image", quality: int = 80) -> bytes:
    """Encode a PIL image as JPEG bytes."""
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def ocr_pages_locally(pages: List["Image.Image"], lang: str = "vie+eng") -> str:
    """
    Extract text from page images with Tesseract (no math recognition).

    Raises:
        ImportError: If pytesseract is not installed
    """
    try:
        import pytesseract
    except ImportError:
        raise ImportError("pytesseract is required for local OCR. Install with: pip install pytesseract")

    parts = []
    for i, page in enumerate(pages, start=1):
        text = pytesseract.image_to_string(page, lang=lang)
        parts.append(f"## Page {i}\n\n{text.strip()}\n\n")
    return "".join(parts)


def load_pdf(
    data: bytes,
    smart_ocr: bool,
    client: Optional["GeminiClient"],
    config: "ImportConfig"
) -> ImportedDocument:
    pages = render_pdf_pages(data, max_pages=config.max_pdf_pages, dpi=config.pdf_dpi)

    if smart_ocr:
        from .vision import ImagePayload

        if client is None:
            raise UnsupportedFormatError("Smart OCR needs a configured Gemini client")
        payloads = [
            ImagePayload(encode_jpeg(page, config.jpeg_quality), "image/jpeg")
            for page in pages
        ]
        text = client.analyze_images(payloads)
    else:
        text = ocr_pages_locally(pages, lang=config.tesseract_lang)

    return ImportedDocument(text, False, "", "pdf")


def load_image(
    data: bytes,
    suffix: str,
    client: Optional["GeminiClient"]
) -> ImportedDocument:
    from .vision import ImagePayload

    if client is None:
        raise UnsupportedFormatError("Image import needs a configured Gemini client")
    text = client.analyze_images([ImagePayload(data, IMAGE_MIME_TYPES[suffix])])
    return ImportedDocument(text, False, "", "image")


# ============================================================================
# Entry Point
# ============================================================================

def load_document(
    file_name: str,
    data: bytes,
    smart_ocr: bool = True,
    client: Optional["GeminiClient"] = None,
    config: Optional["ImportConfig"] = None
) -> ImportedDocument:
    """
    Turn an uploaded file into editor content.

    Args:
        file_name: Original file name (used for type detection and naming)
        data: File contents
        smart_ocr: Use the vision model for PDFs instead of local Tesseract
        client: Gemini client for vision OCR
        config: Import settings (defaults from :func:`config.get_config`)

    Returns:
        ImportedDocument with text and its rich-text flag

    Raises:
        UnsupportedFormatError: For unknown or unsupported formats
    """
    if config is None:
        from ..config import get_config
        config = get_config().importing

    input_type = detect_input_type(file_name)
    logger.info(f"Importing {file_name} as {input_type}")

    if input_type == 'docx':
        document = ImportedDocument(docx_to_html(data), True, "", "docx")
    elif input_type == 'doc':
        document = load_doc(data)
    elif input_type == 'pdf':
        document = load_pdf(data, smart_ocr, client, config)
    elif input_type == 'image':
        document = load_image(data, Path(file_name).suffix.lower(), client)
    elif input_type == 'text':
        document = ImportedDocument(data.decode("utf-8-sig"), False, "", "text")
    else:
        raise UnsupportedFormatError(f"Unsupported file format: {file_name}")

    document.base_name = strip_extension(file_name)
    return document


def load_path(
    path: Union[str, Path],
    smart_ocr: bool = True,
    client: Optional["GeminiClient"] = None,
    config: Optional["ImportConfig"] = None
) -> ImportedDocument:
    """Load a document from disk."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    return load_document(path.name, path.read_bytes(), smart_ocr, client, config)
