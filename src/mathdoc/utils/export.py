"""
Export module for MathDoc.

Provides:
- DOCX packaging of serialized HTML (python-docx altChunk)
- HTML export
- One-call text -> DOCX conversion
"""

import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from .math_render import MathRenderer
from .segmenter import segment
from .serializer import ExportDocument, Serializer
from .styles import LayoutDirectives, OutputStyle, style_spec

logger = logging.getLogger(__name__)


HTML_CHUNK_PARTNAME = "/word/afchunk1.html"
HTML_CONTENT_TYPE = "text/html"


class PackagingError(Exception):
    """Raised when a Word container cannot be produced."""


# ============================================================================
# Packagers
# ============================================================================

class DocumentPackager(ABC):
    """Wraps serialized markup into a binary document container."""

    @abstractmethod
    def pack(self, markup: str, directives: LayoutDirectives) -> bytes:
        """
        Build the container.

        Raises:
            PackagingError: If the container cannot be produced
        """


class HtmlDocxPackager(DocumentPackager):
    """
    DOCX packaging using python-docx.

    The HTML is stored as an ``aFChunk`` part and referenced from a single
    ``w:altChunk`` in the body; Word converts it (MathML included) when the
    file is opened. Page orientation and margins come from the directives.
    """

    def __init__(self, template_path: Optional[str] = None):
        self.template_path = template_path

    def pack(self, markup: str, directives: LayoutDirectives) -> bytes:
        try:
            from docx import Document as DocxDocument
            from docx.enum.section import WD_ORIENT
            from docx.opc.constants import RELATIONSHIP_TYPE as RT
            from docx.opc.packuri import PackURI
            from docx.opc.part import Part
            from docx.oxml import OxmlElement
            from docx.oxml.ns import qn
            from docx.shared import Inches
        except ImportError:
            raise ImportError(
                "python-docx is required for DOCX export. "
                "Install with: pip install python-docx"
            )

        try:
            if self.template_path and Path(self.template_path).exists():
                doc = DocxDocument(self.template_path)
            else:
                doc = DocxDocument()

            section = doc.sections[0]
            width, height = section.page_width, section.page_height
            if directives.is_landscape:
                section.orientation = WD_ORIENT.LANDSCAPE
                section.page_width, section.page_height = max(width, height), min(width, height)
            else:
                section.orientation = WD_ORIENT.PORTRAIT
                section.page_width, section.page_height = min(width, height), max(width, height)

            top, right, bottom, left = directives.margins
            section.top_margin = Inches(top)
            section.right_margin = Inches(right)
            section.bottom_margin = Inches(bottom)
            section.left_margin = Inches(left)

            chunk = Part(
                PackURI(HTML_CHUNK_PARTNAME),
                HTML_CONTENT_TYPE,
                markup.encode("utf-8"),
                doc.part.package,
            )
            r_id = doc.part.relate_to(chunk, RT.A_F_CHUNK)

            alt_chunk = OxmlElement("w:altChunk")
            alt_chunk.set(qn("r:id"), r_id)
            doc.element.body.insert_element_before(alt_chunk, "w:sectPr")

            buffer = io.BytesIO()
            doc.save(buffer)
        except Exception as e:
            raise PackagingError(f"Failed to build DOCX: {e}") from e

        data = buffer.getvalue()
        logger.debug(f"Packed {len(markup)} chars of HTML into {len(data)} byte DOCX")
        return data


# ============================================================================
# Exporter
# ============================================================================

def export_filename(base_name: str, style: Union[str, OutputStyle]) -> str:
    """File name for a style, e.g. ``lesson_worksheet.docx``."""
    return f"{base_name}{style_spec(style).file_suffix}.docx"


class DocumentExporter:
    """Raw text -> segments -> HTML -> DOCX."""

    def __init__(
        self,
        renderer: Optional[MathRenderer] = None,
        packager: Optional[DocumentPackager] = None,
        footer_text: Optional[str] = None
    ):
        self.serializer = Serializer(renderer, footer_text=footer_text)
        self.packager = packager or HtmlDocxPackager()

    def convert(
        self,
        text: str,
        rich_text: bool = False,
        style: Union[str, OutputStyle] = OutputStyle.STANDARD
    ) -> ExportDocument:
        """Segment and serialize text for one style."""
        return self.serializer.serialize(segment(text), rich_text, style)

    def to_docx_bytes(
        self,
        text: str,
        rich_text: bool = False,
        style: Union[str, OutputStyle] = OutputStyle.STANDARD
    ) -> bytes:
        document = self.convert(text, rich_text, style)
        return self.packager.pack(document.markup, document.directives)

    def export(
        self,
        text: str,
        output_path: Union[str, Path],
        rich_text: bool = False,
        style: Union[str, OutputStyle] = OutputStyle.STANDARD
    ) -> Path:
        """
        Export text to a DOCX file.

        Args:
            text: Editor content (plain LaTeX text or HTML)
            output_path: Output file path
            rich_text: True if ``text`` is HTML from a converted Word file
            style: Export style preset

        Returns:
            Path to the generated DOCX file

        Raises:
            PackagingError: If the DOCX container cannot be built
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.to_docx_bytes(text, rich_text, style)
        output_path.write_bytes(data)

        logger.info(f"Exported DOCX to: {output_path}")
        return output_path

    def export_html(
        self,
        text: str,
        output_path: Union[str, Path],
        rich_text: bool = False,
        style: Union[str, OutputStyle] = OutputStyle.STANDARD
    ) -> Path:
        """Export the serialized HTML document."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        document = self.convert(text, rich_text, style)
        output_path.write_text(document.markup, encoding="utf-8")

        logger.info(f"Exported HTML to: {output_path}")
        return output_path
