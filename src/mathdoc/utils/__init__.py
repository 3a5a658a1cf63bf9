"""
Utility modules for MathDoc.
"""

from .segmenter import segment, reconstruct, TextSegment, SegmentKind
from .styles import OutputStyle, LayoutDirectives, STYLE_TABLE, layout_for
from .math_render import MathRenderer, Latex2MathMLRenderer, MathRenderError
from .serializer import Serializer, ExportDocument, serialize
from .export import DocumentPackager, HtmlDocxPackager, DocumentExporter, PackagingError, export_filename
from .io import load_document, load_path, ImportedDocument, UnsupportedFormatError

__all__ = [
    # Segmentation
    "segment", "reconstruct", "TextSegment", "SegmentKind",
    # Styles
    "OutputStyle", "LayoutDirectives", "STYLE_TABLE", "layout_for",
    # Rendering
    "MathRenderer", "Latex2MathMLRenderer", "MathRenderError",
    "Serializer", "ExportDocument", "serialize",
    # Export
    "DocumentPackager", "HtmlDocxPackager", "DocumentExporter", "PackagingError", "export_filename",
    # Import
    "load_document", "load_path", "ImportedDocument", "UnsupportedFormatError",
]
