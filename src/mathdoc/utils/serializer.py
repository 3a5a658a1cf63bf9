"""
Serialization of segments into a styled HTML document.

Handles:
- Escaping and line breaks for plain text
- Highlighting of "Câu/Bài N" section markers and "a)" sub-items
- MathML equations (inline and display)
- Style-specific structure (worksheet lines, flashcards, columns)
- Full HTML document with page CSS for DOCX packaging
"""

import html
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .math_render import MathRenderer, MathRenderError, extract_math_fragment
from .segmenter import TextSegment
from .styles import LayoutDirectives, OutputStyle, layout_for, style_spec

logger = logging.getLogger(__name__)


SECTION_MARKER_RE = re.compile(r"(^|\n)(Câu|Bài)\s+([0-9IVX]+)(?!\w)([.:]?)", re.IGNORECASE)
SUBITEM_MARKER_RE = re.compile(r"(^|\n)([a-z]\))(\s)")

SECTION_KEYWORDS = ("Câu", "Bài")
WORKSHEET_LENGTH_THRESHOLD = 50

LATEX_ERROR = "[LaTeX Error]"
EQUATION_ERROR = "[Equation Error]"

WRITING_LINES = (
    '<div style="margin-top: 10pt; margin-bottom: 20pt; color: #999;">'
    '<p style="border-bottom: 1px dotted #999; line-height: 24pt;">&nbsp;</p>'
    '<p style="border-bottom: 1px dotted #999; line-height: 24pt;">&nbsp;</p>'
    '<p style="border-bottom: 1px dotted #999; line-height: 24pt;">&nbsp;</p>'
    '</div>'
)
DISPLAY_SPACER = '<p style="margin-bottom: 30pt;">&nbsp;</p>'


@dataclass
class ExportDocument:
    """Serialized markup plus the layout it was built for."""
    markup: str
    directives: LayoutDirectives
    segment_count: int = 0
    math_errors: List[str] = field(default_factory=list)

    @property
    def style(self) -> OutputStyle:
        return self.directives.style


# ============================================================================
# Text Processing
# ============================================================================

def highlight_markers(escaped: str, section_color: str, subitem_color: str) -> str:
    """
    Wrap section markers and sub-item markers found at line starts in styled spans.

    Args:
        escaped: Already escaped text
        section_color: CSS colour for "Câu 1:" style markers
        subitem_color: CSS colour for "a)" style markers
    """
    text = SECTION_MARKER_RE.sub(
        lambda m: (
            f'{m.group(1)}<span style="color: {section_color}; font-weight: bold;">'
            f'{m.group(2)} {m.group(3)}{m.group(4)}</span>'
        ),
        escaped,
    )
    return SUBITEM_MARKER_RE.sub(
        lambda m: (
            f'{m.group(1)}<span style="color: {subitem_color}; font-weight: bold;">'
            f'{m.group(2)}</span>{m.group(3)}'
        ),
        text,
    )


def plain_text_to_html(text: str, directives: LayoutDirectives) -> str:
    """Escape, highlight and line-break a plain text segment."""
    safe = html.escape(text, quote=False)
    safe = highlight_markers(safe, directives.section_color, directives.subitem_color)
    return f'<span class="text-run">{safe.replace(chr(10), "<br/>")}</span>'


def needs_writing_lines(content: str) -> bool:
    """Worksheet rule: section keyword present, or a long paragraph."""
    if any(keyword in content for keyword in SECTION_KEYWORDS):
        return True
    return len(content) > WORKSHEET_LENGTH_THRESHOLD


# ============================================================================
# Serializer
# ============================================================================

class Serializer:
    """
    Turns a segment sequence into a styled HTML document.

    Math goes through the injected :class:`MathRenderer`; a failure there
    becomes an inline placeholder and never aborts the document.
    """

    def __init__(
        self,
        renderer: Optional[MathRenderer] = None,
        footer_text: Optional[str] = None
    ):
        if renderer is None:
            from .math_render import Latex2MathMLRenderer
            renderer = Latex2MathMLRenderer()
        self.renderer = renderer
        self.footer_text = footer_text

    def serialize(
        self,
        segments: Sequence[TextSegment],
        rich_text: bool = False,
        style: Union[str, OutputStyle] = OutputStyle.STANDARD
    ) -> ExportDocument:
        """
        Serialize segments for one export style.

        Args:
            segments: Output of :func:`segmenter.segment`
            rich_text: True if text segments are already HTML fragments
            style: Export style preset

        Returns:
            ExportDocument with the full HTML and its layout directives
        """
        style = OutputStyle.parse(style)
        spec = style_spec(style)
        directives = layout_for(style)
        errors: List[str] = []

        # Body is a list of blocks; a flashcard is a list of parts
        blocks: List[Union[str, List[str]]] = []

        for seg in segments:
            if seg.is_text:
                if rich_text:
                    segment_html = seg.content
                else:
                    segment_html = plain_text_to_html(seg.content, directives)
                    if spec.writing_lines and needs_writing_lines(seg.content):
                        segment_html += WRITING_LINES
                opens_card = bool(segment_html.strip())
            else:
                segment_html = self._render_math(seg, errors)
                if seg.display_mode and spec.writing_lines:
                    segment_html += DISPLAY_SPACER
                opens_card = seg.display_mode

            if spec.flashcards and opens_card:
                blocks.append([segment_html])
            elif blocks and isinstance(blocks[-1], list):
                blocks[-1].append(segment_html)
            else:
                blocks.append(segment_html)

        body = "".join(
            f'<div class="flashcard">{"".join(block)}</div>' if isinstance(block, list) else block
            for block in blocks
        )

        if errors:
            logger.warning(f"{len(errors)} equation(s) could not be rendered")

        return ExportDocument(
            markup=build_html_document(body, directives, self.footer_text),
            directives=directives,
            segment_count=len(segments),
            math_errors=errors,
        )

    def _render_math(self, seg: TextSegment, errors: List[str]) -> str:
        try:
            rendered = self.renderer.render(seg.content, seg.display_mode)
        except MathRenderError as e:
            logger.warning(str(e))
            errors.append(seg.content)
            return LATEX_ERROR
        except Exception as e:
            logger.error(f"Math renderer failed on {seg.content!r}: {e}")
            errors.append(seg.content)
            return LATEX_ERROR

        fragment = extract_math_fragment(rendered)
        if fragment is None:
            logger.warning(f"No <math> element produced for {seg.content!r}")
            errors.append(seg.content)
            return EQUATION_ERROR

        if seg.display_mode:
            return f'<p class="equation" style="text-align: center; margin: 12pt 0;">{fragment}</p>'
        return fragment


def serialize(
    segments: Sequence[TextSegment],
    rich_text: bool = False,
    style: Union[str, OutputStyle] = OutputStyle.STANDARD,
    renderer: Optional[MathRenderer] = None
) -> ExportDocument:
    """Serialize with a one-off :class:`Serializer`."""
    return Serializer(renderer).serialize(segments, rich_text, style)


# ============================================================================
# HTML Document
# ============================================================================

def build_html_document(
    body: str,
    directives: LayoutDirectives,
    footer_text: Optional[str] = None
) -> str:
    """Wrap body markup in a complete HTML document with page CSS."""
    footer = ""
    if footer_text:
        footer = (
            "<br/>\n<hr/>\n"
            f'<p style="text-align: center; color: {directives.heading_color}; '
            f'font-size: 10pt; font-weight: bold; margin-top: 20pt;">'
            f"{html.escape(footer_text, quote=False)}</p>\n"
        )

    d = directives
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Export</title>
<style>
@page {{
    margin: {d.page_margin};
    size: {d.orientation.value};
}}
body {{
    font-family: {d.font_family};
    font-size: {d.font_size};
    line-height: {d.line_height};
    color: #000000;
}}
h1 {{ font-size: 1.4em; color: {d.heading_color}; font-weight: bold; margin-top: 18pt; margin-bottom: 6pt; }}
h2 {{ font-size: 1.2em; color: {d.heading_color}; font-weight: bold; margin-top: 12pt; margin-bottom: 6pt; }}
h3 {{ font-size: 1.1em; color: {d.subheading_color}; font-weight: bold; margin-top: 12pt; margin-bottom: 6pt; }}
.text-run {{ white-space: pre-wrap; }}
p.equation {{ margin: 12pt 0; text-align: center; }}
table {{ border-collapse: collapse; width: 100%; margin: 12pt 0; border: 1px solid black; }}
td, th {{ border: 1px solid black; padding: 6px 8px; vertical-align: top; }}
th {{ background-color: {d.table_header_bg}; font-weight: bold; }}
{d.extra_css}
</style>
</head>
<body>
<div class="Section1">
{body}
{footer}</div>
</body>
</html>
"""
