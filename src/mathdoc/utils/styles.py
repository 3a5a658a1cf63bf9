"""
Export style presets.

Each :class:`OutputStyle` maps to one fixed :class:`StyleSpec` in
``STYLE_TABLE``; :func:`layout_for` turns that into the page layout
directives handed to the serializer and packager.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union

logger = logging.getLogger(__name__)


class OutputStyle(Enum):
    """Named export presets."""
    STANDARD = "standard"
    MINIMAL = "minimal"
    WORKSHEET = "worksheet"
    NOTES = "notes"
    TWO_COLUMN = "two-column"
    LANDSCAPE = "landscape"
    LARGE_PRINT = "large-print"
    DRAFT = "draft"
    FLASHCARDS = "flashcards"

    @classmethod
    def parse(cls, value: Union[str, 'OutputStyle']) -> 'OutputStyle':
        """Accept an OutputStyle or its key (case-insensitive, '_' or '-')."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-")
        try:
            return cls(key)
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown output style: {value!r} (choose from {choices})")


class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


# ============================================================================
# Style Table
# ============================================================================

SERIF = "'Times New Roman', serif"
SANS_SERIF = "Arial, sans-serif"

NEUTRAL_COLOR = "#000000"

# Margins are (top, right, bottom, left) in inches
Margins = Tuple[float, float, float, float]


@dataclass(frozen=True)
class StyleSpec:
    """Everything one export style means."""
    label: str
    margins: Margins = (1.0, 1.0, 1.0, 1.0)
    orientation: Orientation = Orientation.PORTRAIT
    font_size: str = "12pt"
    font_family: str = SERIF
    line_height: str = "1.5"
    plain: bool = False  # no accent colours
    writing_lines: bool = False
    flashcards: bool = False
    columns: int = 1
    column_gap: str = "36pt"
    file_suffix: str = ""


STYLE_TABLE: Dict[OutputStyle, StyleSpec] = {
    OutputStyle.STANDARD: StyleSpec(
        label="Standard",
    ),
    OutputStyle.MINIMAL: StyleSpec(
        label="Minimal (print)",
        margins=(0.5, 0.5, 0.5, 0.5),
        line_height="1.2",
        plain=True,
        file_suffix="_print",
    ),
    OutputStyle.WORKSHEET: StyleSpec(
        label="Worksheet",
        writing_lines=True,
        file_suffix="_worksheet",
    ),
    OutputStyle.NOTES: StyleSpec(
        label="Notes (wide left margin)",
        margins=(1.0, 1.0, 1.0, 2.5),
        file_suffix="_notes",
    ),
    OutputStyle.TWO_COLUMN: StyleSpec(
        label="Two-column exam",
        margins=(0.5, 0.5, 0.5, 0.5),
        columns=2,
        file_suffix="_exam",
    ),
    OutputStyle.LANDSCAPE: StyleSpec(
        label="Landscape",
        orientation=Orientation.LANDSCAPE,
        file_suffix="_wide",
    ),
    OutputStyle.LARGE_PRINT: StyleSpec(
        label="Large print",
        font_size="16pt",
        font_family=SANS_SERIF,
        line_height="1.6",
        file_suffix="_access",
    ),
    OutputStyle.DRAFT: StyleSpec(
        label="Draft (double spaced)",
        margins=(1.5, 1.5, 1.5, 1.5),
        line_height="2.0",
        plain=True,
        file_suffix="_draft",
    ),
    OutputStyle.FLASHCARDS: StyleSpec(
        label="Flashcards",
        flashcards=True,
        file_suffix="_cards",
    ),
}


# ============================================================================
# Layout Directives
# ============================================================================

@dataclass(frozen=True)
class LayoutDirectives:
    """Page layout and decoration settings for one export."""
    style: OutputStyle
    margins: Margins
    orientation: Orientation
    font_size: str
    font_family: str
    line_height: str
    heading_color: str
    subheading_color: str
    section_color: str
    subitem_color: str
    table_header_bg: str
    extra_css: str = ""

    @property
    def page_margin(self) -> str:
        """CSS shorthand for ``@page { margin }``."""
        top, right, bottom, left = self.margins
        if top == right == bottom == left:
            return _inches(top)
        return " ".join(_inches(m) for m in self.margins)

    @property
    def is_landscape(self) -> bool:
        return self.orientation is Orientation.LANDSCAPE


def _inches(value: float) -> str:
    return f"{value:g}in"


def _extra_css(spec: StyleSpec) -> str:
    rules = []
    if spec.columns > 1:
        rules.append(
            ".Section1 {\n"
            f"    column-count: {spec.columns};\n"
            f"    column-gap: {spec.column_gap};\n"
            "}"
        )
    if spec.flashcards:
        rules.append(
            ".flashcard {\n"
            "    border: 2px solid #000;\n"
            "    padding: 15pt;\n"
            "    margin: 15pt 0;\n"
            "    page-break-inside: avoid;\n"
            "    background-color: #ffffff;\n"
            "}"
        )
    return "\n".join(rules)


def style_spec(style: Union[str, OutputStyle]) -> StyleSpec:
    return STYLE_TABLE[OutputStyle.parse(style)]


def layout_for(style: Union[str, OutputStyle]) -> LayoutDirectives:
    """Build the layout directives for a style. Depends on the style only."""
    style = OutputStyle.parse(style)
    spec = STYLE_TABLE[style]

    return LayoutDirectives(
        style=style,
        margins=spec.margins,
        orientation=spec.orientation,
        font_size=spec.font_size,
        font_family=spec.font_family,
        line_height=spec.line_height,
        heading_color=NEUTRAL_COLOR if spec.plain else "#2E74B5",
        subheading_color=NEUTRAL_COLOR if spec.plain else "#1F4D78",
        section_color=NEUTRAL_COLOR if spec.plain else "#0284c7",
        subitem_color=NEUTRAL_COLOR if spec.plain else "#0369a1",
        table_header_bg="#ffffff" if spec.plain else "#f2f2f2",
        extra_css=_extra_css(spec),
    )
