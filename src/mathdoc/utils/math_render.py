"""
LaTeX to MathML rendering.

Provides:
- MathRenderer interface used by the serializer
- latex2mathml-backed renderer
- Extraction of a clean <math> fragment from renderer output
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Optional
from xml.etree import ElementTree

logger = logging.getLogger(__name__)


MATH_ELEMENT_RE = re.compile(r"<math[\s\S]*?</math>")
TEX_ANNOTATION_RE = re.compile(
    r'<annotation encoding="application/x-tex">[\s\S]*?</annotation>'
)

# Bare "&" left in converter output (e.g. from \&)
BARE_AMPERSAND_RE = re.compile(r"&(?!#[0-9]+;|#x[0-9A-Fa-f]+;|(?:amp|lt|gt|quot|apos);)")
CONTROL_WORD_RE = re.compile(r"\\[A-Za-z]+")

ELEMENT_ARITY = {
    "mfrac": 2,
    "msup": 2,
    "msub": 2,
    "msubsup": 3,
    "mroot": 2,
    "munder": 2,
    "mover": 2,
    "munderover": 3,
}


class MathRenderError(Exception):
    """Raised when an expression cannot be typeset."""

    def __init__(self, expression: str, reason: str = ""):
        self.expression = expression
        self.reason = reason
        message = f"Cannot render LaTeX {expression!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


# ============================================================================
# Renderers
# ============================================================================

class MathRenderer(ABC):
    """Typesets one LaTeX expression into embeddable markup."""

    @abstractmethod
    def render(self, expression: str, display_mode: bool = False) -> str:
        """
        Render an expression.

        Args:
            expression: LaTeX source without delimiters
            display_mode: True for block equations, False for inline

        Returns:
            Markup containing a <math> element

        Raises:
            MathRenderError: If the expression is malformed
        """


class Latex2MathMLRenderer(MathRenderer):
    """
    MathML rendering using latex2mathml.

    latex2mathml accepts most malformed input, so every result goes through
    :func:`check_braces` and :func:`validate_mathml` before it is returned.
    """

    def __init__(self):
        try:
            from latex2mathml.converter import convert
        except ImportError:
            raise ImportError(
                "latex2mathml is required for equation rendering. "
                "Install with: pip install latex2mathml"
            )
        self._convert = convert

    def render(self, expression: str, display_mode: bool = False) -> str:
        try:
            markup = self._convert(expression, display="block" if display_mode else "inline")
        except Exception as e:
            raise MathRenderError(expression, f"{type(e).__name__}: {e}") from e

        check_braces(expression)
        validate_mathml(expression, markup)
        return markup


# ============================================================================
# Validation
# ============================================================================

def check_braces(expression: str):
    """
    Raise MathRenderError if ``{`` / ``}`` groups do not balance.

    Escaped braces (``\\{``, ``\\}``) are literal and not counted.
    """
    depth = 0
    i = 0
    while i < len(expression):
        char = expression[i]
        if char == "\\":
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                raise MathRenderError(expression, "unexpected '}'")
        i += 1

    if depth:
        raise MathRenderError(expression, f"{depth} unclosed '{{'")


def validate_mathml(expression: str, markup: str):
    """
    Raise MathRenderError if converter output is not usable MathML.

    Checks:
    - the markup parses as XML
    - no element text still holds a control word (unknown command)
    - fractions, scripts, roots and under/over elements have their operands
    """
    try:
        root = ElementTree.fromstring(BARE_AMPERSAND_RE.sub("&amp;", markup))
    except ElementTree.ParseError as e:
        raise MathRenderError(expression, f"invalid MathML: {e}") from e

    for element in root.iter():
        match = CONTROL_WORD_RE.search(element.text or "")
        if match:
            raise MathRenderError(expression, f"unknown command {match.group(0)}")

        tag = element.tag.rsplit("}", 1)[-1]
        expected = ELEMENT_ARITY.get(tag)
        if expected is not None and len(element) != expected:
            raise MathRenderError(
                expression, f"<{tag}> needs {expected} operands, got {len(element)}"
            )


# ============================================================================
# Utility Functions
# ============================================================================

def extract_math_fragment(markup: str) -> Optional[str]:
    """
    Pull the first <math> element out of renderer output.

    Any ``application/x-tex`` source annotation is removed.

    Args:
        markup: Renderer output

    Returns:
        The cleaned <math> element, or None if there is none
    """
    if not markup:
        return None

    match = MATH_ELEMENT_RE.search(markup)
    if not match:
        return None

    return TEX_ANNOTATION_RE.sub("", match.group(0), count=1)
