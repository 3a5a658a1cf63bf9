"""
Shared fixtures and test doubles.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mathdoc.utils.math_render import MathRenderer, MathRenderError  # noqa: E402


class FakeRenderer(MathRenderer):
    """
    Deterministic stand-in for the typesetting library.

    Produces KaTeX-like output (wrapper span + TeX annotation) and fails on
    unbalanced braces.
    """

    def __init__(self):
        self.calls = []

    def render(self, expression, display_mode=False):
        self.calls.append((expression, display_mode))
        if expression.count("{") != expression.count("}"):
            raise MathRenderError(expression, "unbalanced braces")
        mode = "block" if display_mode else "inline"
        return (
            f'<span class="katex"><math display="{mode}"><semantics>'
            f'<mi>{expression}</mi>'
            f'<annotation encoding="application/x-tex">{expression}</annotation>'
            f'</semantics></math></span>'
        )


@pytest.fixture
def fake_renderer():
    return FakeRenderer()
