"""
Tests for LaTeX to MathML rendering.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class TestExtractMathFragment:
    """Test extract_math_fragment()."""

    def test_strips_wrapper_and_annotation(self):
        from mathdoc.utils.math_render import extract_math_fragment

        markup = (
            '<span class="katex"><math xmlns="http://www.w3.org/1998/Math/MathML">'
            '<semantics><mi>x</mi>'
            '<annotation encoding="application/x-tex">x</annotation>'
            '</semantics></math></span>'
        )
        assert extract_math_fragment(markup) == (
            '<math xmlns="http://www.w3.org/1998/Math/MathML">'
            '<semantics><mi>x</mi></semantics></math>'
        )

    def test_first_math_element_only(self):
        from mathdoc.utils.math_render import extract_math_fragment

        markup = "<math><mi>a</mi></math><math><mi>b</mi></math>"
        assert extract_math_fragment(markup) == "<math><mi>a</mi></math>"

    def test_multiline_annotation(self):
        from mathdoc.utils.math_render import extract_math_fragment

        markup = (
            '<math><mi>a</mi><annotation encoding="application/x-tex">a\n+ b'
            '</annotation></math>'
        )
        assert extract_math_fragment(markup) == "<math><mi>a</mi></math>"

    def test_no_math_element(self):
        from mathdoc.utils.math_render import extract_math_fragment

        assert extract_math_fragment('<span class="katex-error">x</span>') is None
        assert extract_math_fragment("") is None
        assert extract_math_fragment(None) is None


class TestMathRenderError:

    def test_message(self):
        from mathdoc.utils.math_render import MathRenderError

        err = MathRenderError("\\frac{", "missing denominator")
        assert err.expression == "\\frac{"
        assert "missing denominator" in str(err)


class TestLatex2MathMLRenderer:
    """Test the latex2mathml-backed renderer."""

    @pytest.fixture
    def renderer(self):
        from mathdoc.utils.math_render import Latex2MathMLRenderer
        return Latex2MathMLRenderer()

    def test_inline(self, renderer):
        result = renderer.render("x^2", display_mode=False)

        assert result.startswith("<math")
        assert 'display="inline"' in result
        assert "<msup>" in result

    def test_display(self, renderer):
        result = renderer.render("\\frac{a}{b}", display_mode=True)

        assert 'display="block"' in result
        assert "<mfrac>" in result

    def test_library_errors_are_wrapped(self, renderer, monkeypatch):
        from mathdoc.utils.math_render import MathRenderError

        def broken(expression, display="inline"):
            raise ValueError("bad token")

        monkeypatch.setattr(renderer, "_convert", broken)

        with pytest.raises(MathRenderError) as exc:
            renderer.render("\\frac{1}{")
        assert "bad token" in str(exc.value)

    @pytest.mark.parametrize("expression,reason", [
        ("\\frac{1}", "mfrac"),
        ("}", "unexpected"),
        ("\\notacommand{x}", "\\notacommand"),
    ])
    def test_malformed_expressions_rejected(self, renderer, expression, reason):
        from mathdoc.utils.math_render import MathRenderError

        with pytest.raises(MathRenderError) as exc:
            renderer.render(expression)
        assert exc.value.expression == expression
        assert reason in str(exc.value)

    @pytest.mark.parametrize("expression", [
        "\\frac{a}{b}",
        "x_i^2",
        "\\sqrt[3]{x}",
        "\\int_0^1 f(x)\\,dx",
        "\\{1, 2\\}",
        "\\alpha + \\beta",
    ])
    def test_wellformed_expressions_accepted(self, renderer, expression):
        from mathdoc.utils.math_render import extract_math_fragment

        assert extract_math_fragment(renderer.render(expression)) is not None


class TestValidation:
    """Test check_braces() and validate_mathml()."""

    def test_escaped_braces_not_counted(self):
        from mathdoc.utils.math_render import check_braces

        check_braces("\\{x\\}")
        check_braces("\\\\{x}")

    def test_unbalanced_braces(self):
        from mathdoc.utils.math_render import check_braces, MathRenderError

        with pytest.raises(MathRenderError):
            check_braces("{x")
        with pytest.raises(MathRenderError):
            check_braces("x}{")

    def test_missing_operand(self):
        from mathdoc.utils.math_render import validate_mathml, MathRenderError

        markup = '<math xmlns="http://www.w3.org/1998/Math/MathML"><msup><mi>x</mi></msup></math>'
        with pytest.raises(MathRenderError, match="msup"):
            validate_mathml("x^", markup)

    def test_control_word_in_output(self):
        from mathdoc.utils.math_render import validate_mathml, MathRenderError

        with pytest.raises(MathRenderError, match="foo"):
            validate_mathml("\\foo", "<math><mi>\\foo</mi></math>")

    def test_bare_ampersand_tolerated(self):
        from mathdoc.utils.math_render import validate_mathml

        validate_mathml("a \\& b", "<math><mi>a</mi><mo>&</mo><mi>b</mi><mo>&#x0221E;</mo></math>")

    def test_invalid_markup(self):
        from mathdoc.utils.math_render import validate_mathml, MathRenderError

        with pytest.raises(MathRenderError, match="invalid MathML"):
            validate_mathml("x", "<math><mi>x</math>")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
