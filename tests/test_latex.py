"""Tests for formaldoc LaTeX module."""

from dataclasses import fields, is_dataclass

import pytest

from formaldoc.elements import EquationRun, TextRun
from formaldoc.latex import (
    LatexRenderError,
    check_latex,
    latex_to_math,
    latex_to_omml,
    render_mathml,
)
from formaldoc.mathmodel import MathFraction, MathRadical, plain_text


def walk(children):
    """Yield every node of a math tree, depth first."""
    for node in children:
        if isinstance(node, tuple):
            yield from walk(node)
            continue
        if not is_dataclass(node):
            continue
        yield node
        for f in fields(node):
            value = getattr(node, f.name)
            if isinstance(value, tuple):
                yield from walk(value)


class TestCheckLatex:
    """Tests for check_latex function."""

    def test_valid(self):
        """Test well-formed formulas pass."""
        check_latex(r"\frac{a}{b}")
        check_latex(r"\{ x \}")
        check_latex(r"\begin{matrix} a & b \end{matrix}")

    def test_blank(self):
        """Test blank formulas are rejected."""
        with pytest.raises(LatexRenderError):
            check_latex("   ")

    def test_unclosed_brace(self):
        """Test a missing closing brace is rejected."""
        with pytest.raises(LatexRenderError):
            check_latex(r"\frac{a}{")

    def test_extra_closing_brace(self):
        """Test a stray closing brace is rejected."""
        with pytest.raises(LatexRenderError):
            check_latex("a}")

    def test_trailing_backslash(self):
        """Test a dangling backslash is rejected."""
        with pytest.raises(LatexRenderError):
            check_latex("x + \\")

    def test_known_commands(self):
        """Test commands and symbols latex2mathml renders are accepted."""
        check_latex(r"\alpha \neq \beta \cdot \sin x")
        check_latex(r"\sqrt[3]{x} + \left( \mathrm{d} \right)")
        check_latex(r"a \\ b \, c")

    def test_undefined_command(self):
        """Test an undefined control sequence is rejected."""
        with pytest.raises(LatexRenderError, match="Undefined control sequence"):
            check_latex(r"\unknowncmd{x}")
        with pytest.raises(LatexRenderError):
            check_latex(r"\fracc{a}{b}")

    def test_unmatched_environment(self):
        """Test an environment without its end is rejected."""
        with pytest.raises(LatexRenderError):
            check_latex(r"\begin{matrix} a & b")


class TestRenderMathml:
    """Tests for render_mathml function."""

    def test_inline(self):
        """Test inline rendering produces MathML."""
        result = render_mathml("x^2")
        assert "<math" in result
        assert "msup" in result

    def test_display(self):
        """Test display rendering marks the block."""
        assert 'display="block"' in render_mathml("x^2", display=True)

    def test_malformed_raises(self):
        """Test malformed input raises instead of rendering."""
        with pytest.raises(LatexRenderError):
            render_mathml(r"\frac{a}{")


class TestLatexToOmml:
    """Tests for latex_to_omml function."""

    def test_simple_formula(self):
        """Test simple formula conversion."""
        result = latex_to_omml("x^2")
        assert result is not None
        assert "<m:" in result  # OMML namespace

    def test_fraction(self):
        """Test fraction conversion."""
        result = latex_to_omml(r"\frac{1}{2}")
        assert result is not None
        assert "m:f" in result

    def test_sqrt(self):
        """Test square root conversion."""
        result = latex_to_omml(r"\sqrt{x}")
        assert result is not None

    def test_greek_letters(self):
        """Test Greek letter conversion."""
        assert latex_to_omml(r"\alpha + \beta") is not None

    def test_subscript_superscript(self):
        """Test subscript and superscript."""
        assert latex_to_omml(r"x_1^2") is not None

    def test_invalid_latex_returns_none(self):
        """Test invalid LaTeX returns None."""
        assert latex_to_omml(r"\frac{a}{") is None


class TestLatexToMath:
    """Tests for latex_to_math function."""

    def test_equation_run(self):
        """Test a valid formula becomes an equation run."""
        run = latex_to_math("x^2")
        assert isinstance(run, EquationRun)
        assert run.display is False
        assert run.latex == "x^2"
        assert "x" in plain_text(run.children)
        assert "2" in plain_text(run.children)

    def test_display_flag(self):
        """Test the display flag is carried on the run."""
        run = latex_to_math("E = mc^2", display=True)
        assert isinstance(run, EquationRun)
        assert run.display is True

    def test_fraction_structure(self):
        """Test a fraction is kept as a fraction node."""
        run = latex_to_math(r"\frac{1}{2}")
        fractions = [node for node in walk(run.children) if isinstance(node, MathFraction)]
        assert len(fractions) == 1
        assert plain_text(fractions[0].numerator) == "1"
        assert plain_text(fractions[0].denominator) == "2"

    def test_square_root(self):
        """Test a square root has no degree."""
        run = latex_to_math(r"\sqrt{x}")
        radicals = [node for node in walk(run.children) if isinstance(node, MathRadical)]
        assert len(radicals) == 1
        assert radicals[0].degree is None

    def test_comparison_operators(self):
        """Test < and > inside formulas survive the escaping repair."""
        run = latex_to_math("a < b > c")
        assert isinstance(run, EquationRun)
        assert "<" in plain_text(run.children)
        assert ">" in plain_text(run.children)

    def test_fallback(self):
        """Test a malformed formula falls back to italic raw LaTeX."""
        run = latex_to_math(r"\frac{a}{")
        assert run == TextRun(text=r"\frac{a}{", italic=True)

    def test_undefined_command_falls_back(self):
        """Test a formula with an undefined command keeps its raw LaTeX."""
        assert latex_to_math(r"\unknowncmd{x}") == TextRun(text=r"\unknowncmd{x}", italic=True)
        assert latex_to_omml(r"\fracc{a}{b}") is None

    def test_blank_fallback(self):
        """Test a blank formula falls back to a text run."""
        assert isinstance(latex_to_math(""), TextRun)
