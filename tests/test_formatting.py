"""
Tests for the expression and display formatting helpers.
"""

from study_companion.core.formatting import (
    clean_note_text, format_coefficient, format_quiz_text, format_study_time, join_terms
)


class TestFormatCoefficient:
    """Rendering of single polynomial terms."""

    def test_zero_coefficient_renders_empty(self):
        assert format_coefficient(0, 'x²', False, False) == ''

    def test_zero_final_term_renders_integration_constant(self):
        assert format_coefficient(0, '', False, True) == ' + C'

    def test_leading_unit_coefficient_is_omitted(self):
        assert format_coefficient(1, 'x²', True, False) == 'x²'

    def test_negative_term_keeps_separator(self):
        assert format_coefficient(-3, 'x', False, False) == ' - 3x'
        assert join_terms(format_coefficient(-3, 'x')) == '- 3x'

    def test_unit_constant_keeps_its_digit(self):
        assert format_coefficient(1, '') == ' + 1'
        assert format_coefficient(-1, '') == ' - 1'

    def test_negative_leading_term(self):
        assert format_coefficient(-1, 'x', True) == '- x'

    def test_positive_inner_term(self):
        assert format_coefficient(4, 'x³') == ' + 4x³'

    def test_final_term_appends_constant(self):
        assert format_coefficient(2, 'x²', False, True) == ' + 2x² + C'

    def test_terms_compose_into_expression(self):
        expression = join_terms(format_coefficient(6, 'x²', True), format_coefficient(3))
        assert expression == '6x² + 3'

    def test_integral_expression(self):
        expression = join_terms(format_coefficient(1, 'x³', True), format_coefficient(3, 'x²', is_final=True))
        assert expression == 'x³ + 3x² + C'


class TestDisplayHelpers:

    def test_quiz_text_line_break(self):
        assert format_quiz_text("첫 줄\\\\둘째 줄") == "첫 줄\n둘째 줄"

    def test_quiz_text_empty(self):
        assert format_quiz_text("") == ""

    def test_clean_note_text_strips_latex_marks(self):
        assert clean_note_text("$x^2$ \\frac") == "x^2 frac"

    def test_study_time_format(self):
        assert format_study_time(3725) == "01시간 02분 05초"
        assert format_study_time(0) == "00시간 00분 00초"
