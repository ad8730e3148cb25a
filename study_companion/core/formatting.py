"""Text helpers shared by the quiz generator, the error-note log and the study timer."""

import re

LINE_BREAK_ESCAPE = "\\\\"
INTEGRATION_CONSTANT = " + C"


def format_coefficient(coef: int, variable: str = "", is_first: bool = False, is_final: bool = False) -> str:
    """
    Render one signed polynomial term.

    - A coefficient of 1 is dropped in front of a variable, never on a constant.
    - Negative terms always carry " - "; positive terms carry " + " unless
      they lead the expression.
    - The leading term is trimmed so that the expression starts with the
      coefficient (or with "- " when negative).
    - A final term gets the integration constant appended.

    Input: coef (int), variable (str, e.g. "x²" or "" for a constant),
           is_first (bool), is_final (bool)
    Output: str (e.g. "x²", " - 3x", " + 2x² + C")
    """
    if coef == 0:
        return INTEGRATION_CONSTANT if is_final else ""

    abs_coef = abs(coef)
    coef_str = "" if variable and abs_coef == 1 else str(abs_coef)

    if coef < 0:
        sign = " - "
    elif is_first:
        sign = ""
    else:
        sign = " + "

    result = f"{sign}{coef_str}{variable}"
    if is_first:
        result = result.strip()
        if result.startswith("+"):
            result = result[1:].lstrip()

    if is_final:
        result += INTEGRATION_CONSTANT
    return result


def join_terms(*terms: str) -> str:
    """Concatenate formatted terms into a trimmed expression."""
    return "".join(terms).strip()


def format_quiz_text(text: str) -> str:
    """Turn the literal line-break escape used in question prompts into newlines."""
    if not text:
        return ""
    return text.replace(LINE_BREAK_ESCAPE, "\n")


def clean_note_text(text: str) -> str:
    # error notes are shown without LaTeX leftovers
    if not text:
        return ""
    return re.sub(r"[$\\]", "", text)


def format_study_time(total_seconds: int) -> str:
    """Format seconds as 'HH시간 MM분 SS초'."""
    hours, remainder = divmod(int(total_seconds), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}시간 {minutes:02d}분 {seconds:02d}초"
