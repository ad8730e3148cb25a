import logging
import random
import time
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from study_companion.config import Config
from study_companion.core.formatting import format_coefficient as term, join_terms
from study_companion.core.vocabulary import VOCABULARY, VocabEntry
from study_companion.models.schemas import AnswerKind, QuizItem, Subject

logger = logging.getLogger(__name__)

_default_rng = random.Random()

# Inclusive bounds for the per-item template parameters.
PARAMETER_RANGES: Dict[str, Tuple[int, int]] = {
    "a": (1, 3),
    "b": (2, 6),
    "c": (1, 5),
    "d": (1, 10),
    "k": (1, 3),
}

FILLER_LABEL = "다른 답안"


class QuestionDraft(NamedTuple):
    text: str
    unit: str
    answer: str
    distractors: List[str]
    kind: AnswerKind


class MathTemplate(NamedTuple):
    build: Callable[..., QuestionDraft]
    args: Callable[[Dict[str, int]], Tuple[int, ...]]


def _derivative_of_cubic(a: int, b: int, d: int) -> QuestionDraft:
    polynomial = join_terms(term(a, "x³", True), term(b, "x"), term(d))
    answer = join_terms(term(3 * a, "x²", True), term(b))
    return QuestionDraft(
        text=f"함수 f(x) = {polynomial}의 도함수 f'(x)를 구하시오.",
        unit="미분 연산",
        answer=answer,
        distractors=[
            join_terms(term(3 * a, "x²", True), term(b, "x")),  # linear term not lowered
            join_terms(term(a, "x²", True), term(b)),  # exponent not multiplied in
            join_terms(term(3 * a, "x²", True), term(b + d)),  # constant not dropped
            join_terms(term(a, "x³", True), term(b)),
        ],
        kind=AnswerKind.ALGEBRAIC,
    )


def _tangent_slope(a: int, b: int, c: int) -> QuestionDraft:
    curve = join_terms(term(a, "x²", True), term(-b, "x"), term(c))
    answer = 4 * a - b
    return QuestionDraft(
        text=f"곡선 y = {curve} 위의 x=2인 지점에서의 접선의 기울기를 구하시오.",
        unit="미분계수",
        answer=str(answer),
        distractors=[
            str(4 * a - 2 * b + c),  # y(2) instead of y'(2)
            str(2 * a - b),  # slope at x=1
            str(4 * a + b),
        ],
        kind=AnswerKind.NUMERIC,
    )


def _integral_of_quadratic(a: int, b: int) -> QuestionDraft:
    integrand = join_terms(term(3 * a, "x²", True), term(2 * b, "x"))
    answer = join_terms(term(a, "x³", True), term(b, "x²", is_final=True))
    return QuestionDraft(
        text=f"부정적분 ∫ ({integrand}) dx를 구하시오.",
        unit="부정적분",
        answer=answer,
        distractors=[
            join_terms(term(3 * a, "x³", True), term(2 * b, "x²", is_final=True)),  # not divided
            join_terms(term(6 * a, "x", True), term(2 * b, is_final=True)),  # differentiated
            join_terms(term(a, "x³", True), term(b, "x²")),  # constant dropped
        ],
        kind=AnswerKind.ALGEBRAIC,
    )


def _derivative_at_one(a: int, b: int) -> QuestionDraft:
    polynomial = join_terms(term(a, "x³", True), term(-b, "x²"), term(5))
    answer = 3 * a - 2 * b
    return QuestionDraft(
        text=f"함수 f(x) = {polynomial}에 대하여 x=1에서의 미분계수 f'(1)을 구하시오.",
        unit="미분계수",
        answer=str(answer),
        distractors=[
            str(a - b + 5),  # f(1)
            str(3 * a - b),
            str(3 * a + 2 * b),
        ],
        kind=AnswerKind.NUMERIC,
    )


def _integral_of_cubic(a: int, b: int) -> QuestionDraft:
    integrand = join_terms(term(4 * a, "x³", True), term(2 * b, "x"))
    answer = join_terms(term(a, "x⁴", True), term(b, "x²", is_final=True))
    return QuestionDraft(
        text=f"부정적분 ∫ ({integrand}) dx를 구하시오.",
        unit="부정적분",
        answer=answer,
        distractors=[
            join_terms(term(a, "x³", True), term(b, "x")),  # degree not raised
            join_terms(term(4 * a, "x⁴", True), term(2 * b, "x²", is_final=True)),
            join_terms(term(a, "x⁴", True), term(b, "x²")),
        ],
        kind=AnswerKind.ALGEBRAIC,
    )


def _derivative_of_product(a: int, b: int, k: int) -> QuestionDraft:
    # (x² + a)(kx - b) = kx³ - bx² + akx - ab
    factor = join_terms(term(k, "x", True), term(-b))
    answer = join_terms(term(3 * k, "x²", True), term(-2 * b, "x"), term(a * k))
    return QuestionDraft(
        text=f"함수 f(x) = (x² + {a})({factor})의 도함수 f'(x)를 구하시오.",
        unit="미분 연산",
        answer=answer,
        distractors=[
            term(2 * k, "x", True),  # product of the derivatives
            join_terms(term(3 * k, "x²", True), term(-b, "x"), term(a * k)),
            join_terms(term(3 * k, "x²", True), term(a * k)),
        ],
        kind=AnswerKind.ALGEBRAIC,
    )


MATH_TEMPLATES: List[MathTemplate] = [
    MathTemplate(_derivative_of_cubic, lambda p: (p["a"], p["b"], p["d"])),
    MathTemplate(_tangent_slope, lambda p: (p["a"], p["b"], p["c"])),
    MathTemplate(_integral_of_quadratic, lambda p: (p["a"], p["b"])),
    MathTemplate(_derivative_at_one, lambda p: (p["a"], p["b"])),
    MathTemplate(_integral_of_cubic, lambda p: (p["a"], 2 * p["b"])),
    MathTemplate(_derivative_of_product, lambda p: (p["a"], p["b"], p["k"])),
]


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


def infer_answer_kind(answer: str) -> AnswerKind:
    """Guess the kind of an answer that was not tagged by its template."""
    if "x" in answer or "C" in answer:
        return AnswerKind.ALGEBRAIC
    if len(answer) < 5 and _parse_int(answer) is not None:
        return AnswerKind.NUMERIC
    return AnswerKind.TEXT


def make_options_unique_and_shuffle(
    correct_answer: str,
    raw_options: Sequence[str],
    kind: Optional[AnswerKind] = None,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """
    Build exactly four distinct answer options that include the correct answer.

    Raw options are trimmed and de-duplicated against the correct answer;
    missing slots are filled with kind-specific fillers and the result is
    shuffled with the given random source.

    Input: correct_answer (str, non-empty after trim), raw_options (Sequence[str]),
           kind (Optional[AnswerKind], inferred when missing), rng (Optional[random.Random])
    Output: List[str] of length 4
    """
    rng = rng or _default_rng
    answer = correct_answer.strip()
    if not answer:
        raise ValueError("correct_answer must not be empty")
    kind = kind or infer_answer_kind(answer)

    options = [answer]
    for option in raw_options:
        option = option.strip()
        if option and option not in options:
            options.append(option)

    filler_count = 0
    misses = 0
    numeric_answer = _parse_int(answer) if kind == AnswerKind.NUMERIC else None
    while len(options) < Config.OPTION_COUNT:
        if kind == AnswerKind.ALGEBRAIC:
            filler_count += 1
            filler = f"{FILLER_LABEL} {filler_count}"
        elif numeric_answer is not None:
            direction = 1 if len(options) % 2 == 0 else -1
            filler = str(numeric_answer + direction * (1 + misses))
        else:
            filler = str(len(options) * 1000 + rng.randint(1, 99))

        if filler in options:
            misses += 1
            continue
        options.append(filler)

    options = options[:Config.OPTION_COUNT]
    rng.shuffle(options)
    return options


def _draw_parameters(rng: random.Random) -> Dict[str, int]:
    return {name: rng.randint(low, high) for name, (low, high) in PARAMETER_RANGES.items()}


def _item_id(prefix: str, index: int) -> str:
    return f"{prefix}-{index}-{time.time_ns()}"


def generate_math_quiz(rng: Optional[random.Random] = None, count: int = Config.QUIZ_SIZE) -> List[QuizItem]:
    """
    Generate a batch of math items from randomly chosen templates.

    Per item the random source yields, in order: the template index, then
    the parameters a, b, c, d and k.
    """
    rng = rng or _default_rng
    items = []
    for index in range(count):
        template = MATH_TEMPLATES[rng.randint(0, len(MATH_TEMPLATES) - 1)]
        params = _draw_parameters(rng)
        draft = template.build(*template.args(params))

        items.append(QuizItem(
            id=_item_id("math-gen", index),
            text=draft.text,
            subject=Subject.MATH,
            unit=draft.unit,
            answer=draft.answer.strip(),
            options=make_options_unique_and_shuffle(draft.answer, draft.distractors, draft.kind, rng),
        ))
    return items


def generate_english_quiz(
    rng: Optional[random.Random] = None,
    bank: Sequence[VocabEntry] = VOCABULARY,
    count: int = Config.QUIZ_SIZE,
) -> List[QuizItem]:
    """
    Generate vocabulary items without repeating a word.

    Returns fewer than `count` items once the bank runs out of unused words.
    """
    rng = rng or _default_rng
    items = []
    used_words = set()

    while len(items) < count:
        pool = [entry for entry in bank if entry.word not in used_words]
        if not pool:
            break

        chosen = pool[rng.randint(0, len(pool) - 1)]
        used_words.add(chosen.word)

        wrong_meanings = [entry.meaning for entry in bank
                          if entry.word != chosen.word and entry.meaning != chosen.meaning]
        distractors = rng.sample(wrong_meanings, min(Config.OPTION_COUNT - 1, len(wrong_meanings)))

        items.append(QuizItem(
            id=_item_id("eng-gen", len(items)),
            text=f"'{chosen.word}'의 가장 정확한 한국어 뜻은 무엇인가요?",
            subject=Subject.ENGLISH,
            unit="영단어",
            answer=chosen.meaning.strip(),
            options=make_options_unique_and_shuffle(chosen.meaning, distractors, AnswerKind.TEXT, rng),
        ))

    if len(items) < count:
        logger.info(f"Vocabulary bank exhausted after {len(items)} items")
    return items


def generate_mixed_quiz(rng: Optional[random.Random] = None) -> List[QuizItem]:
    """Full math and english batches shuffled together."""
    rng = rng or _default_rng
    items = generate_math_quiz(rng) + generate_english_quiz(rng)
    rng.shuffle(items)
    return items
