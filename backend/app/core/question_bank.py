"""
Question bank for the timed IQ quiz.

The quiz is a fixed, ordered catalog of heterogeneous questions. Each question
is one variant of a tagged union keyed on its answer type:

==================  =====================================================
answer_type         variant fields
==================  =====================================================
multiple_choice     options, correct_answer (index)
sequence            sequence (displayed terms), options, correct_answer
true_false          statement, correct_answer (bool)
slider              min, max, step, correct_answer, tolerance, unit
order               items, correct_order (permutation of item indices)
multi_select        options, correct_answers, min/max_selections
==================  =====================================================

The catalog order defines difficulty progression (warmup, medium, hard,
elite). It is a property of the data: nothing downstream re-sorts it.

Questions validate their own shape on construction, so a malformed catalog
fails at import rather than mid-quiz.
"""
from dataclasses import dataclass
from typing import ClassVar, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from libs.domain_types import AnswerType, EngagementKind, QuestionType


MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


def _check_index(value: int, size: int, field_name: str, question_id: int) -> None:
    if not 0 <= value < size:
        raise ValueError(
            f"Question {question_id}: {field_name} index {value} is out of range "
            f"for {size} options"
        )


@dataclass(frozen=True)
class BaseQuestion:
    """Fields shared by every question variant."""

    id: int
    type: QuestionType
    question: str
    difficulty: int  # 1-5, advisory only
    time_limit: int  # seconds

    answer_type: ClassVar[AnswerType]

    def __post_init__(self) -> None:
        if self.id <= 0:
            raise ValueError(f"Question id must be positive, got {self.id}")
        if not MIN_DIFFICULTY <= self.difficulty <= MAX_DIFFICULTY:
            raise ValueError(
                f"Question {self.id}: difficulty must be between "
                f"{MIN_DIFFICULTY} and {MAX_DIFFICULTY}, got {self.difficulty}"
            )
        if self.time_limit <= 0:
            raise ValueError(
                f"Question {self.id}: time_limit must be positive, got {self.time_limit}"
            )
        self._validate_variant()

    def _validate_variant(self) -> None:
        """Validate variant-specific fields. Overridden by each variant."""


@dataclass(frozen=True)
class MultipleChoiceQuestion(BaseQuestion):
    options: Tuple[str, ...]
    correct_answer: int

    answer_type: ClassVar[AnswerType] = AnswerType.MULTIPLE_CHOICE

    def _validate_variant(self) -> None:
        if len(self.options) < 2:
            raise ValueError(f"Question {self.id}: needs at least two options")
        _check_index(self.correct_answer, len(self.options), "correct_answer", self.id)


@dataclass(frozen=True)
class SequenceQuestion(BaseQuestion):
    sequence: Tuple[str, ...]
    options: Tuple[str, ...]
    correct_answer: int

    answer_type: ClassVar[AnswerType] = AnswerType.SEQUENCE

    def _validate_variant(self) -> None:
        if not self.sequence:
            raise ValueError(f"Question {self.id}: sequence cannot be empty")
        if len(self.options) < 2:
            raise ValueError(f"Question {self.id}: needs at least two options")
        _check_index(self.correct_answer, len(self.options), "correct_answer", self.id)


@dataclass(frozen=True)
class TrueFalseQuestion(BaseQuestion):
    statement: str
    correct_answer: bool

    answer_type: ClassVar[AnswerType] = AnswerType.TRUE_FALSE

    def _validate_variant(self) -> None:
        if not self.statement.strip():
            raise ValueError(f"Question {self.id}: statement cannot be empty")


@dataclass(frozen=True)
class SliderQuestion(BaseQuestion):
    min: float
    max: float
    step: float
    correct_answer: float
    tolerance: float = 0.0
    unit: Optional[str] = None

    answer_type: ClassVar[AnswerType] = AnswerType.SLIDER

    def _validate_variant(self) -> None:
        if self.min >= self.max:
            raise ValueError(
                f"Question {self.id}: slider min ({self.min}) must be below max ({self.max})"
            )
        if self.step <= 0:
            raise ValueError(f"Question {self.id}: slider step must be positive")
        if self.tolerance < 0:
            raise ValueError(f"Question {self.id}: tolerance cannot be negative")


@dataclass(frozen=True)
class OrderQuestion(BaseQuestion):
    items: Tuple[str, ...]
    correct_order: Tuple[int, ...]

    answer_type: ClassVar[AnswerType] = AnswerType.ORDER

    def _validate_variant(self) -> None:
        if len(self.items) < 2:
            raise ValueError(f"Question {self.id}: needs at least two items to order")
        if sorted(self.correct_order) != list(range(len(self.items))):
            raise ValueError(
                f"Question {self.id}: correct_order must be a permutation of "
                f"item indices 0..{len(self.items) - 1}"
            )


@dataclass(frozen=True)
class MultiSelectQuestion(BaseQuestion):
    options: Tuple[str, ...]
    correct_answers: Tuple[int, ...]
    min_selections: Optional[int] = None
    max_selections: Optional[int] = None

    answer_type: ClassVar[AnswerType] = AnswerType.MULTI_SELECT

    def _validate_variant(self) -> None:
        if not self.correct_answers:
            raise ValueError(f"Question {self.id}: needs at least one correct answer")
        if len(set(self.correct_answers)) != len(self.correct_answers):
            raise ValueError(f"Question {self.id}: correct_answers contains duplicates")
        for index in self.correct_answers:
            _check_index(index, len(self.options), "correct_answers", self.id)
        if (
            self.min_selections is not None
            and self.max_selections is not None
            and self.min_selections > self.max_selections
        ):
            raise ValueError(
                f"Question {self.id}: min_selections cannot exceed max_selections"
            )


Question = Union[
    MultipleChoiceQuestion,
    SequenceQuestion,
    TrueFalseQuestion,
    SliderQuestion,
    OrderQuestion,
    MultiSelectQuestion,
]


QUESTION_TYPE_LABELS: Dict[QuestionType, str] = {
    QuestionType.PATTERN: "Pattern Recognition",
    QuestionType.LOGIC: "Logical Reasoning",
    QuestionType.VERBAL: "Verbal Intelligence",
    QuestionType.MATH: "Mathematical Ability",
    QuestionType.SPATIAL: "Spatial Awareness",
    QuestionType.MEMORY: "Working Memory",
    QuestionType.VISUAL: "Visual Perception",
}

DIFFICULTY_LABELS: Dict[int, str] = {
    1: "Warmup",
    2: "Easy",
    3: "Medium",
    4: "Hard",
    5: "Elite",
}


def get_question_type_label(question_type: QuestionType) -> str:
    """Human-readable label for a question category."""
    return QUESTION_TYPE_LABELS[QuestionType(question_type)]


def get_difficulty_label(difficulty: int) -> str:
    """Human-readable label for a difficulty level (1-5)."""
    return DIFFICULTY_LABELS[difficulty]


class QuestionBank:
    """
    Read-only, ordered catalog of quiz questions.

    Indices are controlled by the quiz state machine, which never asks for an
    index outside ``0 <= index < len(bank)``.
    """

    def __init__(self, questions: Sequence[Question]):
        if not questions:
            raise ValueError("A question bank needs at least one question")

        by_id: Dict[int, Question] = {}
        for question in questions:
            if question.id in by_id:
                raise ValueError(f"Duplicate question id: {question.id}")
            by_id[question.id] = question

        self._questions: Tuple[Question, ...] = tuple(questions)
        self._by_id = by_id

    def get_question(self, index: int) -> Question:
        return self._questions[index]

    def get_by_id(self, question_id: int) -> Optional[Question]:
        return self._by_id.get(question_id)

    def length(self) -> int:
        return len(self._questions)

    def total_time_limit(self) -> int:
        """Sum of all per-question time limits, in seconds."""
        return sum(q.time_limit for q in self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)


# =============================================================================
# Default catalog
# =============================================================================

QUESTIONS: List[Question] = [
    # Warmup (1-3): build confidence
    SequenceQuestion(
        id=1,
        type=QuestionType.PATTERN,
        question="What comes next in the sequence?",
        sequence=("2", "4", "6", "8", "?"),
        options=("9", "10", "12", "14"),
        correct_answer=1,
        difficulty=1,
        time_limit=20,
    ),
    MultipleChoiceQuestion(
        id=2,
        type=QuestionType.VERBAL,
        question="Which word does NOT belong?",
        options=("Apple", "Banana", "Carrot", "Orange"),
        correct_answer=2,
        difficulty=1,
        time_limit=20,
    ),
    TrueFalseQuestion(
        id=3,
        type=QuestionType.LOGIC,
        question="Is the conclusion valid?",
        statement=(
            "All roses are flowers. Some flowers fade quickly. "
            "Therefore, all roses fade quickly."
        ),
        correct_answer=False,
        difficulty=2,
        time_limit=25,
    ),
    # Medium (4-13): core engagement
    SequenceQuestion(
        id=4,
        type=QuestionType.PATTERN,
        question="What comes next in the sequence?",
        sequence=("1", "1", "2", "3", "5", "8", "?"),
        options=("11", "12", "13", "15"),
        correct_answer=2,
        difficulty=2,
        time_limit=25,
    ),
    SliderQuestion(
        id=5,
        type=QuestionType.MATH,
        question=(
            "A shirt costs $20 after a 20% discount. What was the original price?"
        ),
        min=10,
        max=40,
        step=1,
        correct_answer=25,
        tolerance=0,
        unit="$",
        difficulty=3,
        time_limit=35,
    ),
    MultipleChoiceQuestion(
        id=6,
        type=QuestionType.SPATIAL,
        question=(
            "If you fold a square piece of paper in half diagonally, "
            "what shape do you get?"
        ),
        options=("Rectangle", "Triangle", "Pentagon", "Trapezoid"),
        correct_answer=1,
        difficulty=2,
        time_limit=20,
    ),
    OrderQuestion(
        id=7,
        type=QuestionType.LOGIC,
        question=(
            "Tom is taller than Jim. Jim is taller than Sam. "
            "Order them from tallest to shortest."
        ),
        items=("Sam", "Tom", "Jim"),
        correct_order=(1, 2, 0),
        difficulty=2,
        time_limit=30,
    ),
    MultipleChoiceQuestion(
        id=8,
        type=QuestionType.VERBAL,
        question="DOCTOR is to PATIENT as TEACHER is to:",
        options=("School", "Student", "Education", "Classroom"),
        correct_answer=1,
        difficulty=2,
        time_limit=25,
    ),
    MultipleChoiceQuestion(
        id=9,
        type=QuestionType.MEMORY,
        question="Read once: 7 3 9 1 5. What was the third number?",
        options=("3", "9", "1", "7"),
        correct_answer=1,
        difficulty=2,
        time_limit=20,
    ),
    MultipleChoiceQuestion(
        id=10,
        type=QuestionType.VISUAL,
        question=(
            "A clock shows 3:00. What is the angle between the hour and minute hands?"
        ),
        options=("45°", "60°", "90°", "120°"),
        correct_answer=2,
        difficulty=2,
        time_limit=25,
    ),
    MultiSelectQuestion(
        id=11,
        type=QuestionType.MATH,
        question="Select all the prime numbers.",
        options=("2", "9", "11", "15", "17", "21"),
        correct_answers=(0, 2, 4),
        min_selections=1,
        difficulty=3,
        time_limit=35,
    ),
    SequenceQuestion(
        id=12,
        type=QuestionType.PATTERN,
        question="What comes next in the sequence?",
        sequence=("3", "6", "11", "18", "27", "?"),
        options=("36", "38", "39", "42"),
        correct_answer=1,
        difficulty=3,
        time_limit=35,
    ),
    MultipleChoiceQuestion(
        id=13,
        type=QuestionType.LOGIC,
        question=(
            "If it takes 5 machines 5 minutes to make 5 widgets, how long would "
            "it take 100 machines to make 100 widgets?"
        ),
        options=("1 minute", "5 minutes", "20 minutes", "100 minutes"),
        correct_answer=1,
        difficulty=4,
        time_limit=45,
    ),
    # Hard (14-20): challenge zone
    SliderQuestion(
        id=14,
        type=QuestionType.SPATIAL,
        question="How many edges does a cube have?",
        min=0,
        max=24,
        step=1,
        correct_answer=12,
        tolerance=0,
        difficulty=3,
        time_limit=30,
    ),
    TrueFalseQuestion(
        id=15,
        type=QuestionType.VERBAL,
        question="True or false?",
        statement="'Ephemeral' means lasting for a very short time.",
        correct_answer=True,
        difficulty=3,
        time_limit=20,
    ),
    SliderQuestion(
        id=16,
        type=QuestionType.MATH,
        question="If 3x + 7 = 22, what is x?",
        min=0,
        max=10,
        step=0.5,
        correct_answer=5,
        tolerance=0,
        difficulty=3,
        time_limit=30,
    ),
    MultipleChoiceQuestion(
        id=17,
        type=QuestionType.LOGIC,
        question=(
            "In a race, you overtake the person in 2nd place. "
            "What position are you in now?"
        ),
        options=("1st", "2nd", "3rd", "4th"),
        correct_answer=1,
        difficulty=3,
        time_limit=30,
    ),
    OrderQuestion(
        id=18,
        type=QuestionType.MEMORY,
        question=(
            "Earlier you read the digits 7 3 9 1 5. "
            "Arrange them in the order they appeared."
        ),
        items=("9", "7", "5", "3", "1"),
        correct_order=(1, 3, 0, 4, 2),
        difficulty=4,
        time_limit=35,
    ),
    MultiSelectQuestion(
        id=19,
        type=QuestionType.VISUAL,
        question=(
            "Which letters look the same when reflected in a vertical mirror?"
        ),
        options=("A", "B", "H", "K", "O", "R"),
        correct_answers=(0, 2, 4),
        min_selections=1,
        max_selections=4,
        difficulty=3,
        time_limit=30,
    ),
    SequenceQuestion(
        id=20,
        type=QuestionType.PATTERN,
        question="What comes next in the sequence?",
        sequence=("1", "4", "9", "16", "25", "?"),
        options=("30", "34", "36", "49"),
        correct_answer=2,
        difficulty=3,
        time_limit=30,
    ),
    # Elite (21-25): top-end filter
    SliderQuestion(
        id=21,
        type=QuestionType.LOGIC,
        question=(
            "A farmer has 17 sheep. All but 9 run away. How many sheep are left?"
        ),
        min=0,
        max=17,
        step=1,
        correct_answer=9,
        tolerance=0,
        difficulty=4,
        time_limit=30,
    ),
    MultipleChoiceQuestion(
        id=22,
        type=QuestionType.MATH,
        question="What is 15% of 15% of 1000?",
        options=("15", "22.5", "30", "225"),
        correct_answer=1,
        difficulty=4,
        time_limit=40,
    ),
    SequenceQuestion(
        id=23,
        type=QuestionType.PATTERN,
        question="What comes next in the sequence?",
        sequence=("1", "2", "6", "24", "120", "?"),
        options=("240", "480", "620", "720"),
        correct_answer=3,
        difficulty=5,
        time_limit=45,
    ),
    SliderQuestion(
        id=24,
        type=QuestionType.MATH,
        question="What is the average of 6, 8, 11 and 13?",
        min=5,
        max=15,
        step=0.5,
        correct_answer=9.5,
        tolerance=0,
        difficulty=4,
        time_limit=40,
    ),
    MultipleChoiceQuestion(
        id=25,
        type=QuestionType.LOGIC,
        question=(
            "Two fathers and two sons go fishing. They each catch one fish. "
            "They bring home 3 fish. How is this possible?"
        ),
        options=(
            "One fish escaped",
            "They are grandfather, father, and son",
            "They threw one back",
            "This is impossible",
        ),
        correct_answer=1,
        difficulty=5,
        time_limit=45,
    ),
]

default_bank = QuestionBank(QUESTIONS)


# =============================================================================
# Engagement interstitials
# =============================================================================


@dataclass(frozen=True)
class EngagementMessage:
    """A forced acknowledgment step shown between two questions."""

    message: str
    kind: EngagementKind


# Keyed by the number of questions completed when the message is shown
ENGAGEMENT_MESSAGES: Dict[int, EngagementMessage] = {
    5: EngagementMessage(
        message="Great start! You're warming up nicely.",
        kind=EngagementKind.ENCOURAGEMENT,
    ),
    10: EngagementMessage(
        message="10 down. You're ahead of most test takers at this point.",
        kind=EngagementKind.MILESTONE,
    ),
    15: EngagementMessage(
        message="The next questions get harder. Take a breath and stay focused.",
        kind=EngagementKind.CHALLENGE,
    ),
    20: EngagementMessage(
        message="Final stretch! Only 5 questions remain.",
        kind=EngagementKind.MILESTONE,
    ),
}


def get_engagement_message(
    questions_completed: int,
    messages: Optional[Dict[int, EngagementMessage]] = None,
) -> Optional[EngagementMessage]:
    """Look up the interstitial configured after ``questions_completed`` answers."""
    table = ENGAGEMENT_MESSAGES if messages is None else messages
    return table.get(questions_completed)
