"""
Utility functions for converting bank questions to API schemas.
"""

from app.core.question_bank import (
    MultiSelectQuestion,
    MultipleChoiceQuestion,
    OrderQuestion,
    Question,
    SequenceQuestion,
    SliderQuestion,
    TrueFalseQuestion,
    get_difficulty_label,
    get_question_type_label,
)
from app.schemas.questions import QuestionResponse


def question_to_response(question: Question, index: int) -> QuestionResponse:
    """
    Convert a bank question to its public QuestionResponse.

    Only the display fields of the question's variant are copied; correct
    answers, correct orders and slider tolerances never leave the server.

    Args:
        question: The question to convert
        index: Zero-based position of the question in the quiz

    Returns:
        QuestionResponse with the variant's display fields set
    """
    data = {
        "id": question.id,
        "index": index,
        "question_type": question.type.value,
        "question_type_label": get_question_type_label(question.type),
        "answer_type": question.answer_type.value,
        "question": question.question,
        "difficulty": question.difficulty,
        "difficulty_label": get_difficulty_label(question.difficulty),
        "time_limit": question.time_limit,
    }

    if isinstance(question, SequenceQuestion):
        data["sequence"] = list(question.sequence)
        data["options"] = list(question.options)
    elif isinstance(question, MultipleChoiceQuestion):
        data["options"] = list(question.options)
    elif isinstance(question, TrueFalseQuestion):
        data["statement"] = question.statement
    elif isinstance(question, SliderQuestion):
        data["min"] = question.min
        data["max"] = question.max
        data["step"] = question.step
        data["unit"] = question.unit
    elif isinstance(question, OrderQuestion):
        data["items"] = list(question.items)
    elif isinstance(question, MultiSelectQuestion):
        data["options"] = list(question.options)
        data["min_selections"] = question.min_selections
        data["max_selections"] = question.max_selections

    return QuestionResponse.model_validate(data)
