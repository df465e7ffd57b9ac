"""
Question catalog endpoints.
"""
from fastapi import APIRouter

from app.core.question_bank import default_bank
from app.core.question_utils import question_to_response
from app.schemas.questions import QuestionCatalogResponse

router = APIRouter()


@router.get("", response_model=QuestionCatalogResponse)
async def list_questions():
    """
    Get the quiz questions in the order they are asked.

    The catalog is static and public. Correct answers are not included;
    answers are evaluated by the quiz engine.

    Returns:
        Questions with display fields, total count and total time budget
    """
    questions = [
        question_to_response(question, index)
        for index, question in enumerate(default_bank)
    ]
    return QuestionCatalogResponse(
        questions=questions,
        total_count=len(default_bank),
        total_time_limit=default_bank.total_time_limit(),
    )
