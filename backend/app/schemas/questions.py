"""
Pydantic schemas for question endpoints.

The public question view carries everything a client needs to render and
time a question, and nothing that reveals the answer.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class QuestionResponse(BaseModel):
    """Schema for a question as shown to the quiz taker."""

    id: int = Field(..., description="Question ID")
    index: int = Field(..., description="Zero-based position in the quiz")
    question_type: str = Field(
        ..., description="Category of question (pattern, logic, etc.)"
    )
    question_type_label: str = Field(
        ..., description="Human-readable category (e.g. 'Pattern Recognition')"
    )
    answer_type: str = Field(
        ...,
        description="Answer format (multiple_choice, sequence, true_false, slider, order, multi_select)",
    )
    question: str = Field(..., description="The question prompt")
    difficulty: int = Field(..., ge=1, le=5, description="Difficulty level 1-5")
    difficulty_label: str = Field(..., description="Difficulty label (e.g. 'Hard')")
    time_limit: int = Field(..., description="Seconds allowed for this question")

    # Variant fields; only those of the question's answer type are set
    options: Optional[List[str]] = Field(
        None, description="Answer options (multiple_choice, sequence, multi_select)"
    )
    sequence: Optional[List[str]] = Field(
        None, description="Displayed sequence terms, '?' marks the blank"
    )
    statement: Optional[str] = Field(
        None, description="Statement to judge (true_false)"
    )
    min: Optional[float] = Field(None, description="Slider minimum")
    max: Optional[float] = Field(None, description="Slider maximum")
    step: Optional[float] = Field(None, description="Slider step")
    unit: Optional[str] = Field(None, description="Slider unit label")
    items: Optional[List[str]] = Field(None, description="Items to order")
    min_selections: Optional[int] = Field(
        None, description="Minimum selections (multi_select)"
    )
    max_selections: Optional[int] = Field(
        None, description="Maximum selections (multi_select)"
    )


class QuestionCatalogResponse(BaseModel):
    """Schema for the full quiz catalog in quiz order."""

    questions: List[QuestionResponse] = Field(
        ..., description="Questions in the order they are asked"
    )
    total_count: int = Field(..., description="Number of questions in the quiz")
    total_time_limit: int = Field(
        ..., description="Sum of per-question time limits, in seconds"
    )
