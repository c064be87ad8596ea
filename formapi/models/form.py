import datetime
from typing import List, Literal, Optional, Union

from pydantic import AliasChoices, Field, field_validator
from formapi.models.base import CamelModel

QuestionType = Literal["email", "paragraph", "mcq", "checkbox", "dropdown", "date", "time", "url"]
AnswerType = Literal["single", "multiple"]
FormType = Literal["blank_form", "party_invite", "contact_form", "feedback_form"]


class Question(CamelModel):
    id: Optional[int] = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    form: Optional[int] = None
    question_text: str = ""
    question_description: str = ""
    question_type: QuestionType
    options: List[str] = []
    required: bool = False
    answer_type: AnswerType = "single"
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class Form(CamelModel):
    id: Optional[int] = None
    heading: str
    description: str
    user_id: Optional[int] = None
    questions: List[Question] = []
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class FormSummary(CamelModel):
    id: int
    heading: str
    description: str
    created_at: Optional[datetime.datetime] = None
    questions_count: int = 0
    submission_count: int = 0


class CreateFormIn(CamelModel):
    form_type: FormType = "blank_form"


class QuestionUpdate(CamelModel):
    """Only the fields a client sends are written back."""

    id: Optional[int] = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    question_text: Optional[str] = None
    question_description: Optional[str] = None
    question_type: Optional[QuestionType] = None
    options: Optional[List[str]] = None
    required: Optional[bool] = None
    answer_type: Optional[AnswerType] = None


class UpdateFormIn(CamelModel):
    heading: str
    description: str
    questions: List[QuestionUpdate]

    @field_validator("heading", "description")
    @classmethod
    def required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("All fields are required, Some fields are missing.")
        return value


class AddQuestionIn(CamelModel):
    form_id: int
    question_type: QuestionType
    answer_type: AnswerType = "single"
    question_text: Optional[str] = None


class FormUrlIn(CamelModel):
    url: str
    recipient_email: str

    @field_validator("url", "recipient_email")
    @classmethod
    def required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Recipient email and form URL are required.")
        return value.strip()


class Answer(CamelModel):
    question: int
    question_text: str = ""
    type: AnswerType = "single"
    answer: Union[List[str], str]

    @field_validator("answer")
    @classmethod
    def as_list(cls, value):
        return [value] if isinstance(value, str) else value


class FormResponse(CamelModel):
    id: Optional[int] = None
    form_id: int = Field(serialization_alias="formID")
    answers: List[Answer]
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class SubmissionIn(CamelModel):
    answers: List[Answer]

    @field_validator("answers")
    @classmethod
    def not_empty(cls, value):
        if not value:
            raise ValueError("Answers are required")
        return value
