from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

ModelName = Literal["gpt-4.1", "gpt-5", "gemini-2.5-flash"]


class PassageRequest(BaseModel):
    division: str
    length: str
    subject: str
    grade: str
    area: str
    maintopic: str
    subtopic: str
    keyword: str
    text_type: Optional[str] = Field(default=None, alias="textType")
    model: ModelName = "gpt-4.1"

    model_config = {"populate_by_name": True}


class VocabularyRequest(BaseModel):
    term_name: str = Field(alias="termName")
    term_description: str = Field(default="", alias="termDescription")
    passage: str
    division: str
    question_type: str = Field(default="multiple", alias="questionType")
    model: ModelName = "gpt-4.1"

    model_config = {"populate_by_name": True}


class ParagraphRequest(BaseModel):
    title: str
    paragraph_text: str = Field(alias="paragraphText")
    division: str
    question_type: str = Field(alias="questionType")
    question_index: int = Field(default=1, ge=1, alias="questionIndex")
    model: ModelName = "gpt-4.1"

    model_config = {"populate_by_name": True}


class ComprehensiveRequest(BaseModel):
    passage: str
    division: str
    question_type: str = Field(alias="questionType")
    question_count: int = Field(default=5, ge=1, le=20, alias="questionCount")
    model: ModelName = "gpt-4.1"

    model_config = {"populate_by_name": True}


class GenerationResponse(BaseModel):
    prompt: str
    result: Any
