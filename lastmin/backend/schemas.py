from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from lastmin.backend import constants


class ApiError(BaseModel):
	model_config = ConfigDict(extra="forbid")

	code: str
	message: str
	evidence: List[str] = Field(default_factory=list)


class ApiEnvelope(BaseModel):
	model_config = ConfigDict(extra="allow")

	ok: bool
	generated_at: str
	request_id: Optional[str] = None
	data: Optional[Dict[str, Any]] = None
	error: Optional[ApiError] = None


_REQUEST_CONFIG = ConfigDict(
	extra="forbid",
	str_strip_whitespace=True,
	alias_generator=to_camel,
	populate_by_name=True,
)


class ChatRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	message: str = Field(..., min_length=1, max_length=constants.CHAT_MESSAGE_MAX_CHARS)
	context: Optional[str] = Field(default=None, max_length=constants.CHAT_CONTEXT_MAX_CHARS)


class AnalyzeRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	text: str = Field(..., min_length=1, description="Study material to analyze.")
	document_id: Optional[str] = Field(default=None, description="Caller-side document reference, echoed back.")


class SummarizeRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	text: str = Field(..., min_length=1)
	type: Literal["brief", "detailed", "bullet-points"] = Field(default="detailed")


class GenerateQuizRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	text: str = Field(..., min_length=1)
	question_count: int = Field(
		default=constants.DEFAULT_QUIZ_QUESTION_COUNT,
		description="Checked against the configured question range.",
	)
	difficulty: Literal["easy", "medium", "hard", "mixed"] = Field(default="mixed")


class WebContentRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	url: str = Field(..., min_length=1)


class ChatWebRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	message: str = Field(..., min_length=1, max_length=constants.CHAT_MESSAGE_MAX_CHARS)
	urls: Optional[List[str]] = Field(default=None, description="Only the first few are fetched.")
	context: Optional[str] = Field(default=None, max_length=constants.CHAT_CONTEXT_MAX_CHARS)


class RegisterExtensionRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	extension_id: Optional[str] = None


class BridgeFetchRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	url: str = Field(..., min_length=1)


class ContentExtractedRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	request_id: str = Field(..., min_length=1)
	content: Any = Field(default=None, description="Extracted page: {title, content, url, description} or plain text.")


class QuestionPayload(BaseModel):
	model_config = _REQUEST_CONFIG

	id: str = Field(..., min_length=1)
	text: str = Field(..., min_length=1)
	options: List[str] = Field(..., min_length=constants.QUIZ_OPTION_COUNT, max_length=constants.QUIZ_OPTION_COUNT)
	correct_option_index: int = Field(..., ge=0, lt=constants.QUIZ_OPTION_COUNT)
	points: float = Field(default=1.0, ge=0)
	explanation: str = ""
	difficulty: Optional[Literal["easy", "medium", "hard"]] = None


class QuizPayload(BaseModel):
	model_config = _REQUEST_CONFIG

	id: str = Field(..., min_length=1)
	questions: List[QuestionPayload] = Field(default_factory=list)
	passing_score: float = Field(default=70.0, ge=0, le=100)
	time_limit: Optional[int] = Field(default=None, ge=1, description="Minutes.")

	@field_validator("questions")
	@classmethod
	def _unique_question_ids(cls, value: List[QuestionPayload]) -> List[QuestionPayload]:
		seen = set()
		for question in value:
			if question.id in seen:
				raise ValueError(f"duplicate question id {question.id}")
			seen.add(question.id)
		return value


class AttemptPayload(BaseModel):
	model_config = _REQUEST_CONFIG

	quiz_id: Optional[str] = None
	answers: Dict[str, Any] = Field(default_factory=dict)
	submitted_at: Optional[str] = None
	time_spent: float = Field(default=0.0, ge=0, description="Seconds.")
	answer_times: Dict[str, float] = Field(default_factory=dict)


class GradeRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	quiz: QuizPayload
	attempt: AttemptPayload


class QuizStatsRequest(BaseModel):
	model_config = _REQUEST_CONFIG

	quiz: QuizPayload
	attempts: List[AttemptPayload] = Field(default_factory=list)
