"""Coerce free-form generator text into the structured payloads each operation expects.

Generators wrap JSON in prose or markdown fences, so the payload is located by
scanning for its outer brace (analysis) or bracket (quiz) boundaries. Parsing is
tolerant of the surrounding noise and strict about the payload itself.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from lastmin.backend import constants
from lastmin.backend.errors import MalformedOutput


class _KeyTopic(BaseModel):
	model_config = ConfigDict(extra="allow")

	topic: str
	importance: Optional[float] = None


class _Concept(BaseModel):
	model_config = ConfigDict(extra="allow")

	name: str
	definition: str = ""
	importance: Optional[float] = None


class _AnalysisModel(BaseModel):
	model_config = ConfigDict(extra="allow")

	difficulty: Optional[Literal["beginner", "intermediate", "advanced"]] = None
	keyTopics: List[_KeyTopic] = Field(default_factory=list)
	concepts: List[_Concept] = Field(default_factory=list)
	wordCount: Optional[int] = Field(default=None, ge=0)
	readingTimeMinutes: Optional[float] = Field(default=None, ge=0)

	@field_validator("difficulty", mode="before")
	@classmethod
	def _lower_difficulty(cls, value: Any) -> Any:
		return value.strip().lower() if isinstance(value, str) else value


class _QuizItemModel(BaseModel):
	model_config = ConfigDict(extra="allow")

	question: str = Field(..., min_length=1)
	options: List[str] = Field(..., min_length=constants.QUIZ_OPTION_COUNT, max_length=constants.QUIZ_OPTION_COUNT)
	correctIndex: int = Field(..., ge=0, lt=constants.QUIZ_OPTION_COUNT, strict=True)
	explanation: str = ""
	difficulty: Optional[str] = None

	@field_validator("options", mode="before")
	@classmethod
	def _stringify_options(cls, value: Any) -> Any:
		if not isinstance(value, list):
			return value
		return [
			str(option) if isinstance(option, (int, float)) and not isinstance(option, bool) else option
			for option in value
		]

	@field_validator("question")
	@classmethod
	def _question_not_blank(cls, value: str) -> str:
		if not value.strip():
			raise ValueError("question must not be blank")
		return value


def _slice_between(text: str, opener: str, closer: str) -> str:
	start = text.find(opener)
	end = text.rfind(closer)
	if start == -1 or end == -1 or end <= start:
		raise MalformedOutput(f"No {opener}{closer} delimited payload found in generator output.")
	return text[start : end + 1]


def extract_json_object(text: str) -> Dict[str, Any]:
	candidate = _slice_between(text, "{", "}")
	try:
		parsed = json.loads(candidate)
	except json.JSONDecodeError as exc:
		raise MalformedOutput("Generator output contains invalid JSON content.") from exc
	if not isinstance(parsed, dict):
		raise MalformedOutput("Generator output has an unexpected payload shape.")
	return parsed


def extract_json_array(text: str) -> List[Any]:
	candidate = _slice_between(text, "[", "]")
	try:
		parsed = json.loads(candidate)
	except json.JSONDecodeError as exc:
		raise MalformedOutput("Generator output contains invalid JSON content.") from exc
	if not isinstance(parsed, list):
		raise MalformedOutput("Generator output has an unexpected payload shape.")
	return parsed


def parse_analysis(text: str) -> Dict[str, Any]:
	"""Return ``{"structured": True, **payload}`` or ``{"structured": False, "raw": text}``.

	All or nothing: a payload that parses but violates the analysis schema is
	reported as unstructured rather than partially recovered.
	"""
	try:
		payload = extract_json_object(text)
		_AnalysisModel.model_validate(payload)
	except (MalformedOutput, ValidationError):
		return {"structured": False, "raw": text}
	return {**payload, "structured": True}


def _normalize_quiz_item(item: Any) -> Optional[Dict[str, Any]]:
	if not isinstance(item, dict):
		return None
	try:
		model = _QuizItemModel.model_validate(item)
	except ValidationError:
		return None
	return {**item, "options": list(model.options)}


def is_valid_quiz_item(item: Any) -> bool:
	return _normalize_quiz_item(item) is not None


def parse_quiz_batch(text: str) -> List[Dict[str, Any]]:
	"""Valid question objects from the first ``[`` to the last ``]``; invalid ones are dropped.

	Numeric options are kept as their string form.
	"""
	try:
		items = extract_json_array(text)
	except MalformedOutput:
		return []
	questions = []
	for item in items:
		normalized = _normalize_quiz_item(item)
		if normalized is not None:
			questions.append(normalized)
	return questions


def interpret_quiz(text: str, limit: Optional[int] = None) -> Dict[str, Any]:
	questions = parse_quiz_batch(text)
	if limit is not None:
		questions = questions[: max(limit, 0)]
	if not questions:
		return {"raw": text, "parsed": []}
	return {"questions": questions}
