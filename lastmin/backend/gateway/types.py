from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional


Operation = Literal["chat", "summarize", "analyze", "quiz", "web-fetch", "chat-with-web"]
ResultSource = Literal["primary", "fallback"]
AcquisitionMethod = Literal["direct", "brokered", "failed"]
SummaryType = Literal["brief", "detailed", "bullet-points"]
AnswerStatus = Literal["answered", "unanswered", "invalid_option"]


def now_iso() -> str:
	return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def word_count(text: str) -> int:
	return len(text.split())


@dataclass(frozen=True)
class GenerationRequest:
	operation: Operation
	payload: Dict[str, Any]
	operation_id: str
	requested_at: str = field(default_factory=now_iso)


@dataclass
class ProviderResult:
	operation_id: str
	operation: Operation
	source: ResultSource
	raw_text: str
	structured: Optional[Any] = None
	succeeded: bool = True
	model: Optional[str] = None
	web_content: List["WebContent"] = field(default_factory=list)


@dataclass(frozen=True)
class WebContent:
	url: str
	title: str
	text: str
	word_count: int
	method: AcquisitionMethod
	success: bool
	description: str = ""
	fetched_at: str = field(default_factory=now_iso)

	@classmethod
	def failure(cls, url: str, text: str, *, title: str = "Fetch Failed", method: AcquisitionMethod = "failed") -> "WebContent":
		return cls(url=url, title=title, text=text, word_count=0, method=method, success=False)

	def as_dict(self) -> Dict[str, Any]:
		return {
			"url": self.url,
			"title": self.title,
			"text": self.text,
			"description": self.description,
			"wordCount": self.word_count,
			"method": self.method,
			"success": self.success,
			"fetchedAt": self.fetched_at,
		}


@dataclass
class CorrelationEntry:
	request_id: str
	url: str
	created_at: float
	deadline: float
	settled: bool = False
	resolution: Optional[WebContent] = None


@dataclass(frozen=True)
class Question:
	id: str
	text: str
	options: List[str]
	correct_option_index: int
	points: float = 1.0
	explanation: str = ""


@dataclass(frozen=True)
class Quiz:
	id: str
	questions: List[Question]
	passing_score: float = 70.0
	time_limit: Optional[int] = None


@dataclass(frozen=True)
class Attempt:
	quiz_id: str
	answers: Dict[str, Any]
	submitted_at: str = field(default_factory=now_iso)
	time_spent: float = 0.0
	answer_times: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class GradedAnswer:
	question_id: str
	selected_option_index: Any
	correct_option_index: int
	is_correct: bool
	points_awarded: float
	status: AnswerStatus = "answered"
	time_spent: float = 0.0

	def as_dict(self) -> Dict[str, Any]:
		return {
			"questionId": self.question_id,
			"selectedOptionIndex": self.selected_option_index,
			"correctOptionIndex": self.correct_option_index,
			"isCorrect": self.is_correct,
			"pointsAwarded": self.points_awarded,
			"status": self.status,
			"timeSpent": self.time_spent,
		}


@dataclass
class GradeReport:
	quiz_id: str
	score_percent: int
	correct_count: int
	passed: bool
	graded_answers: List[GradedAnswer]
	per_question_analytics: List[Dict[str, Any]]
	points_awarded: float
	points_possible: float
	feedback: str
	time_spent: float = 0.0
	ignored_answers: List[str] = field(default_factory=list)

	def as_dict(self) -> Dict[str, Any]:
		return {
			"quizId": self.quiz_id,
			"scorePercent": self.score_percent,
			"correctCount": self.correct_count,
			"totalQuestions": len(self.graded_answers),
			"passed": self.passed,
			"pointsAwarded": self.points_awarded,
			"pointsPossible": self.points_possible,
			"feedback": self.feedback,
			"timeSpent": self.time_spent,
			"gradedAnswers": [answer.as_dict() for answer in self.graded_answers],
			"perQuestionAnalytics": list(self.per_question_analytics),
			"ignoredAnswers": list(self.ignored_answers),
		}
