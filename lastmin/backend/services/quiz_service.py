from __future__ import annotations

from typing import Any, Dict, Sequence

from lastmin.backend.errors import InputContractError
from lastmin.backend.gateway import assessment
from lastmin.backend.gateway.types import Attempt, Question, Quiz, now_iso
from lastmin.backend.schemas import AttemptPayload, QuizPayload


def to_quiz(payload: QuizPayload) -> Quiz:
	return Quiz(
		id=payload.id,
		questions=[
			Question(
				id=question.id,
				text=question.text,
				options=list(question.options),
				correct_option_index=question.correct_option_index,
				points=question.points,
				explanation=question.explanation,
			)
			for question in payload.questions
		],
		passing_score=payload.passing_score,
		time_limit=payload.time_limit,
	)


def to_attempt(quiz: Quiz, payload: AttemptPayload) -> Attempt:
	if payload.quiz_id and payload.quiz_id != quiz.id:
		raise InputContractError(
			f"Attempt belongs to quiz {payload.quiz_id}, not {quiz.id}.",
			code="quiz_mismatch",
		)
	return Attempt(
		quiz_id=quiz.id,
		answers=dict(payload.answers),
		submitted_at=payload.submitted_at or now_iso(),
		time_spent=payload.time_spent,
		answer_times=dict(payload.answer_times),
	)


def grade(quiz_payload: QuizPayload, attempt_payload: AttemptPayload) -> Dict[str, Any]:
	quiz = to_quiz(quiz_payload)
	report = assessment.grade(quiz, to_attempt(quiz, attempt_payload))
	return report.as_dict()


def statistics(quiz_payload: QuizPayload, attempt_payloads: Sequence[AttemptPayload]) -> Dict[str, Any]:
	quiz = to_quiz(quiz_payload)
	reports = [assessment.grade(quiz, to_attempt(quiz, payload)) for payload in attempt_payloads]
	return assessment.statistics(quiz, reports)
