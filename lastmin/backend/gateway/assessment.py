from __future__ import annotations

import math
from typing import Any, Dict, List, Sequence

from lastmin.backend import constants
from lastmin.backend.gateway.types import Attempt, GradedAnswer, GradeReport, Question, Quiz


def _round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def _mean(values: Sequence[float]) -> float:
	if not values:
		return 0.0
	return round(sum(values) / len(values), 2)


def _percent(part: int, whole: int) -> float:
	if whole <= 0:
		return 0.0
	return round(100.0 * part / whole, 2)


def _is_valid_selection(selected: Any, question: Question) -> bool:
	if isinstance(selected, bool) or not isinstance(selected, int):
		return False
	return 0 <= selected < len(question.options)


def _grade_question(question: Question, attempt: Attempt) -> GradedAnswer:
	selected = attempt.answers.get(question.id)
	time_spent = float(attempt.answer_times.get(question.id, 0.0) or 0.0)
	if selected is None:
		status = "unanswered"
		is_correct = False
	elif not _is_valid_selection(selected, question):
		status = "invalid_option"
		is_correct = False
	else:
		status = "answered"
		is_correct = selected == question.correct_option_index
	return GradedAnswer(
		question_id=question.id,
		selected_option_index=selected,
		correct_option_index=question.correct_option_index,
		is_correct=is_correct,
		points_awarded=question.points if is_correct else 0,
		status=status,
		time_spent=time_spent,
	)


def feedback_message(score_percent: int, passing_score: float, passed: bool) -> str:
	if passed:
		return "Congratulations! You passed the quiz."
	passing = int(passing_score) if float(passing_score).is_integer() else passing_score
	return f"You scored {score_percent}%. You need {passing}% to pass. Keep studying!"


def grade(quiz: Quiz, attempt: Attempt) -> GradeReport:
	"""Grade one attempt against a quiz.

	Missing answers and out-of-range option indexes count as incorrect, and
	answers for questions outside the quiz are ignored, so any well-formed quiz
	always produces a report.
	"""
	question_ids = {question.id for question in quiz.questions}
	ignored = sorted(question_id for question_id in attempt.answers if question_id not in question_ids)
	graded = [_grade_question(question, attempt) for question in quiz.questions]

	points_possible = sum(question.points for question in quiz.questions)
	points_awarded = sum(answer.points_awarded for answer in graded)
	score_percent = _round_half_up(100 * points_awarded / points_possible) if points_possible > 0 else 0
	passed = score_percent >= quiz.passing_score

	analytics: List[Dict[str, Any]] = []
	for question, answer in zip(quiz.questions, graded):
		analytics.append(
			{
				"questionId": question.id,
				"question": question.text,
				"status": answer.status,
				"isCorrect": answer.is_correct,
				"pointsAwarded": answer.points_awarded,
				"pointsPossible": question.points,
				"timeSpent": answer.time_spent,
				"explanation": question.explanation,
			}
		)

	return GradeReport(
		quiz_id=quiz.id,
		score_percent=score_percent,
		correct_count=sum(1 for answer in graded if answer.is_correct),
		passed=passed,
		graded_answers=graded,
		per_question_analytics=analytics,
		points_awarded=points_awarded,
		points_possible=points_possible,
		feedback=feedback_message(score_percent, quiz.passing_score, passed),
		time_spent=float(attempt.time_spent or 0.0),
		ignored_answers=ignored,
	)


def score_bucket(score_percent: float) -> str:
	for label, _low, high in constants.SCORE_BUCKETS:
		if score_percent <= high:
			return label
	return constants.SCORE_BUCKETS[-1][0]


def statistics(quiz: Quiz, reports: Sequence[GradeReport]) -> Dict[str, Any]:
	"""Aggregate historical graded attempts of one quiz."""
	scores = [report.score_percent for report in reports]
	distribution = {label: 0 for label, _low, _high in constants.SCORE_BUCKETS}
	for score in scores:
		distribution[score_bucket(score)] += 1

	question_analysis = []
	for question in quiz.questions:
		answers = [
			answer
			for report in reports
			for answer in report.graded_answers
			if answer.question_id == question.id
		]
		question_analysis.append(
			{
				"questionId": question.id,
				"question": question.text,
				"correctPercentage": _percent(sum(1 for answer in answers if answer.is_correct), len(answers)),
				"averageTimeSpent": _mean([answer.time_spent for answer in answers]),
			}
		)

	return {
		"quizId": quiz.id,
		"totalAttempts": len(reports),
		"averageScore": _mean(scores),
		"passRate": _percent(sum(1 for report in reports if report.passed), len(reports)),
		"averageTimeSpent": _mean([report.time_spent for report in reports]),
		"scoreDistribution": distribution,
		"questionAnalysis": question_analysis,
	}
