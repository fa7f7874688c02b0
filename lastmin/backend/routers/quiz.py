from __future__ import annotations

from fastapi import APIRouter, Request

from lastmin.backend.errors import GatewayError, to_http_exception
from lastmin.backend.response import success_response
from lastmin.backend.schemas import ApiEnvelope, GradeRequest, QuizStatsRequest
from lastmin.backend.services import quiz_service


router = APIRouter(prefix="/api/quiz", tags=["quiz"])


@router.post("/grade", response_model=ApiEnvelope)
def grade(request: Request, payload: GradeRequest):
	try:
		report = quiz_service.grade(payload.quiz, payload.attempt)
	except GatewayError as exc:
		raise to_http_exception(exc) from exc
	return success_response(request=request, data=report)


@router.post("/stats", response_model=ApiEnvelope)
def stats(request: Request, payload: QuizStatsRequest):
	try:
		data = quiz_service.statistics(payload.quiz, payload.attempts)
	except GatewayError as exc:
		raise to_http_exception(exc) from exc
	return success_response(request=request, data=data)
