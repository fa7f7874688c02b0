from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from lastmin.backend.errors import GatewayError, to_http_exception
from lastmin.backend.response import success_response
from lastmin.backend.schemas import (
	AnalyzeRequest,
	ApiEnvelope,
	ChatRequest,
	ChatWebRequest,
	GenerateQuizRequest,
	SummarizeRequest,
	WebContentRequest,
)
from lastmin.backend.services import ai_service


router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/chat", response_model=ApiEnvelope)
async def chat(request: Request, payload: ChatRequest):
	try:
		data = await ai_service.chat(payload.message, payload.context)
	except GatewayError as exc:
		raise to_http_exception(exc) from exc
	return success_response(request=request, data=data)


@router.post("/analyze", response_model=ApiEnvelope)
async def analyze(request: Request, payload: AnalyzeRequest):
	try:
		data = await ai_service.analyze(payload.text, payload.document_id)
	except GatewayError as exc:
		raise to_http_exception(exc) from exc
	return success_response(request=request, data=data)


@router.post("/summarize", response_model=ApiEnvelope)
async def summarize(request: Request, payload: SummarizeRequest):
	try:
		data = await ai_service.summarize(payload.text, payload.type)
	except GatewayError as exc:
		raise to_http_exception(exc) from exc
	return success_response(request=request, data=data)


@router.post("/generate-quiz", response_model=ApiEnvelope)
async def generate_quiz(request: Request, payload: GenerateQuizRequest):
	try:
		data = await ai_service.generate_quiz(payload.text, payload.question_count, payload.difficulty)
	except GatewayError as exc:
		raise to_http_exception(exc) from exc
	return success_response(request=request, data=data)


@router.post("/web-content", response_model=ApiEnvelope)
async def web_content(request: Request, payload: WebContentRequest):
	try:
		data = await ai_service.web_content(payload.url)
	except GatewayError as exc:
		raise to_http_exception(exc) from exc
	return success_response(request=request, data=data)


@router.post("/chat-web", response_model=ApiEnvelope)
async def chat_web(request: Request, payload: ChatWebRequest):
	try:
		data = await ai_service.chat_web(payload.message, payload.urls, payload.context)
	except GatewayError as exc:
		raise to_http_exception(exc) from exc
	return success_response(request=request, data=data)


@router.get("/status", response_model=ApiEnvelope)
async def status(request: Request):
	return success_response(request=request, data=ai_service.status())


@router.post("/reconfigure", response_model=ApiEnvelope)
async def reconfigure(request: Request):
	try:
		data = ai_service.reconfigure()
	except ValueError as exc:
		raise HTTPException(
			status_code=400,
			detail={"code": "invalid_configuration", "message": "Configuration from the environment is invalid."},
		) from exc
	return success_response(request=request, data=data)
