from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request

from lastmin.backend.errors import GatewayError, to_http_exception
from lastmin.backend.response import success_response
from lastmin.backend.schemas import (
	ApiEnvelope,
	BridgeFetchRequest,
	ContentExtractedRequest,
	RegisterExtensionRequest,
)
from lastmin.backend.services import bridge_service


router = APIRouter(prefix="/api/bridge", tags=["bridge"])


@router.get("/health", response_model=ApiEnvelope)
async def health(request: Request):
	return success_response(request=request, data=bridge_service.health())


@router.post("/register-extension", response_model=ApiEnvelope)
async def register_extension(request: Request, payload: Optional[RegisterExtensionRequest] = None):
	extension_id = payload.extension_id if payload is not None else None
	return success_response(request=request, data=bridge_service.register_extension(extension_id))


@router.post("/fetch", response_model=ApiEnvelope)
async def fetch(request: Request, payload: BridgeFetchRequest):
	try:
		data = await bridge_service.fetch(payload.url)
	except GatewayError as exc:
		raise to_http_exception(exc) from exc
	return success_response(request=request, data=data)


@router.post("/content-extracted", response_model=ApiEnvelope)
async def content_extracted(request: Request, payload: ContentExtractedRequest):
	data = bridge_service.content_extracted(payload.request_id, payload.content)
	return success_response(request=request, data=data)


@router.get("/next-request", response_model=ApiEnvelope)
async def next_request(request: Request, wait: float = Query(default=0.0, ge=0, le=bridge_service.MAX_LONG_POLL_S)):
	data = await bridge_service.next_request(wait)
	return success_response(request=request, data=data)
