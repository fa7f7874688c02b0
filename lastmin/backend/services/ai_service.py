from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence

from lastmin.backend import constants
from lastmin.backend.errors import AcquisitionUnavailable
from lastmin.backend.gateway.orchestrator import ProviderGateway
from lastmin.backend.gateway.types import ProviderResult, WebContent, now_iso, word_count
from lastmin.backend.services import runtime


def _gateway(gateway: Optional[ProviderGateway]) -> ProviderGateway:
	return gateway or runtime.get_gateway()


def _estimated_reading_time(text: str) -> int:
	return math.ceil(word_count(text) / constants.WORDS_PER_MINUTE)


def analysis_view(result: ProviderResult) -> Dict[str, Any]:
	if isinstance(result.structured, dict):
		view = dict(result.structured)
	else:
		view = {"structured": False, "raw": result.raw_text}
	view["source"] = result.source
	return view


def source_summary(contents: Sequence[WebContent]) -> List[Dict[str, Any]]:
	return [
		{"url": content.url, "title": content.title, "success": content.success, "method": content.method}
		for content in contents
	]


async def chat(message: str, context: Optional[str] = None, gateway: Optional[ProviderGateway] = None) -> Dict[str, Any]:
	result = await _gateway(gateway).chat(message, context)
	prompt_tokens = len(message) + len(context or "")
	return {
		"response": result.raw_text,
		"timestamp": now_iso(),
		"source": result.source,
		"model": result.model,
		"usage": {
			"promptTokens": prompt_tokens,
			"completionTokens": len(result.raw_text),
			"totalTokens": prompt_tokens + len(result.raw_text),
		},
	}


async def analyze(text: str, document_id: Optional[str] = None, gateway: Optional[ProviderGateway] = None) -> Dict[str, Any]:
	result = await _gateway(gateway).analyze(text)
	data: Dict[str, Any] = {
		"analysis": analysis_view(result),
		"processedAt": now_iso(),
		"textLength": len(text),
		"estimatedReadingTime": _estimated_reading_time(text),
		"source": result.source,
	}
	if document_id:
		data["documentId"] = document_id
	return data


async def summarize(text: str, summary_type: str = "detailed", gateway: Optional[ProviderGateway] = None) -> Dict[str, Any]:
	result = await _gateway(gateway).summarize(text, summary_type)
	summary = result.raw_text
	return {
		"summary": summary,
		"type": summary_type,
		"generatedAt": now_iso(),
		"originalLength": len(text),
		"compressionRatio": len(summary) / len(text) if text else 0.0,
		"source": result.source,
	}


async def generate_quiz(
	text: str,
	question_count: int = constants.DEFAULT_QUIZ_QUESTION_COUNT,
	difficulty: str = "mixed",
	gateway: Optional[ProviderGateway] = None,
) -> Dict[str, Any]:
	result = await _gateway(gateway).generate_quiz(text, question_count, difficulty)
	questions = list(result.structured or [])
	data: Dict[str, Any] = {
		"questions": questions,
		"metadata": {
			"totalQuestions": len(questions),
			"difficulty": difficulty,
			"sourceLength": len(text),
			"generatedAt": now_iso(),
			"estimatedTime": len(questions) * constants.MINUTES_PER_QUIZ_QUESTION,
		},
		"source": result.source,
	}
	if not questions:
		data["raw"] = result.raw_text
	return data


async def web_content(url: str, gateway: Optional[ProviderGateway] = None) -> Dict[str, Any]:
	content = await _gateway(gateway).fetch_web_content(url)
	if not content.success:
		raise AcquisitionUnavailable(
			"Web content could not be retrieved.",
			evidence=[content.text],
		)
	return {"content": content.as_dict()}


async def chat_web(
	message: str,
	urls: Optional[Sequence[str]] = None,
	context: Optional[str] = None,
	gateway: Optional[ProviderGateway] = None,
) -> Dict[str, Any]:
	result = await _gateway(gateway).chat_with_web_context(message, context, urls)
	return {
		"response": result.raw_text,
		"urlsFetched": sum(1 for content in result.web_content if content.success),
		"sources": source_summary(result.web_content),
		"timestamp": now_iso(),
		"source": result.source,
	}


def status(gateway: Optional[ProviderGateway] = None) -> Dict[str, Any]:
	return _gateway(gateway).status()


def reconfigure() -> Dict[str, Any]:
	current = runtime.reload_from_env()
	return current.gateway.status()
