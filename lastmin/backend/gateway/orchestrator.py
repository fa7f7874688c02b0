from __future__ import annotations

import logging
import re
import uuid
from threading import Lock
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from lastmin.backend import constants
from lastmin.backend.config import GatewaySettings
from lastmin.backend.errors import InputContractError
from lastmin.backend.gateway.acquisition import WebAcquisitionPipeline, is_fetchable_url
from lastmin.backend.gateway.chain import Strategy, run_chain
from lastmin.backend.gateway.interpreter import interpret_quiz, parse_analysis
from lastmin.backend.gateway.local import LocalGenerator
from lastmin.backend.gateway.provider import ClientFactory, ProviderClient
from lastmin.backend.gateway.types import (
	GenerationRequest,
	Operation,
	ProviderResult,
	ResultSource,
	WebContent,
)


logger = logging.getLogger(__name__)

# Coarse intent signal for "needs current information"; kept as a fixed vocabulary.
_CURRENT_INFO_TOKENS = frozenset(
	{
		"current",
		"currently",
		"latest",
		"recent",
		"recently",
		"today",
		"tonight",
		"yesterday",
		"tomorrow",
		"now",
		"news",
		"headline",
		"headlines",
		"price",
		"prices",
		"weather",
		"forecast",
		"stock",
		"stocks",
		"score",
		"scores",
		"live",
		"update",
		"updates",
		"trending",
	}
)
_CURRENT_INFO_PHRASES = ("this week", "this month", "this year", "right now", "as of")
_URL_RE = re.compile(r"https?://[^\s<>\"'()\[\]{}]+", re.IGNORECASE)
_TOKEN_RE = re.compile(r"[a-z]+")
_URL_TRAILING = ".,;:!?"

_SUMMARY_STYLES = {
	"brief": "Provide a concise 3 sentence summary.",
	"bullet-points": "Return 5-8 bullet points.",
	"detailed": "Provide a thorough yet compact study summary.",
}
_ANALYZE_PROMPT = (
	'Return ONLY valid JSON with this shape: {{"difficulty":"beginner|intermediate|advanced",'
	'"keyTopics":[{{"topic":"","importance":1-10}}],'
	'"concepts":[{{"name":"","definition":"","importance":1-10}}],'
	'"wordCount":number,"readingTimeMinutes":number}}. '
	"Analyze this study material and fill fields. Text:\n{text}"
)
_QUIZ_PROMPT = (
	"Return ONLY JSON array of {count} objects each: "
	'{{"question":"","options":["","","",""],"correctIndex":0-3,"explanation":"",'
	'"difficulty":"easy|medium|hard"}}. {difficulty_hint}'
	"Create diverse multiple-choice questions from: \n{text}"
)
WEB_SECTION_START = "--- WEB CONTENT ---"
WEB_SECTION_END = "--- END WEB CONTENT ---"
WEB_DISCLAIMER = (
	"Note: current web information could not be retrieved for this request. "
	"Answer from general knowledge and say that the information may be out of date."
)
_UNAVAILABLE_REPLY = "The study assistant is temporarily unavailable. Please try again shortly."


def extract_urls(text: str) -> List[str]:
	urls: List[str] = []
	for match in _URL_RE.findall(text or ""):
		url = match.rstrip(_URL_TRAILING)
		if url and url not in urls:
			urls.append(url)
	return urls


def needs_web_context(message: str) -> bool:
	lowered = (message or "").lower()
	if extract_urls(lowered):
		return True
	if any(phrase in lowered for phrase in _CURRENT_INFO_PHRASES):
		return True
	return any(token in _CURRENT_INFO_TOKENS for token in _TOKEN_RE.findall(lowered))


def compose_web_context(context: Optional[str], contents: Sequence[WebContent]) -> Optional[str]:
	base = context.strip() if isinstance(context, str) else ""
	if not contents:
		return base or None
	blocks = [
		f"[Source: {content.title} ({content.url})]\n{content.text}" for content in contents if content.success
	]
	parts = [base] if base else []
	if blocks:
		parts.append("\n".join([WEB_SECTION_START, "\n\n".join(blocks), WEB_SECTION_END]))
	else:
		parts.append(WEB_DISCLAIMER)
	return "\n\n".join(parts)


def _require_text(value: Any, field: str) -> str:
	if not isinstance(value, str) or not value.strip():
		raise InputContractError(f"{field} must be a non-empty string.", code=f"invalid_{field}")
	return value.strip()


def _non_empty(text: str) -> bool:
	return isinstance(text, str) and bool(text.strip())


class ProviderGateway:
	"""One call per operation; provider first, deterministic local generator second.

	Only invalid input raises (``InputContractError``, before any network call).
	Every other failure is absorbed and shows up as ``source == "fallback"`` or
	as an unstructured payload.
	"""

	def __init__(
		self,
		settings: GatewaySettings,
		pipeline: Optional[WebAcquisitionPipeline] = None,
		*,
		local: Optional[LocalGenerator] = None,
		client_factory: Optional[ClientFactory] = None,
	):
		self._lock = Lock()
		self._client_factory = client_factory
		self._settings = settings
		self._provider = ProviderClient(settings, client_factory)
		self._local = local or LocalGenerator()
		self._pipeline = pipeline or WebAcquisitionPipeline(settings)

	@property
	def settings(self) -> GatewaySettings:
		return self._settings

	@property
	def pipeline(self) -> WebAcquisitionPipeline:
		return self._pipeline

	def is_configured(self) -> bool:
		return self._provider.is_configured()

	def reconfigure(self, settings: GatewaySettings) -> None:
		with self._lock:
			self._settings = settings
			self._provider = ProviderClient(settings, self._client_factory)
			self._pipeline.reconfigure(settings)
		logger.info(
			"gateway reconfigured: provider %s, model %s",
			"configured" if settings.has_valid_credential() else "not configured",
			settings.provider_model,
		)

	def status(self) -> Dict[str, Any]:
		settings = self._settings
		configured = self.is_configured()
		return {
			"configured": configured,
			"model": settings.provider_model,
			"baseUrl": settings.provider_base_url,
			"source": "primary" if configured else "fallback",
			"quizQuestionRange": [settings.quiz_min_questions, settings.quiz_max_questions],
			"maxWebUrls": settings.max_web_urls,
		}

	def _new_request(self, operation: Operation, payload: Dict[str, Any]) -> GenerationRequest:
		return GenerationRequest(operation=operation, payload=payload, operation_id=uuid.uuid4().hex)

	async def _generate(
		self,
		request: GenerationRequest,
		primary: Callable[[ProviderClient], Awaitable[str]],
		fallback: Callable[[], str],
	) -> Tuple[str, ResultSource]:
		provider = self._provider

		async def _run_primary() -> str:
			return await primary(provider)

		async def _run_fallback() -> str:
			return fallback()

		outcome = await run_chain(
			[
				Strategy(
					name="primary",
					run=_run_primary,
					accept=_non_empty,
					available=provider.is_configured(),
					unavailable_reason="provider not configured",
				),
				Strategy(name="fallback", run=_run_fallback, accept=_non_empty),
			],
			label=request.operation,
		)
		if outcome.strategy == "primary" and outcome.value is not None:
			return outcome.value, "primary"
		if outcome.strategy == "fallback" and outcome.value is not None:
			if provider.is_configured():
				logger.warning(
					"%s %s served by local generator: %s",
					request.operation,
					request.operation_id,
					"; ".join(outcome.failure_details()),
				)
			return outcome.value, "fallback"
		logger.error("%s %s: no generator produced output", request.operation, request.operation_id)
		return _UNAVAILABLE_REPLY, "fallback"

	def _result(self, request: GenerationRequest, text: str, source: ResultSource, **extra: Any) -> ProviderResult:
		return ProviderResult(
			operation_id=request.operation_id,
			operation=request.operation,
			source=source,
			raw_text=text,
			model=self._settings.provider_model if source == "primary" else self._local.name,
			**extra,
		)

	async def chat(self, message: str, context: Optional[str] = None) -> ProviderResult:
		message = _require_text(message, "message")
		request = self._new_request("chat", {"message": message, "context": context})
		text, source = await self._generate(
			request,
			lambda provider: provider.complete(message, context=context),
			lambda: self._local.chat(message, context),
		)
		return self._result(request, text, source)

	async def summarize(self, text: str, summary_type: str = "detailed") -> ProviderResult:
		text = _require_text(text, "text")
		if summary_type not in _SUMMARY_STYLES:
			raise InputContractError(
				"Summary type must be brief, detailed, or bullet-points.", code="invalid_summary_type"
			)
		request = self._new_request("summarize", {"text": text, "type": summary_type})
		prompt = f"{_SUMMARY_STYLES[summary_type]}\n\nText:\n{text[: constants.SUMMARIZE_INPUT_CHARS]}"
		summary, source = await self._generate(
			request,
			lambda provider: provider.complete(prompt, temperature=0.5),
			lambda: self._local.summarize(text, summary_type),
		)
		return self._result(request, summary, source)

	async def analyze(self, text: str) -> ProviderResult:
		text = _require_text(text, "text")
		request = self._new_request("analyze", {"text": text})
		prompt = _ANALYZE_PROMPT.format(text=text[: constants.ANALYZE_INPUT_CHARS])
		raw, source = await self._generate(
			request,
			lambda provider: provider.complete(prompt, temperature=0.4),
			lambda: self._local.analyze(text),
		)
		analysis = parse_analysis(raw)
		structured = analysis if analysis["structured"] else None
		return self._result(request, raw, source, structured=structured, succeeded=structured is not None)

	def _check_count(self, count: Any) -> int:
		low = self._settings.quiz_min_questions
		high = self._settings.quiz_max_questions
		if isinstance(count, bool) or not isinstance(count, int) or not low <= count <= high:
			raise InputContractError(
				f"Question count must be between {low} and {high}.", code="invalid_question_count"
			)
		return count

	async def generate_quiz(
		self,
		text: str,
		count: int = constants.DEFAULT_QUIZ_QUESTION_COUNT,
		difficulty: str = "mixed",
	) -> ProviderResult:
		text = _require_text(text, "text")
		count = self._check_count(count)
		if difficulty not in constants.QUIZ_DIFFICULTIES:
			raise InputContractError(
				"Difficulty must be easy, medium, hard, or mixed.", code="invalid_difficulty"
			)
		request = self._new_request("quiz", {"text": text, "count": count, "difficulty": difficulty})
		hint = "" if difficulty == "mixed" else f"All questions should be {difficulty} difficulty. "
		prompt = _QUIZ_PROMPT.format(
			count=count,
			difficulty_hint=hint,
			text=text[: constants.QUIZ_INPUT_CHARS],
		)
		raw, source = await self._generate(
			request,
			lambda provider: provider.complete(prompt, temperature=0.7),
			lambda: self._local.quiz(text, count),
		)
		interpreted = interpret_quiz(raw, limit=count)
		questions = interpreted.get("questions")
		return self._result(request, raw, source, structured=questions, succeeded=bool(questions))

	async def fetch_web_content(self, url: str) -> WebContent:
		url = _require_text(url, "url")
		if not is_fetchable_url(url):
			raise InputContractError("URL must be an absolute http(s) URL.", code="invalid_url")
		return await self._pipeline.fetch(url)

	async def _gather_web_content(self, message: str, urls: Optional[Sequence[str]]) -> List[WebContent]:
		cap = self._settings.max_web_urls
		if urls:
			return await self._pipeline.fetch_many(list(urls)[:cap])
		detected = extract_urls(message)
		if detected:
			return await self._pipeline.fetch_many(detected[:cap])
		if needs_web_context(message):
			return [await self._pipeline.search(message)]
		return []

	async def chat_with_web_context(
		self,
		message: str,
		context: Optional[str] = None,
		urls: Optional[Sequence[str]] = None,
	) -> ProviderResult:
		message = _require_text(message, "message")
		url_list = list(urls or [])
		for url in url_list:
			if not isinstance(url, str) or not is_fetchable_url(url):
				raise InputContractError("Every URL must be an absolute http(s) URL.", code="invalid_url")
		request = self._new_request("chat-with-web", {"message": message, "context": context, "urls": url_list})
		contents = await self._gather_web_content(message, url_list)
		web_context = compose_web_context(context, contents)
		text, source = await self._generate(
			request,
			lambda provider: provider.complete(message, context=web_context),
			lambda: self._local.chat(message, web_context),
		)
		return self._result(request, text, source, web_content=contents)
