from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from openai import AsyncOpenAI

from lastmin.backend.config import GatewaySettings
from lastmin.backend.errors import ProviderUnavailable


logger = logging.getLogger(__name__)

STUDY_SYSTEM_PROMPT = (
	"You are a helpful AI study assistant. Provide clear, educational responses to help students learn."
)
_CONTEXT_SYSTEM_PROMPT = (
	"Context: {context}\n\n"
	"You are a helpful AI study assistant. Provide clear, educational responses based on the context provided."
)

ClientFactory = Callable[..., Any]


def build_openai_client(*, api_key: str, base_url: str, timeout_s: float) -> AsyncOpenAI:
	return AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout_s, max_retries=0)


def system_prompt(context: Optional[str]) -> str:
	context_text = context.strip() if context else ""
	if context_text:
		return _CONTEXT_SYSTEM_PROMPT.format(context=context_text)
	return STUDY_SYSTEM_PROMPT


def _get(value: Any, name: str) -> Any:
	if isinstance(value, dict):
		return value.get(name)
	return getattr(value, name, None)


def extract_completion_text(response: Any) -> str:
	choices = _get(response, "choices")
	if not isinstance(choices, list) or not choices:
		return ""
	message = _get(choices[0], "message")
	content = _get(message, "content") if message is not None else None
	if isinstance(content, str):
		return content.strip()
	if isinstance(content, list):
		parts: List[str] = []
		for chunk in content:
			text = _get(chunk, "text")
			if isinstance(text, str) and text.strip():
				parts.append(text.strip())
		return "\n".join(parts).strip()
	return ""


def _provider_error(exc: Exception) -> ProviderUnavailable:
	name = exc.__class__.__name__
	if isinstance(exc, TimeoutError) or name == "APITimeoutError":
		return ProviderUnavailable("Provider timed out.", code="provider_timeout", status_code=504)
	if name in {"AuthenticationError", "PermissionDeniedError"}:
		return ProviderUnavailable("Provider rejected the configured credential.", code="provider_auth_error")
	if name == "RateLimitError":
		return ProviderUnavailable("Provider rate limit reached.", code="provider_rate_limited")
	return ProviderUnavailable("Provider request failed.", code="provider_error", status_code=502)


class ProviderClient:
	"""Chat-completions client for the single upstream provider."""

	name = "primary"

	def __init__(self, settings: GatewaySettings, client_factory: Optional[ClientFactory] = None):
		self._settings = settings
		self._client_factory = client_factory or build_openai_client
		self._client: Any = None

	@property
	def settings(self) -> GatewaySettings:
		return self._settings

	def is_configured(self) -> bool:
		return self._settings.has_valid_credential()

	def _get_client(self) -> Any:
		if not self.is_configured():
			raise ProviderUnavailable("Provider API key not configured. Set LASTMIN_PROVIDER_API_KEY.")
		if self._client is None:
			self._client = self._client_factory(
				api_key=self._settings.provider_api_key,
				base_url=self._settings.provider_base_url,
				timeout_s=self._settings.provider_timeout_s,
			)
		return self._client

	async def complete(self, prompt: str, *, context: Optional[str] = None, temperature: Optional[float] = None) -> str:
		client = self._get_client()
		messages: List[Dict[str, str]] = [
			{"role": "system", "content": system_prompt(context)},
			{"role": "user", "content": prompt},
		]
		try:
			response = await client.chat.completions.create(
				model=self._settings.provider_model,
				messages=messages,
				temperature=self._settings.temperature if temperature is None else temperature,
				max_tokens=self._settings.max_tokens,
				stream=False,
			)
		except Exception as exc:
			raise _provider_error(exc) from exc
		text = extract_completion_text(response)
		if not text:
			raise ProviderUnavailable("Provider returned an empty response.", code="provider_empty_response")
		return text
