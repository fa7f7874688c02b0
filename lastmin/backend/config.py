from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from lastmin.backend import constants


def _str_env(env: Mapping[str, str], name: str, default: str) -> str:
	value = env.get(name, "").strip()
	return value or default


def _int_env(env: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
	raw = env.get(name, "").strip()
	if not raw:
		return default
	try:
		value = int(raw)
	except ValueError:
		return default
	return value if value >= minimum else default


def _float_env(
	env: Mapping[str, str],
	name: str,
	default: float,
	minimum: float = 0.0,
	inclusive: bool = False,
) -> float:
	raw = env.get(name, "").strip()
	if not raw:
		return default
	try:
		value = float(raw)
	except ValueError:
		return default
	if value > minimum or (inclusive and value == minimum):
		return value
	return default


class GatewaySettings(BaseModel):
	"""Immutable configuration for the AI gateway.

	Built once from the environment at startup; tests construct it directly.
	Swapping it at runtime goes through ``ProviderGateway.reconfigure``.
	"""

	model_config = ConfigDict(frozen=True, extra="forbid")

	provider_api_key: str = Field(default="", repr=False)
	provider_base_url: str = constants.DEFAULT_PROVIDER_BASE_URL
	provider_model: str = constants.DEFAULT_PROVIDER_MODEL
	temperature: float = Field(default=constants.DEFAULT_PROVIDER_TEMPERATURE, ge=0.0, le=2.0)
	max_tokens: int = Field(default=constants.DEFAULT_PROVIDER_MAX_TOKENS, ge=1)
	provider_timeout_s: float = Field(default=constants.DEFAULT_PROVIDER_TIMEOUT_S, gt=0)
	direct_fetch_timeout_s: float = Field(default=constants.DEFAULT_DIRECT_FETCH_TIMEOUT_S, gt=0)
	brokered_fetch_timeout_s: float = Field(default=constants.DEFAULT_BROKERED_FETCH_TIMEOUT_S, gt=0)
	max_web_urls: int = Field(default=constants.DEFAULT_MAX_WEB_URLS, ge=1)
	quiz_min_questions: int = Field(default=constants.DEFAULT_QUIZ_MIN_QUESTIONS, ge=1)
	quiz_max_questions: int = Field(default=constants.DEFAULT_QUIZ_MAX_QUESTIONS, ge=1)
	web_content_max_chars: int = Field(default=constants.DEFAULT_WEB_CONTENT_MAX_CHARS, ge=1)
	web_content_min_chars: int = Field(default=constants.DEFAULT_WEB_CONTENT_MIN_CHARS, ge=0)
	extension_stale_s: float = Field(default=constants.DEFAULT_EXTENSION_STALE_S, gt=0)

	@classmethod
	def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "GatewaySettings":
		source = os.environ if env is None else env
		min_questions = _int_env(source, "LASTMIN_QUIZ_MIN_QUESTIONS", constants.DEFAULT_QUIZ_MIN_QUESTIONS)
		max_questions = _int_env(source, "LASTMIN_QUIZ_MAX_QUESTIONS", constants.DEFAULT_QUIZ_MAX_QUESTIONS)
		if max_questions < min_questions:
			min_questions = constants.DEFAULT_QUIZ_MIN_QUESTIONS
			max_questions = constants.DEFAULT_QUIZ_MAX_QUESTIONS
		temperature = _float_env(
			source,
			"LASTMIN_PROVIDER_TEMPERATURE",
			constants.DEFAULT_PROVIDER_TEMPERATURE,
			inclusive=True,
		)
		return cls(
			provider_api_key=source.get("LASTMIN_PROVIDER_API_KEY", "").strip(),
			provider_base_url=_str_env(source, "LASTMIN_PROVIDER_BASE_URL", constants.DEFAULT_PROVIDER_BASE_URL),
			provider_model=_str_env(source, "LASTMIN_PROVIDER_MODEL", constants.DEFAULT_PROVIDER_MODEL),
			temperature=min(temperature, 2.0),
			max_tokens=_int_env(source, "LASTMIN_PROVIDER_MAX_TOKENS", constants.DEFAULT_PROVIDER_MAX_TOKENS),
			provider_timeout_s=_float_env(source, "LASTMIN_PROVIDER_TIMEOUT_S", constants.DEFAULT_PROVIDER_TIMEOUT_S),
			direct_fetch_timeout_s=_float_env(
				source, "LASTMIN_DIRECT_FETCH_TIMEOUT_S", constants.DEFAULT_DIRECT_FETCH_TIMEOUT_S
			),
			brokered_fetch_timeout_s=_float_env(
				source, "LASTMIN_BROKERED_FETCH_TIMEOUT_S", constants.DEFAULT_BROKERED_FETCH_TIMEOUT_S
			),
			max_web_urls=_int_env(source, "LASTMIN_MAX_WEB_URLS", constants.DEFAULT_MAX_WEB_URLS),
			quiz_min_questions=min_questions,
			quiz_max_questions=max_questions,
			web_content_max_chars=_int_env(
				source, "LASTMIN_WEB_CONTENT_MAX_CHARS", constants.DEFAULT_WEB_CONTENT_MAX_CHARS
			),
			web_content_min_chars=_int_env(
				source, "LASTMIN_WEB_CONTENT_MIN_CHARS", constants.DEFAULT_WEB_CONTENT_MIN_CHARS, minimum=0
			),
			extension_stale_s=_float_env(source, "LASTMIN_EXTENSION_STALE_S", constants.DEFAULT_EXTENSION_STALE_S),
		)

	def has_valid_credential(self) -> bool:
		key = self.provider_api_key.strip()
		if not key or key.lower() in constants.PLACEHOLDER_API_KEYS:
			return False
		return len(key) >= constants.MIN_API_KEY_LENGTH
