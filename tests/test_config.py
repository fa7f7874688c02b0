from unittest import TestCase

from pydantic import ValidationError

from lastmin.backend import constants
from lastmin.backend.config import GatewaySettings


class GatewaySettingsTests(TestCase):
	def test_defaults_when_environment_is_empty(self) -> None:
		settings = GatewaySettings.from_env({})
		self.assertEqual(settings.provider_base_url, constants.DEFAULT_PROVIDER_BASE_URL)
		self.assertEqual(settings.provider_model, constants.DEFAULT_PROVIDER_MODEL)
		self.assertEqual(settings.max_web_urls, 3)
		self.assertEqual((settings.quiz_min_questions, settings.quiz_max_questions), (1, 20))
		self.assertEqual(settings.direct_fetch_timeout_s, 10.0)
		self.assertEqual(settings.brokered_fetch_timeout_s, 30.0)
		self.assertFalse(settings.has_valid_credential())

	def test_reads_recognized_variables(self) -> None:
		settings = GatewaySettings.from_env(
			{
				"LASTMIN_PROVIDER_API_KEY": "  sk-live-0123456789  ",
				"LASTMIN_PROVIDER_MODEL": "mistral-small-latest",
				"LASTMIN_PROVIDER_TEMPERATURE": "0",
				"LASTMIN_MAX_WEB_URLS": "5",
				"LASTMIN_QUIZ_MAX_QUESTIONS": "10",
				"LASTMIN_BROKERED_FETCH_TIMEOUT_S": "12.5",
			}
		)
		self.assertEqual(settings.provider_api_key, "sk-live-0123456789")
		self.assertEqual(settings.provider_model, "mistral-small-latest")
		self.assertEqual(settings.temperature, 0.0)
		self.assertEqual(settings.max_web_urls, 5)
		self.assertEqual(settings.quiz_max_questions, 10)
		self.assertEqual(settings.brokered_fetch_timeout_s, 12.5)
		self.assertTrue(settings.has_valid_credential())

	def test_malformed_and_out_of_range_values_fall_back_to_defaults(self) -> None:
		settings = GatewaySettings.from_env(
			{
				"LASTMIN_MAX_WEB_URLS": "three",
				"LASTMIN_PROVIDER_MAX_TOKENS": "0",
				"LASTMIN_DIRECT_FETCH_TIMEOUT_S": "-1",
				"LASTMIN_QUIZ_MIN_QUESTIONS": "15",
				"LASTMIN_QUIZ_MAX_QUESTIONS": "5",
			}
		)
		self.assertEqual(settings.max_web_urls, constants.DEFAULT_MAX_WEB_URLS)
		self.assertEqual(settings.max_tokens, constants.DEFAULT_PROVIDER_MAX_TOKENS)
		self.assertEqual(settings.direct_fetch_timeout_s, constants.DEFAULT_DIRECT_FETCH_TIMEOUT_S)
		self.assertEqual((settings.quiz_min_questions, settings.quiz_max_questions), (1, 20))

	def test_placeholder_and_short_keys_are_not_credentials(self) -> None:
		for key in ("", "your-api-key-here", "YOUR-OPENAI-API-KEY-HERE", "short-key"):
			with self.subTest(key=key):
				self.assertFalse(GatewaySettings(provider_api_key=key).has_valid_credential())
		self.assertTrue(GatewaySettings(provider_api_key="abcdefghijk").has_valid_credential())

	def test_settings_are_frozen_and_hide_the_key(self) -> None:
		settings = GatewaySettings(provider_api_key="sk-secret-value-123")
		self.assertNotIn("sk-secret-value-123", repr(settings))
		with self.assertRaises(ValidationError):
			settings.provider_model = "other"
