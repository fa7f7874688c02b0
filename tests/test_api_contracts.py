import os
from unittest import TestCase
from unittest.mock import patch

import httpx
from fastapi.testclient import TestClient

from lastmin.backend.config import GatewaySettings
from lastmin.backend.main import app
from lastmin.backend.services import runtime


_PAGE = "<html><head><title>Notes</title></head><body><article>" + ("Enzymes lower activation energy. " * 12) + "</article></body></html>"
_TEXT = "Enzymes are proteins. They speed up reactions. Temperature changes their shape. Inhibitors block active sites."


def _handler(request: httpx.Request) -> httpx.Response:
	if request.url.host == "down.example":
		return httpx.Response(503, text="unavailable")
	return httpx.Response(200, html=_PAGE)


def _question(question_id: str, correct: int, points: float) -> dict:
	return {
		"id": question_id,
		"text": f"Question {question_id}",
		"options": ["A", "B", "C", "D"],
		"correctOptionIndex": correct,
		"points": points,
	}


_QUIZ = {"id": "quiz-1", "questions": [_question("q1", 0, 10), _question("q2", 2, 15)], "passingScore": 70}


class ApiContractsTests(TestCase):
	def setUp(self) -> None:
		self.fetched = []

		def record(request: httpx.Request) -> httpx.Response:
			self.fetched.append(str(request.url))
			return _handler(request)

		self.runtime = runtime.build_runtime(GatewaySettings(), transport=httpx.MockTransport(record))
		runtime.install_runtime(self.runtime)
		self.client = TestClient(app)

	def tearDown(self) -> None:
		runtime.install_runtime(None)

	def test_unknown_route_returns_404_envelope(self) -> None:
		response = self.client.get("/api/unknown")
		self.assertEqual(response.status_code, 404)
		payload = response.json()
		self.assertFalse(payload["ok"])
		self.assertEqual(payload["error"]["code"], "http_404")

	def test_chat_returns_fallback_reply(self) -> None:
		response = self.client.post("/api/ai/chat", json={"message": "What is an enzyme?"}, headers={"X-Request-ID": "req-1"})
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.headers["X-Request-ID"], "req-1")
		self.assertIn("X-Process-Time", response.headers)
		payload = response.json()
		self.assertTrue(payload["ok"])
		self.assertEqual(payload["request_id"], "req-1")
		data = payload["data"]
		self.assertTrue(data["response"])
		self.assertEqual(data["source"], "fallback")
		self.assertTrue(data["timestamp"].endswith("Z"))

	def test_chat_input_bounds(self) -> None:
		cases = [
			{"message": "   "},
			{"message": "x" * 1001},
			{"message": "ok", "context": "c" * 5001},
			{"message": "ok", "unexpected": True},
		]
		for body in cases:
			with self.subTest(body=list(body)):
				response = self.client.post("/api/ai/chat", json=body)
				self.assertEqual(response.status_code, 422)
				payload = response.json()
				self.assertEqual(payload["error"]["code"], "validation_error")
				self.assertTrue(payload["error"]["evidence"])

	def test_analyze_returns_structured_analysis(self) -> None:
		response = self.client.post("/api/ai/analyze", json={"text": _TEXT, "documentId": "doc-7"})
		self.assertEqual(response.status_code, 200)
		data = response.json()["data"]
		self.assertTrue(data["analysis"]["structured"])
		self.assertEqual(data["analysis"]["difficulty"], "beginner")
		self.assertEqual(data["analysis"]["source"], "fallback")
		self.assertEqual(data["textLength"], len(_TEXT))
		self.assertEqual(data["estimatedReadingTime"], 1)
		self.assertEqual(data["documentId"], "doc-7")

	def test_reading_time_ignores_repeated_whitespace(self) -> None:
		text = "Cells   divide\n\n   often.   " * 60
		response = self.client.post("/api/ai/analyze", json={"text": text})
		self.assertEqual(response.status_code, 200)
		data = response.json()["data"]
		self.assertEqual(data["estimatedReadingTime"], 1)
		self.assertEqual(data["estimatedReadingTime"], data["analysis"]["readingTimeMinutes"])

	def test_summarize_contract(self) -> None:
		response = self.client.post("/api/ai/summarize", json={"text": _TEXT, "type": "brief"})
		self.assertEqual(response.status_code, 200)
		data = response.json()["data"]
		self.assertEqual(data["type"], "brief")
		self.assertEqual(data["originalLength"], len(_TEXT))
		self.assertAlmostEqual(data["compressionRatio"], len(data["summary"]) / len(_TEXT))
		invalid = self.client.post("/api/ai/summarize", json={"text": _TEXT, "type": "epic"})
		self.assertEqual(invalid.status_code, 422)

	def test_generate_quiz_contract(self) -> None:
		response = self.client.post("/api/ai/generate-quiz", json={"text": _TEXT, "questionCount": 3, "difficulty": "easy"})
		self.assertEqual(response.status_code, 200)
		data = response.json()["data"]
		self.assertEqual(len(data["questions"]), 3)
		self.assertNotIn("raw", data)
		self.assertEqual(data["metadata"]["totalQuestions"], 3)
		self.assertEqual(data["metadata"]["estimatedTime"], 6)
		self.assertEqual(data["metadata"]["difficulty"], "easy")
		for question in data["questions"]:
			self.assertEqual(len(question["options"]), 4)
			self.assertIn(question["correctIndex"], range(4))

	def test_generate_quiz_rejects_out_of_range_count(self) -> None:
		for count in (0, 21):
			with self.subTest(count=count):
				response = self.client.post("/api/ai/generate-quiz", json={"text": _TEXT, "questionCount": count})
				self.assertEqual(response.status_code, 400)
				self.assertEqual(response.json()["error"]["code"], "invalid_question_count")

	def test_web_content_success_and_unavailable(self) -> None:
		response = self.client.post("/api/ai/web-content", json={"url": "https://example.com/notes"})
		self.assertEqual(response.status_code, 200)
		content = response.json()["data"]["content"]
		self.assertTrue(content["success"])
		self.assertEqual(content["method"], "direct")
		self.assertEqual(content["title"], "Notes")

		failed = self.client.post("/api/ai/web-content", json={"url": "https://down.example/page"})
		self.assertEqual(failed.status_code, 503)
		self.assertEqual(failed.json()["error"]["code"], "web_content_unavailable")

		invalid = self.client.post("/api/ai/web-content", json={"url": "example.com"})
		self.assertEqual(invalid.status_code, 400)
		self.assertEqual(invalid.json()["error"]["code"], "invalid_url")

	def test_chat_web_caps_urls(self) -> None:
		urls = [f"https://example.com/{index}" for index in range(5)]
		response = self.client.post("/api/ai/chat-web", json={"message": "Compare these", "urls": urls})
		self.assertEqual(response.status_code, 200)
		data = response.json()["data"]
		self.assertEqual(data["urlsFetched"], 3)
		self.assertEqual([source["url"] for source in data["sources"]], urls[:3])
		self.assertEqual(sorted(self.fetched), urls[:3])
		self.assertTrue(data["response"])

	def test_status_and_reconfigure(self) -> None:
		status = self.client.get("/api/ai/status").json()["data"]
		self.assertFalse(status["configured"])
		self.assertEqual(status["source"], "fallback")
		with patch.dict(os.environ, {"LASTMIN_PROVIDER_API_KEY": "sk-test-0123456789"}, clear=False):
			response = self.client.post("/api/ai/reconfigure")
		self.assertEqual(response.status_code, 200)
		data = response.json()["data"]
		self.assertTrue(data["configured"])
		self.assertNotIn("sk-test-0123456789", response.text)
		self.assertTrue(self.runtime.gateway.is_configured())

	def test_bridge_endpoints(self) -> None:
		health = self.client.get("/api/bridge/health").json()["data"]
		self.assertFalse(health["extensionConnected"])
		self.assertIsNone(health["lastPing"])

		placeholder = self.client.post("/api/bridge/fetch", json={"url": "https://example.com/page"})
		self.assertEqual(placeholder.status_code, 200)
		data = placeholder.json()["data"]
		self.assertTrue(data["success"])
		self.assertTrue(data["requestId"])
		self.assertEqual(data["data"]["title"], "Extension Not Connected")

		registered = self.client.post("/api/bridge/register-extension", json={"extensionId": "ext-1"})
		self.assertTrue(registered.json()["data"]["success"])
		self.assertTrue(self.client.get("/api/bridge/health").json()["data"]["extensionConnected"])

		poll = self.client.get("/api/bridge/next-request", params={"wait": 0})
		self.assertIsNone(poll.json()["data"]["request"])

		late = self.client.post("/api/bridge/content-extracted", json={"requestId": "unknown", "content": {"content": "x"}})
		self.assertEqual(late.status_code, 200)
		self.assertFalse(late.json()["data"]["accepted"])

	def test_register_extension_accepts_empty_body(self) -> None:
		response = self.client.post("/api/bridge/register-extension")
		self.assertEqual(response.status_code, 200)
		self.assertTrue(self.runtime.bridge.is_connected())

	def test_quiz_grade_and_stats(self) -> None:
		attempt = {"quizId": "quiz-1", "answers": {"q1": 0, "q2": 1}, "timeSpent": 120}
		response = self.client.post("/api/quiz/grade", json={"quiz": _QUIZ, "attempt": attempt})
		self.assertEqual(response.status_code, 200)
		report = response.json()["data"]
		self.assertEqual(report["scorePercent"], 40)
		self.assertEqual(report["correctCount"], 1)
		self.assertFalse(report["passed"])

		stats = self.client.post(
			"/api/quiz/stats",
			json={"quiz": _QUIZ, "attempts": [attempt, {"answers": {"q1": 0, "q2": 2}, "timeSpent": 60}]},
		).json()["data"]
		self.assertEqual(stats["totalAttempts"], 2)
		self.assertEqual(stats["averageScore"], 70.0)
		self.assertEqual(stats["passRate"], 50.0)
		self.assertEqual(stats["scoreDistribution"]["81-100"], 1)

	def test_quiz_grade_reports_malformed_answers_as_invalid(self) -> None:
		attempt = {"answers": {"q1": 0, "q2": "C"}}
		response = self.client.post("/api/quiz/grade", json={"quiz": _QUIZ, "attempt": attempt})
		self.assertEqual(response.status_code, 200)
		report = response.json()["data"]
		statuses = {answer["questionId"]: answer["status"] for answer in report["gradedAnswers"]}
		self.assertEqual(statuses, {"q1": "answered", "q2": "invalid_option"})
		self.assertEqual(report["scorePercent"], 40)

		fractional = self.client.post("/api/quiz/grade", json={"quiz": _QUIZ, "attempt": {"answers": {"q2": 1.5}}})
		self.assertEqual(fractional.status_code, 200)
		graded = {answer["questionId"]: answer for answer in fractional.json()["data"]["gradedAnswers"]}
		self.assertEqual(graded["q2"]["status"], "invalid_option")
		self.assertFalse(graded["q2"]["isCorrect"])

	def test_quiz_validation(self) -> None:
		broken = {"id": "quiz-2", "questions": [{**_question("q1", 0, 1), "options": ["A", "B", "C"]}]}
		response = self.client.post("/api/quiz/grade", json={"quiz": broken, "attempt": {"answers": {}}})
		self.assertEqual(response.status_code, 422)
		mismatch = self.client.post("/api/quiz/grade", json={"quiz": _QUIZ, "attempt": {"quizId": "other", "answers": {}}})
		self.assertEqual(mismatch.status_code, 400)
		self.assertEqual(mismatch.json()["error"]["code"], "quiz_mismatch")
