import asyncio
from unittest import IsolatedAsyncioTestCase

from lastmin.backend.gateway.bridge import ExtensionBridge, content_from_extension
from lastmin.backend.gateway.registry import CorrelationRegistry, ManualScheduler
from lastmin.backend.services import bridge_service


class _Clock:
	def __init__(self, now: float = 1_700_000_000.0):
		self.now = now

	def __call__(self) -> float:
		return self.now


class ExtensionBridgeTests(IsolatedAsyncioTestCase):
	def setUp(self) -> None:
		self.clock = _Clock()
		self.scheduler = ManualScheduler()
		self.registry = CorrelationRegistry(self.scheduler, default_timeout_s=30.0)
		self.bridge = ExtensionBridge(self.registry, stale_after_s=90.0, max_chars=50, clock=self.clock)

	async def test_connection_follows_registration_and_pings(self) -> None:
		self.assertFalse(self.bridge.is_connected())
		self.bridge.ping()
		self.assertFalse(self.bridge.is_connected())
		self.bridge.register_extension("ext-42")
		self.assertTrue(self.bridge.is_connected())
		self.clock.now += 91
		self.assertFalse(self.bridge.is_connected())
		self.bridge.ping()
		self.assertTrue(self.bridge.is_connected())
		health = self.bridge.health()
		self.assertEqual(health["status"], "ok")
		self.assertTrue(health["extensionConnected"])
		self.assertTrue(health["lastPing"].endswith("Z"))

	async def test_round_trip_through_job_queue(self) -> None:
		self.bridge.register_extension()
		task = asyncio.create_task(self.bridge.fetch("https://example.com/page"))
		await asyncio.sleep(0)
		job = await self.bridge.next_job(0)
		self.assertEqual(job.as_dict(), {"requestId": job.request_id, "url": "https://example.com/page"})
		self.assertEqual(self.bridge.health()["pendingRequests"], 1)
		self.assertTrue(self.bridge.deliver(job.request_id, {"title": "Page", "content": "word " * 30}))
		request_id, content = await task
		self.assertEqual(request_id, job.request_id)
		self.assertTrue(content.success)
		self.assertEqual(len(content.text), 50)
		self.assertFalse(self.bridge.deliver(job.request_id, {"content": "late"}))
		self.assertEqual(self.bridge.health()["queuedJobs"], 0)

	async def test_timed_out_job_is_not_handed_out(self) -> None:
		self.bridge.register_extension()
		task = asyncio.create_task(self.bridge.fetch("https://example.com/slow", 5.0))
		await asyncio.sleep(0)
		self.scheduler.advance(5.0)
		_request_id, content = await task
		self.assertFalse(content.success)
		self.assertEqual(content.method, "brokered")
		self.assertIsNone(self.bridge.take_job())

	async def test_empty_poll_returns_none(self) -> None:
		self.assertIsNone(await self.bridge.next_job(0))

	async def test_unknown_delivery_is_rejected(self) -> None:
		self.assertFalse(self.bridge.deliver("nope", {"content": "text"}))

	async def test_fetch_without_extension_returns_placeholder(self) -> None:
		data = await bridge_service.fetch("https://example.com/page", bridge=self.bridge)
		self.assertTrue(data["success"])
		self.assertTrue(data["requestId"])
		self.assertFalse(data["data"]["success"])
		self.assertEqual(data["data"]["title"], "Extension Not Connected")
		self.assertEqual(self.registry.pending_count(), 0)

	def test_content_from_extension_normalizes_payloads(self) -> None:
		content = content_from_extension("https://a", "  plain   text ", 100)
		self.assertEqual((content.text, content.title, content.method), ("plain text", "Web Page", "brokered"))
		self.assertFalse(content_from_extension("https://a", {"content": "   "}, 100).success)
		self.assertFalse(content_from_extension("https://a", None, 100).success)
