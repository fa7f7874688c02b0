import asyncio
from unittest import IsolatedAsyncioTestCase

from lastmin.backend.gateway.registry import CorrelationRegistry, ManualScheduler
from lastmin.backend.gateway.types import WebContent


def _content(url: str, text: str = "Delivered page text") -> WebContent:
	return WebContent(url=url, title="Page", text=text, word_count=len(text.split()), method="brokered", success=True)


class CorrelationRegistryTests(IsolatedAsyncioTestCase):
	def setUp(self) -> None:
		self.scheduler = ManualScheduler()
		self.registry = CorrelationRegistry(self.scheduler, default_timeout_s=30.0)

	async def test_resolve_delivers_result_and_removes_entry(self) -> None:
		request_id, waiter = self.registry.register("https://example.com/a")
		self.assertIn(request_id, self.registry)
		self.assertTrue(self.registry.resolve(request_id, _content("https://example.com/a")))
		result = await waiter
		self.assertTrue(result.success)
		self.assertEqual(result.text, "Delivered page text")
		self.assertNotIn(request_id, self.registry)
		self.assertEqual(self.registry.pending_count(), 0)
		self.assertEqual(self.scheduler.pending(), 0)

	async def test_deadline_synthesizes_timeout_result(self) -> None:
		_request_id, waiter = self.registry.register("https://example.com/slow", timeout_s=5.0)
		self.assertEqual(self.scheduler.advance(4.9), 0)
		self.assertFalse(waiter.done())
		self.assertEqual(self.scheduler.advance(0.2), 1)
		result = await waiter
		self.assertFalse(result.success)
		self.assertEqual(result.method, "brokered")
		self.assertEqual(result.title, "Request Timeout")
		self.assertEqual(self.registry.pending_count(), 0)

	async def test_resolve_after_expire_is_a_no_op(self) -> None:
		request_id, waiter = self.registry.register("https://example.com/late", timeout_s=1.0)
		self.scheduler.advance(1.0)
		timed_out = await waiter
		self.assertFalse(self.registry.resolve(request_id, _content("https://example.com/late")))
		self.assertIs(waiter.result(), timed_out)
		self.assertFalse(timed_out.success)

	async def test_expire_after_resolve_is_a_no_op(self) -> None:
		request_id, waiter = self.registry.register("https://example.com/b")
		self.registry.resolve(request_id, _content("https://example.com/b"))
		self.assertFalse(self.registry.expire(request_id))
		self.assertEqual(self.scheduler.advance(60.0), 0)
		self.assertTrue((await waiter).success)

	async def test_duplicate_delivery_is_ignored(self) -> None:
		request_id, waiter = self.registry.register("https://example.com/c")
		self.assertTrue(self.registry.resolve(request_id, _content("https://example.com/c", "first")))
		self.assertFalse(self.registry.resolve(request_id, _content("https://example.com/c", "second")))
		self.assertEqual((await waiter).text, "first")

	async def test_unknown_request_ids_are_ignored(self) -> None:
		self.assertFalse(self.registry.resolve("missing", _content("https://example.com")))
		self.assertFalse(self.registry.expire("missing"))

	async def test_request_ids_are_unique(self) -> None:
		ids = {self.registry.register(f"https://example.com/{index}")[0] for index in range(200)}
		self.assertEqual(len(ids), 200)
		self.assertNotIn(self.registry.new_request_id(), ids)
		self.assertEqual(self.registry.expire_all(), 200)
		self.assertEqual(self.registry.pending_count(), 0)

	async def test_waiting_callers_are_not_blocked_by_each_other(self) -> None:
		first_id, first = self.registry.register("https://example.com/1")
		second_id, second = self.registry.register("https://example.com/2", timeout_s=2.0)
		gathered = asyncio.gather(first, second)
		self.scheduler.advance(2.0)
		self.registry.resolve(first_id, _content("https://example.com/1"))
		first_result, second_result = await gathered
		self.assertTrue(first_result.success)
		self.assertFalse(second_result.success)
		self.assertNotIn(second_id, self.registry)
