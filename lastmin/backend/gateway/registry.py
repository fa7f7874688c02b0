from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import secrets
import time
from threading import Lock
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from lastmin.backend.gateway.types import CorrelationEntry, WebContent


logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class TimerHandle(Protocol):
	def cancel(self) -> None: ...


class Scheduler(Protocol):
	def now(self) -> float: ...

	def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
	"""Deadlines on the running asyncio loop."""

	def now(self) -> float:
		return time.monotonic()

	def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
		return asyncio.get_running_loop().call_later(delay, callback)


class _ManualHandle:
	def __init__(self) -> None:
		self.cancelled = False

	def cancel(self) -> None:
		self.cancelled = True


class ManualScheduler:
	"""Virtual clock: callbacks fire only when ``advance`` moves past their due time."""

	def __init__(self, start: float = 0.0) -> None:
		self._now = start
		self._seq = itertools.count()
		self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []

	def now(self) -> float:
		return self._now

	def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
		handle = _ManualHandle()
		heapq.heappush(self._queue, (self._now + max(delay, 0.0), next(self._seq), handle, callback))
		return handle

	def advance(self, seconds: float) -> int:
		target = self._now + seconds
		fired = 0
		while self._queue and self._queue[0][0] <= target:
			due, _seq, handle, callback = heapq.heappop(self._queue)
			self._now = due
			if handle.cancelled:
				continue
			callback()
			fired += 1
		self._now = target
		return fired

	def pending(self) -> int:
		return sum(1 for _due, _seq, handle, _cb in self._queue if not handle.cancelled)


def _base36(value: int) -> str:
	if value == 0:
		return "0"
	digits: List[str] = []
	while value:
		value, rem = divmod(value, 36)
		digits.append(_BASE36[rem])
	return "".join(reversed(digits))


def _set_if_pending(future: "asyncio.Future[WebContent]", value: WebContent) -> None:
	if not future.done():
		future.set_result(value)


def timeout_content(url: str) -> WebContent:
	return WebContent.failure(
		url,
		(
			f"Request timed out while waiting for the browser extension to fetch {url}. "
			"The extension may be busy or the website took too long to load."
		),
		title="Request Timeout",
		method="brokered",
	)


class CorrelationRegistry:
	"""Pending out-of-process fetches keyed by request id.

	Every entry settles exactly once, either through ``resolve`` (the companion
	delivered) or ``expire`` (the deadline fired). Settled entries leave the
	table immediately; later calls for the same id are no-ops.
	"""

	def __init__(self, scheduler: Optional[Scheduler] = None, default_timeout_s: float = 30.0) -> None:
		self._scheduler: Scheduler = scheduler or LoopScheduler()
		self._default_timeout_s = default_timeout_s
		self._entries: Dict[str, CorrelationEntry] = {}
		self._waiters: Dict[str, "asyncio.Future[WebContent]"] = {}
		self._timers: Dict[str, TimerHandle] = {}
		self._lock = Lock()
		self._last_stamp = 0

	@property
	def default_timeout_s(self) -> float:
		return self._default_timeout_s

	def set_default_timeout(self, timeout_s: float) -> None:
		if timeout_s > 0:
			self._default_timeout_s = timeout_s

	def _new_request_id_locked(self) -> str:
		while True:
			stamp = max(int(time.time() * 1000), self._last_stamp + 1)
			self._last_stamp = stamp
			request_id = f"{_base36(stamp)}{secrets.token_hex(4)}"
			if request_id not in self._entries:
				return request_id

	def new_request_id(self) -> str:
		with self._lock:
			return self._new_request_id_locked()

	def register(self, url: str, timeout_s: Optional[float] = None) -> Tuple[str, "asyncio.Future[WebContent]"]:
		loop = asyncio.get_running_loop()
		timeout = timeout_s if timeout_s and timeout_s > 0 else self._default_timeout_s
		waiter: "asyncio.Future[WebContent]" = loop.create_future()
		with self._lock:
			request_id = self._new_request_id_locked()
			created = self._scheduler.now()
			self._entries[request_id] = CorrelationEntry(
				request_id=request_id,
				url=url,
				created_at=created,
				deadline=created + timeout,
			)
			self._waiters[request_id] = waiter
			self._timers[request_id] = self._scheduler.call_later(timeout, lambda: self.expire(request_id))
		logger.debug("registered brokered request %s for %s (timeout %.1fs)", request_id, url, timeout)
		return request_id, waiter

	def resolve(self, request_id: str, result: WebContent) -> bool:
		settled = self._settle(request_id, result)
		if not settled:
			logger.debug("ignored late or duplicate delivery for %s", request_id)
		return settled

	def expire(self, request_id: str) -> bool:
		with self._lock:
			entry = self._entries.get(request_id)
			url = entry.url if entry is not None else ""
		if entry is None:
			return False
		settled = self._settle(request_id, timeout_content(url))
		if settled:
			logger.info("brokered request %s timed out for %s", request_id, url)
		return settled

	def _settle(self, request_id: str, result: WebContent) -> bool:
		with self._lock:
			entry = self._entries.get(request_id)
			if entry is None or entry.settled:
				return False
			entry.settled = True
			entry.resolution = result
			del self._entries[request_id]
			waiter = self._waiters.pop(request_id)
			timer = self._timers.pop(request_id, None)
		if timer is not None:
			timer.cancel()
		self._deliver(waiter, result)
		return True

	@staticmethod
	def _deliver(waiter: "asyncio.Future[WebContent]", result: WebContent) -> None:
		loop = waiter.get_loop()
		try:
			running = asyncio.get_running_loop()
		except RuntimeError:
			running = None
		if running is loop:
			_set_if_pending(waiter, result)
		elif not loop.is_closed():
			loop.call_soon_threadsafe(_set_if_pending, waiter, result)

	def pending_count(self) -> int:
		with self._lock:
			return len(self._entries)

	def __contains__(self, request_id: object) -> bool:
		with self._lock:
			return request_id in self._entries

	def expire_all(self) -> int:
		with self._lock:
			request_ids = list(self._entries)
		return sum(1 for request_id in request_ids if self.expire(request_id))
