from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Deque, Dict, Mapping, Optional, Tuple

from lastmin.backend import constants
from lastmin.backend.gateway.registry import CorrelationRegistry
from lastmin.backend.gateway.types import WebContent, word_count


logger = logging.getLogger(__name__)

_POLL_INTERVAL_S = 0.25

NOT_CONNECTED_TEXT = (
	"The browser extension is not connected, so real content from {url} could not be fetched.\n\n"
	"To enable browser-based fetching:\n"
	"1. Make sure the browser extension is loaded and active\n"
	"2. The extension registers itself with this bridge on startup\n"
	"3. Fetch requests are then forwarded to it automatically"
)


@dataclass(frozen=True)
class FetchJob:
	request_id: str
	url: str
	queued_at: float

	def as_dict(self) -> Dict[str, str]:
		return {"requestId": self.request_id, "url": self.url}


def _iso(timestamp: Optional[float]) -> Optional[str]:
	if timestamp is None:
		return None
	return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def content_from_extension(url: str, payload: Any, max_chars: int) -> WebContent:
	"""Normalize what the extension extracted client-side into a WebContent."""
	if isinstance(payload, str):
		payload = {"content": payload}
	if not isinstance(payload, Mapping):
		return WebContent.failure(url, "The browser extension returned no readable content.", method="brokered")
	raw_text = payload.get("content") or payload.get("text") or ""
	text = " ".join(str(raw_text).split())[:max_chars]
	title = " ".join(str(payload.get("title") or "").split()) or "Web Page"
	page_url = str(payload.get("url") or url)
	if not text:
		return WebContent.failure(page_url, "The browser extension returned no readable content.", method="brokered")
	return WebContent(
		url=page_url,
		title=title,
		text=text,
		description=str(payload.get("description") or ""),
		word_count=word_count(text),
		method="brokered",
		success=True,
	)


class ExtensionBridge:
	"""In-process side of the companion browser-extension transport.

	Fetch jobs wait in a queue that the extension long-polls; the extension posts
	results back by request id, which settles the matching registry entry.
	"""

	def __init__(
		self,
		registry: CorrelationRegistry,
		*,
		stale_after_s: float = constants.DEFAULT_EXTENSION_STALE_S,
		max_chars: int = constants.DEFAULT_WEB_CONTENT_MAX_CHARS,
		clock: Callable[[], float] = time.time,
	):
		self._registry = registry
		self._stale_after_s = stale_after_s
		self._max_chars = max_chars
		self._clock = clock
		self._jobs: Deque[FetchJob] = deque()
		self._urls: Dict[str, str] = {}
		self._lock = Lock()
		self._registered = False
		self._extension_id: Optional[str] = None
		self._last_ping: Optional[float] = None

	@property
	def registry(self) -> CorrelationRegistry:
		return self._registry

	def configure(self, *, stale_after_s: float, max_chars: int) -> None:
		self._stale_after_s = stale_after_s
		self._max_chars = max_chars

	def register_extension(self, extension_id: Optional[str] = None) -> None:
		with self._lock:
			self._registered = True
			self._extension_id = extension_id or self._extension_id
			self._last_ping = self._clock()
		logger.info("browser extension registered (%s)", extension_id or "anonymous")

	def ping(self) -> None:
		with self._lock:
			if self._registered:
				self._last_ping = self._clock()

	def is_connected(self) -> bool:
		with self._lock:
			if not self._registered or self._last_ping is None:
				return False
			return self._clock() - self._last_ping <= self._stale_after_s

	def health(self) -> Dict[str, Any]:
		connected = self.is_connected()
		with self._lock:
			queued = len(self._jobs)
			last_ping = self._last_ping
		return {
			"status": "ok",
			"extensionConnected": connected,
			"lastPing": _iso(last_ping),
			"pendingRequests": self._registry.pending_count(),
			"queuedJobs": queued,
		}

	def not_connected_content(self, url: str) -> WebContent:
		return WebContent.failure(url, NOT_CONNECTED_TEXT.format(url=url), title="Extension Not Connected")

	async def fetch(self, url: str, timeout_s: Optional[float] = None) -> Tuple[str, WebContent]:
		request_id, waiter = self._registry.register(url, timeout_s)
		with self._lock:
			self._jobs.append(FetchJob(request_id=request_id, url=url, queued_at=self._clock()))
			self._urls[request_id] = url
		logger.info("dispatched brokered request %s for %s", request_id, url)
		try:
			content = await waiter
		finally:
			self._forget(request_id)
		return request_id, content

	def _forget(self, request_id: str) -> None:
		with self._lock:
			self._urls.pop(request_id, None)
			self._jobs = deque(job for job in self._jobs if job.request_id != request_id)

	def take_job(self) -> Optional[FetchJob]:
		with self._lock:
			while self._jobs:
				job = self._jobs.popleft()
				if job.request_id in self._registry:
					return job
			return None

	async def next_job(self, wait_s: float = 0.0) -> Optional[FetchJob]:
		self.ping()
		deadline = self._clock() + max(wait_s, 0.0)
		while True:
			job = self.take_job()
			if job is not None or self._clock() >= deadline:
				return job
			await asyncio.sleep(_POLL_INTERVAL_S)

	def deliver(self, request_id: str, payload: Any) -> bool:
		self.ping()
		with self._lock:
			url = self._urls.get(request_id, "")
		if not url:
			logger.debug("delivery for unknown or settled request %s", request_id)
			return False
		return self._registry.resolve(request_id, content_from_extension(url, payload, self._max_chars))
