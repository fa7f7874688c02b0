from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from lastmin.backend import constants
from lastmin.backend.config import GatewaySettings
from lastmin.backend.gateway.bridge import ExtensionBridge
from lastmin.backend.gateway.chain import Strategy, run_chain
from lastmin.backend.gateway.types import WebContent, word_count


logger = logging.getLogger(__name__)

_REQUEST_HEADERS = {
	"User-Agent": constants.BROWSER_USER_AGENT,
	"Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
	"Accept-Language": "en-US,en;q=0.5",
}

SEARCH_UNAVAILABLE_TEXT = (
	'No search backend is available to look up "{query}". '
	"To get current information, provide a specific URL to fetch, "
	"or connect the browser extension for browser-based access."
)


@dataclass(frozen=True)
class ExtractedPage:
	title: str
	description: str
	text: str


def is_fetchable_url(url: str) -> bool:
	try:
		parsed = urlparse(url.strip())
	except ValueError:
		return False
	return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _normalize(text: str) -> str:
	return " ".join(text.split())


def extract_page(html: str, *, min_chars: int, max_chars: int) -> ExtractedPage:
	"""Pull the readable text out of an HTML document.

	Non-content markup is dropped first, then likely main-content regions are
	probed in order; the whole body is used when none of them yields at least
	``min_chars`` characters.
	"""
	soup = BeautifulSoup(html, "html.parser")
	title = _normalize(soup.title.get_text()) if soup.title else ""
	description = ""
	for attrs in ({"name": "description"}, {"property": "og:description"}):
		meta = soup.find("meta", attrs=attrs)
		if meta is not None and meta.get("content"):
			description = _normalize(str(meta.get("content")))
			break

	for element in soup.select(constants.STRIP_SELECTORS):
		element.decompose()

	content = ""
	for selector in constants.CONTENT_SELECTORS:
		matches = soup.select(selector)
		if not matches:
			continue
		content = _normalize(" ".join(match.get_text(" ") for match in matches))
		if len(content) > min_chars:
			break

	if len(content) < min_chars:
		body = soup.body or soup
		content = _normalize(body.get_text(" "))

	return ExtractedPage(title=title or "Web Page", description=description, text=content[:max_chars])


def _succeeded(content: WebContent) -> bool:
	return content.success


def _failure_text(content: WebContent) -> str:
	return content.text.rstrip(".")


class WebAcquisitionPipeline:
	"""Resolve the text of a URL: direct fetch first, then the browser extension.

	``fetch`` always returns a WebContent; failures are reported through
	``success`` and ``method`` rather than raised.
	"""

	def __init__(
		self,
		settings: GatewaySettings,
		bridge: Optional[ExtensionBridge] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	):
		self._settings = settings
		self._bridge = bridge
		self._transport = transport

	@property
	def bridge(self) -> Optional[ExtensionBridge]:
		return self._bridge

	def reconfigure(self, settings: GatewaySettings) -> None:
		self._settings = settings

	async def fetch_direct(self, url: str) -> WebContent:
		timeout = self._settings.direct_fetch_timeout_s
		async with httpx.AsyncClient(
			timeout=timeout,
			headers=_REQUEST_HEADERS,
			follow_redirects=True,
			transport=self._transport,
		) as client:
			response = await asyncio.wait_for(client.get(url), timeout=timeout)
			response.raise_for_status()
			html = response.text

		page = extract_page(
			html,
			min_chars=self._settings.web_content_min_chars,
			max_chars=self._settings.web_content_max_chars,
		)
		if len(page.text) < constants.DIRECT_FETCH_MIN_USEFUL_CHARS:
			logger.info("direct fetch of %s yielded too little content (%d chars)", url, len(page.text))
			return WebContent.failure(
				url,
				f"Only {len(page.text)} characters of readable content were found at {url}.",
				title=page.title,
				method="direct",
			)
		return WebContent(
			url=url,
			title=page.title,
			text=page.text,
			description=page.description,
			word_count=word_count(page.text),
			method="direct",
			success=True,
		)

	async def fetch_brokered(self, url: str) -> WebContent:
		if self._bridge is None:
			return WebContent.failure(url, "No browser extension bridge is configured.", method="brokered")
		_request_id, content = await self._bridge.fetch(url, self._settings.brokered_fetch_timeout_s)
		return content

	def _strategies(self, url: str) -> List[Strategy[WebContent]]:
		bridge_ready = self._bridge is not None and self._bridge.is_connected()
		return [
			Strategy(
				name="direct",
				run=lambda: self.fetch_direct(url),
				accept=_succeeded,
				describe_rejection=_failure_text,
			),
			Strategy(
				name="brokered",
				run=lambda: self.fetch_brokered(url),
				accept=_succeeded,
				describe_rejection=_failure_text,
				available=bridge_ready,
				unavailable_reason="browser extension not connected",
			),
		]

	async def fetch(self, url: str) -> WebContent:
		outcome = await run_chain(self._strategies(url), label="web acquisition")
		if outcome.succeeded and outcome.value is not None:
			logger.info("acquired %s via %s (%d words)", url, outcome.strategy, outcome.value.word_count)
			return outcome.value
		reasons = "; ".join(outcome.failure_details()) or "no strategy produced content"
		logger.warning("web acquisition failed for %s: %s", url, reasons)
		return WebContent.failure(
			url,
			(
				f"Failed to access {url}. {reasons}. This could be due to website restrictions, "
				"network issues, or the site requiring JavaScript."
			),
			title="Content Unavailable",
		)

	async def fetch_many(self, urls: Sequence[str]) -> List[WebContent]:
		return list(await asyncio.gather(*(self.fetch(url) for url in urls)))

	async def search(self, query: str) -> WebContent:
		return WebContent.failure(
			f"search:{query}",
			SEARCH_UNAVAILABLE_TEXT.format(query=query),
			title="Web Search Unavailable",
		)
