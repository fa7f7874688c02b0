from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from lastmin.backend.errors import InputContractError
from lastmin.backend.gateway.acquisition import is_fetchable_url
from lastmin.backend.gateway.bridge import ExtensionBridge
from lastmin.backend.services import runtime


logger = logging.getLogger(__name__)

MAX_LONG_POLL_S = 30.0


def _bridge(bridge: Optional[ExtensionBridge]) -> ExtensionBridge:
	return bridge or runtime.get_bridge()


def health(bridge: Optional[ExtensionBridge] = None) -> Dict[str, Any]:
	return _bridge(bridge).health()


def register_extension(extension_id: Optional[str] = None, bridge: Optional[ExtensionBridge] = None) -> Dict[str, Any]:
	_bridge(bridge).register_extension(extension_id)
	return {"success": True, "message": "Extension registered successfully"}


async def fetch(url: str, bridge: Optional[ExtensionBridge] = None) -> Dict[str, Any]:
	current = _bridge(bridge)
	if not is_fetchable_url(url):
		raise InputContractError("URL must be an absolute http(s) URL.", code="invalid_url")
	if not current.is_connected():
		logger.info("fetch for %s requested while the browser extension is not connected", url)
		return {
			"success": True,
			"data": current.not_connected_content(url).as_dict(),
			"requestId": current.registry.new_request_id(),
		}
	request_id, content = await current.fetch(url)
	return {"success": True, "data": content.as_dict(), "requestId": request_id}


def content_extracted(request_id: str, content: Any, bridge: Optional[ExtensionBridge] = None) -> Dict[str, Any]:
	accepted = _bridge(bridge).deliver(request_id, content)
	return {"success": True, "accepted": accepted, "requestId": request_id}


async def next_request(wait_s: float = 0.0, bridge: Optional[ExtensionBridge] = None) -> Dict[str, Any]:
	job = await _bridge(bridge).next_job(min(max(wait_s, 0.0), MAX_LONG_POLL_S))
	return {"request": job.as_dict() if job is not None else None}
