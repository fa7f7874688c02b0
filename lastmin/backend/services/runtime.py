from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Mapping, Optional

import httpx

from lastmin.backend.config import GatewaySettings
from lastmin.backend.gateway.acquisition import WebAcquisitionPipeline
from lastmin.backend.gateway.bridge import ExtensionBridge
from lastmin.backend.gateway.orchestrator import ProviderGateway
from lastmin.backend.gateway.provider import ClientFactory
from lastmin.backend.gateway.registry import CorrelationRegistry


logger = logging.getLogger(__name__)


@dataclass
class Runtime:
	settings: GatewaySettings
	registry: CorrelationRegistry
	bridge: ExtensionBridge
	pipeline: WebAcquisitionPipeline
	gateway: ProviderGateway


_RUNTIME: Optional[Runtime] = None
_LOCK = Lock()


def build_runtime(
	settings: GatewaySettings,
	client_factory: Optional[ClientFactory] = None,
	transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Runtime:
	registry = CorrelationRegistry(default_timeout_s=settings.brokered_fetch_timeout_s)
	bridge = ExtensionBridge(
		registry,
		stale_after_s=settings.extension_stale_s,
		max_chars=settings.web_content_max_chars,
	)
	pipeline = WebAcquisitionPipeline(settings, bridge=bridge, transport=transport)
	gateway = ProviderGateway(settings, pipeline, client_factory=client_factory)
	return Runtime(settings=settings, registry=registry, bridge=bridge, pipeline=pipeline, gateway=gateway)


def get_runtime() -> Runtime:
	global _RUNTIME
	with _LOCK:
		if _RUNTIME is None:
			settings = GatewaySettings.from_env()
			_RUNTIME = build_runtime(settings)
			logger.info(
				"provider %s (model %s)",
				"configured" if settings.has_valid_credential() else "not configured, using local fallback",
				settings.provider_model,
			)
		return _RUNTIME


def get_gateway() -> ProviderGateway:
	return get_runtime().gateway


def get_bridge() -> ExtensionBridge:
	return get_runtime().bridge


def apply_settings(settings: GatewaySettings) -> Runtime:
	runtime = get_runtime()
	with _LOCK:
		runtime.settings = settings
		runtime.registry.set_default_timeout(settings.brokered_fetch_timeout_s)
		runtime.bridge.configure(
			stale_after_s=settings.extension_stale_s,
			max_chars=settings.web_content_max_chars,
		)
		runtime.gateway.reconfigure(settings)
	return runtime


def reload_from_env(env: Optional[Mapping[str, str]] = None) -> Runtime:
	return apply_settings(GatewaySettings.from_env(env))


def install_runtime(runtime: Optional[Runtime]) -> None:
	"""Replace the process runtime; ``None`` makes the next access rebuild it from the environment."""
	global _RUNTIME
	with _LOCK:
		_RUNTIME = runtime


def shutdown() -> int:
	with _LOCK:
		runtime = _RUNTIME
	if runtime is None:
		return 0
	expired = runtime.registry.expire_all()
	if expired:
		logger.info("expired %d pending brokered requests on shutdown", expired)
	return expired
