from lastmin.backend.gateway.acquisition import WebAcquisitionPipeline
from lastmin.backend.gateway.bridge import ExtensionBridge
from lastmin.backend.gateway.orchestrator import ProviderGateway
from lastmin.backend.gateway.registry import CorrelationRegistry, LoopScheduler, ManualScheduler
from lastmin.backend.gateway.types import ProviderResult, WebContent

__all__ = [
	"CorrelationRegistry",
	"ExtensionBridge",
	"LoopScheduler",
	"ManualScheduler",
	"ProviderGateway",
	"ProviderResult",
	"WebAcquisitionPipeline",
	"WebContent",
]
