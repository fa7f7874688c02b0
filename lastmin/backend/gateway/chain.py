from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Literal, Optional, Sequence, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")
AttemptStatus = Literal["ok", "rejected", "error", "skipped"]


@dataclass
class Strategy(Generic[T]):
	"""One step of an ordered fallback chain.

	``run`` is awaited only when ``available`` is true. A value that fails
	``accept`` counts as a failed step and the chain moves on.
	"""

	name: str
	run: Callable[[], Awaitable[T]]
	accept: Optional[Callable[[T], bool]] = None
	available: bool = True
	unavailable_reason: str = "strategy unavailable"
	describe_rejection: Optional[Callable[[T], str]] = None


@dataclass
class StrategyAttempt:
	name: str
	status: AttemptStatus
	detail: str = ""


@dataclass
class ChainOutcome(Generic[T]):
	value: Optional[T]
	strategy: Optional[str]
	attempts: List[StrategyAttempt] = field(default_factory=list)

	@property
	def succeeded(self) -> bool:
		return self.strategy is not None

	def failure_details(self) -> List[str]:
		return [f"{attempt.name}: {attempt.detail}" for attempt in self.attempts if attempt.status != "ok"]


async def run_chain(strategies: Sequence[Strategy[T]], *, label: str = "chain") -> ChainOutcome[T]:
	attempts: List[StrategyAttempt] = []
	for strategy in strategies:
		if not strategy.available:
			attempts.append(StrategyAttempt(strategy.name, "skipped", strategy.unavailable_reason))
			continue
		try:
			value = await strategy.run()
		except Exception as exc:
			detail = f"{exc.__class__.__name__}: {exc}"
			logger.warning("%s strategy %s failed (%s)", label, strategy.name, exc.__class__.__name__)
			attempts.append(StrategyAttempt(strategy.name, "error", detail))
			continue
		if strategy.accept is not None and not strategy.accept(value):
			detail = "result did not meet acceptance check"
			if strategy.describe_rejection is not None:
				detail = strategy.describe_rejection(value)
			attempts.append(StrategyAttempt(strategy.name, "rejected", detail))
			continue
		attempts.append(StrategyAttempt(strategy.name, "ok"))
		return ChainOutcome(value=value, strategy=strategy.name, attempts=attempts)
	return ChainOutcome(value=None, strategy=None, attempts=attempts)
