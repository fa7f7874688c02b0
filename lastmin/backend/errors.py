from __future__ import annotations

from typing import List, Optional

from fastapi import HTTPException


class GatewayError(Exception):
	status_code = 500
	code = "gateway_error"

	def __init__(
		self,
		message: str,
		*,
		code: Optional[str] = None,
		status_code: Optional[int] = None,
		evidence: Optional[List[str]] = None,
	):
		super().__init__(message)
		self.message = message
		if code is not None:
			self.code = code
		if status_code is not None:
			self.status_code = status_code
		self.evidence = list(evidence or [])


class InputContractError(GatewayError):
	"""Caller input violates a documented bound; raised before any provider or network call."""

	status_code = 400
	code = "invalid_input"


class ProviderUnavailable(GatewayError):
	"""Upstream provider is unconfigured, unreachable or returned an unusable envelope."""

	status_code = 503
	code = "provider_unavailable"


class MalformedOutput(GatewayError):
	status_code = 502
	code = "malformed_output"


class AcquisitionUnavailable(GatewayError):
	status_code = 503
	code = "web_content_unavailable"


def to_http_exception(exc: GatewayError) -> HTTPException:
	return HTTPException(
		status_code=exc.status_code,
		detail={"code": exc.code, "message": exc.message, "evidence": list(exc.evidence)},
	)
