from typing import Any, Dict, List

import httpx

import config as cfg
from navi.errors import (ActionFailure, StateValidationError, TransportFailure,
                         UnknownAction)


class RemoteClient:
	"""Talks to the instance that owns a port. Failures are not retried."""

	def __init__(self,
	             port: int,
	             host: str = cfg.HOST,
	             timeout: float = cfg.REQUEST_TIMEOUT,
	             action_timeout: float = cfg.ACTION_TIMEOUT):
		self.base_url = f"http://{host}:{port}"
		self.timeout = timeout
		self.action_timeout = action_timeout

	async def _request(self, method: str, path: str, timeout: float, body=None):
		try:
			async with httpx.AsyncClient(timeout=timeout, trust_env=False) as client:
				res = await client.request(method, self.base_url + path, json=body)
		except httpx.HTTPError as e:
			raise TransportFailure(
			    f"{method} {path} failed: {str(e) or type(e).__name__}") from e

		try:
			payload = res.json()
		except ValueError as e:
			if res.status_code in (404, 405):
				return res.status_code, None
			raise TransportFailure(
			    f"{method} {path} returned a non-JSON reply ({res.status_code})"
			) from e
		return res.status_code, payload

	@staticmethod
	def _error(payload, fallback: str) -> str:
		if isinstance(payload, dict):
			return str(payload.get("error") or payload.get("detail") or fallback)
		return fallback

	async def get_state(self) -> Dict[str, Any]:
		status, payload = await self._request("GET", "/state", self.timeout)
		if status != 200 or not isinstance(payload, dict):
			raise TransportFailure(f"GET /state returned {status}")
		return payload

	async def patch_state(self, patch: Dict[str, Any]) -> Dict[str, Any]:
		"""Sends a patch and returns the resulting full state."""
		status, payload = await self._request("POST", "/state", self.timeout,
		                                      patch)
		if status == 400:
			raise StateValidationError(self._error(payload, "Patch rejected"))
		if status != 200 or not isinstance(payload, dict):
			raise TransportFailure(f"POST /state returned {status}")
		return payload.get("state", {})

	async def call_action(self, name: str, args: List[Any] | None = None) -> Any:
		status, payload = await self._request("POST", f"/{name}",
		                                      self.action_timeout, args or [])
		if status in (404, 405):
			raise UnknownAction(name)
		if status == 500:
			raise ActionFailure(name, self._error(payload, "Action failed"))
		if status != 200 or not isinstance(payload, dict):
			raise TransportFailure(
			    f"POST /{name} returned {status}: {self._error(payload, '')}")
		return payload.get("result")
