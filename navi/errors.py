"""Exceptions raised by the state, server and dispatcher layers."""


class NaviError(Exception):
	"""Base class for every error raised by navi itself."""


class StateValidationError(NaviError, ValueError):
	"""A patch was rejected. Nothing from it has been applied."""

	def __init__(self, message: str, field: str | None = None):
		super().__init__(message)
		self.field = field


class NoPortAvailable(NaviError, OSError):
	"""Every port in the bind range was already taken."""

	def __init__(self, port: int, attempts: int):
		last = port + attempts - 1
		span = f"port {port}" if attempts == 1 else f"ports {port}-{last}"
		super().__init__(f"No available port ({span} in use)")
		self.port = port
		self.attempts = attempts


class UnknownAction(NaviError, LookupError):

	def __init__(self, name: str):
		super().__init__(f"Unknown action: {name}")
		self.name = name


class ActionFailure(NaviError, RuntimeError):
	"""An action raised. The original exception is chained as __cause__."""

	def __init__(self, name: str, message: str):
		super().__init__(message)
		self.name = name


class TransportFailure(NaviError, ConnectionError):
	"""A request to a live instance failed mid-flight."""
