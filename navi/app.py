from collections import deque
from typing import ClassVar, Dict

import config as cfg
from navi.notify import send_notification
from navi.routes import collect_actions
from navi.state import StateModel


class DynamicApp:
	"""
    Base class for an application that can run as a one-shot CLI command or
    as the resident server for its port.

    Subclasses set `state_model` to their StateModel and mark public
    operations with @action. The state object is the only thing that is
    transferred over the wire; everything else on the instance is local
    bookkeeping.
    """

	state_model: ClassVar[type[StateModel]] = StateModel
	actions: ClassVar[Dict[str, str]] = {}

	def __init_subclass__(cls, **kwargs):
		super().__init_subclass__(**kwargs)
		cls.actions = collect_actions(cls)

	def __init__(self, state: StateModel | None = None):
		self.state = state if state is not None else self.state_model()
		self.is_server_instance = False
		self.notify_enabled = False
		self.system_message: str | None = None
		self.system_log: deque[str] = deque(maxlen=cfg.SYSTEM_LOG_SIZE)

	@property
	def name(self) -> str:
		return type(self).__name__

	@property
	def port(self) -> int:
		return self.state.port

	def set_port(self, port: int):
		# port is read-only for patches; rebuild the state with the new value
		self.state = self.state.model_copy(update={"port": port})

	def set_system_message(self, msg: str):
		self.system_message = msg
		self.system_log.append(msg)
		if self.notify_enabled and msg.startswith("✅"):
			send_notification(self.name, msg)

	def close(self):
		"""Releases what the app holds once it stops serving."""
