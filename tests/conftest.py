"""Shared sample application and port helpers for navi tests."""

import socket

import pytest
from pydantic import Field, computed_field

from navi.app import DynamicApp
from navi.routes import action
from navi.state import StateModel


class SampleState(StateModel):
	port: int = Field(default=3005, frozen=True)
	message: str = "initial"
	count: int = 0
	ratio: float = 0.5
	enabled: bool = False
	note: str | None = None

	@computed_field
	@property
	def shout(self) -> str:
		return self.message.upper()


class SampleApp(DynamicApp):
	state_model = SampleState

	@action
	def echo(self, *args):
		return list(args)

	@action
	async def add(self, a, b):
		return a + b

	@action(name="boom")
	async def explode(self):
		raise RuntimeError("kaboom")

	@action
	async def bump(self):
		self.state.count += 1
		return self.state.count

	def helper(self):
		return "not an action"


def find_free_port() -> int:
	with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
		sock.bind(("127.0.0.1", 0))
		return sock.getsockname()[1]


@pytest.fixture
def free_port() -> int:
	return find_free_port()


@pytest.fixture
def sample_app(free_port: int) -> SampleApp:
	return SampleApp(SampleState(port=free_port))
