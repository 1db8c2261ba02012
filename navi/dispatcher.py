"""
Command-line entry for a DynamicApp.

    <program> [get|set|call] <key-or-action> [value-or-args...]
              [--port N] [--return] [--notify]

Every command first probes the app's port. If an instance is live there the
command is forwarded to it; otherwise it runs against this process, and
`call` (or no command at all) promotes this process into the server.
"""

import argparse
import asyncio
import json
import sys
from typing import Any

import config as cfg
from navi.console import Console
from navi.errors import (ActionFailure, NaviError, NoPortAvailable,
                         StateValidationError, UnknownAction)
from navi.probe import probe, wait_for_live
from navi.remote import RemoteClient
from navi.routes import build_routes
from navi.server import ServerHost
from navi.state import apply_patch, coerce_cli_value, read_state

COMMANDS = ("get", "set", "call")


# --- Argument parsing ---
def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
	    prog=prog,
	    description="Run the app, or talk to the instance already running.")
	parser.add_argument(
	    "words",
	    nargs="*",
	    metavar="ARG",
	    help="get <key> | set <key> <value> | call <action> [args...] | "
	    "key=value overrides when starting")
	parser.add_argument("--port", type=int, help="override the app's port")
	parser.add_argument("--host", default=cfg.HOST, help="interface to use")
	parser.add_argument("--return",
	                    dest="return_output",
	                    action="store_true",
	                    help="print the result only, no interactive console")
	parser.add_argument("--notify",
	                    action="store_true",
	                    help="send a desktop notification when done")
	return parser


def parse_cli(argv=None, prog: str | None = None) -> argparse.Namespace:
	parser = build_parser(prog)
	args = parser.parse_intermixed_args(argv)

	words = args.words
	args.command = words[0] if words and words[0] in COMMANDS else None
	args.key = None
	args.values = []
	args.overrides = {}

	if args.command:
		rest = words[1:]
		args.key = rest[0] if rest else None
		args.values = rest[1:]
		return args

	for word in words:
		key, sep, value = word.partition("=")
		if not sep or not key:
			parser.error(f"unrecognized command '{word}' (expected get, set or call)")
		args.overrides[key] = value
	return args


def format_value(value: Any) -> str:
	if isinstance(value, str):
		return value
	return json.dumps(value)


# --- Dispatch ---
class Dispatcher:
	"""Runs one parsed command against the local or the remote instance."""

	def __init__(self, app, cli: argparse.Namespace):
		self.app = app
		self.cli = cli
		self.routes = build_routes(app)
		self.host: ServerHost | None = None

	@property
	def client(self) -> RemoteClient:
		return RemoteClient(self.app.port, host=self.cli.host)

	async def is_live(self) -> bool:
		return await probe(self.app.port, host=self.cli.host)

	async def run(self) -> int:
		if self.cli.port is not None:
			self.app.set_port(self.cli.port)
		self.app.notify_enabled = self.cli.notify

		handlers = {"get": self.get, "set": self.set, "call": self.call}
		handler = handlers.get(self.cli.command, self.start)
		try:
			return await handler()
		except NaviError as e:
			return self.fail(e)

	def fail(self, error) -> int:
		print(f"Error: {error}", file=sys.stderr)
		return 1

	def emit(self, value: Any):
		print(format_value(value))
		if isinstance(value, str) and value:
			self.app.set_system_message(value)
		self.app.set_system_message(f"✅ {self.app.name} finished (port {self.app.port})")

	# get <key>
	async def get(self) -> int:
		key = self.cli.key
		if not key:
			return self.fail("get needs a key")

		if await self.is_live():
			state = await self.client.get_state()
		else:
			state = read_state(self.app.state)

		if key not in state:
			raise StateValidationError(f"Unknown field '{key}'", field=key)
		self.emit(state[key])
		return 0

	# set <key> <value>
	async def set(self) -> int:
		key = self.cli.key
		if not key or not self.cli.values:
			return self.fail("set needs a key and a value")

		raw = " ".join(self.cli.values)
		patch = {key: coerce_cli_value(type(self.app.state), key, raw)}
		if await self.is_live():
			state = await self.client.patch_state(patch)
		else:
			apply_patch(self.app.state, patch)
			state = read_state(self.app.state)
		self.emit(state.get(key))
		return 0

	# call <action> [args...]
	async def call(self) -> int:
		name = self.cli.key
		if not name:
			return self.fail("call needs an action name")
		if name not in self.routes:
			raise UnknownAction(name)

		args = list(self.cli.values)
		if await self.is_live() or not await self.promote():
			self.emit(await self.client.call_action(name, args))
			return 0

		try:
			result = await self.routes[name](args)
		except ActionFailure as e:
			self.fail(e)
		else:
			self.emit(result)
		return await self.stay_resident()

	# no command: start serving, or push overrides to the live instance
	async def start(self) -> int:
		model = type(self.app.state)
		overrides = {
		    key: coerce_cli_value(model, key, value)
		    for key, value in self.cli.overrides.items()
		}

		if not await self.is_live():
			if overrides:
				apply_patch(self.app.state, overrides)
			if await self.promote():
				return await self.stay_resident()

		print(f"{self.app.name} is already running on port {self.app.port}.")
		if overrides:
			state = await self.client.patch_state(overrides)
			print(f"Remote state updated: {json.dumps(state)}")
		return 0

	# --- Promotion ---
	async def promote(self) -> bool:
		"""
        Makes this process the server for the app's port.

        Returns False when another process won the declared port and is
        answering on it; the caller then acts as that instance's client.
        If the port is taken but nobody answers, the following ports are
        tried instead.
        """
		declared = self.app.port
		host = ServerHost(self.app, self.routes, host=self.cli.host)
		try:
			await host.start()
		except NoPortAvailable:
			if await wait_for_live(declared, host=self.cli.host):
				print(f"Port {declared} was taken by another {self.app.name}; using it.")
				return False
			print(f"Port {declared} is busy, looking for a free one...")
			await host.start(attempts=cfg.PORT_ATTEMPTS)

		self.host = host
		print(f"Serving {self.app.name} on http://{self.cli.host}:{self.app.port}")
		return True

	async def stay_resident(self) -> int:
		console_task = None
		if not self.cli.return_output and sys.stdin.isatty():
			console = Console(self.app, self.routes, self.host)
			console_task = asyncio.create_task(console.run())
		try:
			await self.host.serve_forever()
		finally:
			if console_task is not None:
				console_task.cancel()
			self.app.close()
		return 0


def run(app, argv=None, prog: str | None = None) -> int:
	cli = parse_cli(argv, prog=prog)
	try:
		return asyncio.run(Dispatcher(app, cli).run())
	except KeyboardInterrupt:
		print("\nShutting down.")
		return 0
