import asyncio
import json
import threading

from navi.errors import NaviError, UnknownAction
from navi.state import apply_patch, coerce_cli_value, describe_schema, read_state

PROMPT = "▸ "


class Console:
	"""
    Interactive prompt for the resident instance.

    Input is read on a daemon thread and handed to the event loop through a
    queue, so the server keeps answering requests while the console waits.
    """

	def __init__(self, app, routes, host=None):
		self.app = app
		self.routes = routes
		self.host = host

	def say(self, msg: str):
		print(msg)
		self.app.set_system_message(msg)

	def _start_reader(self, lines: asyncio.Queue):
		loop = asyncio.get_running_loop()

		def reader():
			while True:
				try:
					line = input(PROMPT)
				except EOFError:
					line = None
				try:
					loop.call_soon_threadsafe(lines.put_nowait, line)
				except RuntimeError:
					return  # event loop already closed
				if line is None:
					return

		threading.Thread(target=reader, daemon=True).start()

	async def run(self):
		lines: asyncio.Queue = asyncio.Queue()
		self._start_reader(lines)
		self.print_help()

		while True:
			line = await lines.get()
			if line is None or not await self.handle(line):
				break

		if self.host is not None:
			await self.host.stop()

	async def handle(self, line: str) -> bool:
		"""Runs one console line. Returns False when the console should exit."""
		words = line.strip().split()
		if not words:
			return True
		cmd, args = words[0], words[1:]

		if cmd in ("exit", "quit"):
			return False

		try:
			if cmd == "help":
				self.print_help()
			elif cmd == "state":
				print(json.dumps(read_state(self.app.state), indent=2))
			elif cmd == "get":
				self.get(args)
			elif cmd == "set":
				self.set(args)
			elif cmd == "call" or cmd.removesuffix("()") in self.routes:
				await self.call(cmd, args)
			else:
				self.say(f"Unknown command: {line.strip()}")
		except NaviError as e:
			self.say(f"Error: {e}")
		return True

	def get(self, args):
		if not args:
			self.say("Please specify a key.")
			return
		state = read_state(self.app.state)
		if args[0] not in state:
			self.say(f"Unknown field '{args[0]}'")
			return
		value = state[args[0]]
		self.say(value if isinstance(value, str) else json.dumps(value))

	def set(self, args):
		if len(args) < 2:
			self.say("Usage: set <key> <value>")
			return
		key = args[0]
		if key == "port":
			self.say("'port' cannot be modified.")
			return
		value = coerce_cli_value(type(self.app.state), key, " ".join(args[1:]))
		apply_patch(self.app.state, {key: value})
		self.say(f"set {key}: {json.dumps(getattr(self.app.state, key))}")

	async def call(self, cmd, args):
		if cmd == "call":
			if not args:
				self.say("Please specify an action.")
				return
			name, fn_args = args[0], args[1:]
		else:
			name, fn_args = cmd.removesuffix("()"), args

		invoke = self.routes.get(name)
		if invoke is None:
			raise UnknownAction(name)
		result = await invoke(fn_args)
		if result is not None:
			self.say(result if isinstance(result, str) else json.dumps(result, indent=2))

	def print_help(self):
		status = "server" if self.app.is_server_instance else "local"
		print(f"\n--- {self.app.name} (port {self.app.port}, {status}) ---")
		print("Variables:")
		for name, info in describe_schema(type(self.app.state)).items():
			kind = info["type"] + (" | None" if info["optional"] else "")
			flag = " (read-only)" if info["read_only"] else ""
			print(f"  {name.ljust(18)} {kind}{flag}")
		if self.routes:
			print("Functions:")
			for name in sorted(self.routes):
				print(f"  {name}()")
		print("Commands: get <key> | set <key> <value> | call <action> [args] | "
		      "state | help | exit")
