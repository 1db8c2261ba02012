import asyncio
import errno
import json
import socket
import sys
from enum import Enum
from typing import Dict

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

import config as cfg
from navi.errors import ActionFailure, NoPortAvailable, StateValidationError
from navi.routes import Action, build_routes, normalize_args
from navi.state import apply_patch, read_state, state_delta


# --- HTTP surface ---
def _action_endpoint(invoke: Action):

	async def endpoint(request: Request):
		raw = await request.body()
		try:
			args = normalize_args(json.loads(raw) if raw.strip() else None)
		except ValueError:
			return JSONResponse({"error": "Invalid JSON"}, status_code=400)

		try:
			result = jsonable_encoder(await invoke(args))
		except ActionFailure as e:
			print(f"Action '{invoke.name}' failed: {e}", file=sys.stderr)
			return JSONResponse({"error": str(e)}, status_code=500)
		except (TypeError, ValueError) as e:
			print(f"Action '{invoke.name}' returned an unserializable result: {e}",
			      file=sys.stderr)
			return JSONResponse(
			    {"error": f"Result of '{invoke.name}' is not JSON serializable"},
			    status_code=500)
		return {"status": "ok", "result": result}

	return endpoint


def create_server_app(app, routes: Dict[str, Action] | None = None) -> FastAPI:
	"""
    Builds the HTTP surface for one application instance:
    GET/POST /state plus one POST /<name> per action.
    """
	routes = build_routes(app) if routes is None else routes
	# No docs routes: every other path is 404 and free for actions.
	api = FastAPI(title=app.name, docs_url=None, redoc_url=None, openapi_url=None)

	@api.get("/state")
	async def get_state():
		return read_state(app.state)

	@api.post("/state")
	async def update_state(request: Request):
		try:
			body = await request.json()
		except ValueError:
			return JSONResponse({"error": "Invalid JSON"}, status_code=400)
		if not isinstance(body, dict):
			return JSONResponse({"error": "Patch must be a JSON object"},
			                    status_code=400)

		# Only keys that actually change are applied.
		patch = state_delta(read_state(app.state), body)
		try:
			if patch:
				apply_patch(app.state, patch)
		except StateValidationError as e:
			return JSONResponse({"error": str(e)}, status_code=400)
		return {"status": "ok", "state": read_state(app.state)}

	for name, invoke in routes.items():
		api.add_api_route(f"/{name}",
		                  _action_endpoint(invoke),
		                  methods=["POST"],
		                  name=name)

	return api


# --- Binding ---
def bind_socket(host: str, port: int, attempts: int = 1) -> socket.socket:
	"""
    Binds and listens on the first free port in [port, port + attempts).

    The bind call decides ownership: whoever binds first owns the port.
    Raises NoPortAvailable when the whole range is taken.
    """
	family = socket.AF_INET6 if ":" in host else socket.AF_INET
	for candidate in range(port, port + attempts):
		sock = socket.socket(family, socket.SOCK_STREAM)
		if sys.platform != "win32":
			sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
		try:
			sock.bind((host, candidate))
			sock.listen(cfg.BACKLOG)
		except OSError as e:
			sock.close()
			if e.errno in (errno.EADDRINUSE, errno.EACCES):
				continue
			raise
		return sock
	raise NoPortAvailable(port, attempts)


# --- Server host ---
class ServerStatus(str, Enum):
	UNBOUND = "unbound"
	BINDING = "binding"
	BOUND = "bound"
	SHUTTING_DOWN = "shutting_down"


class ServerHost:
	"""Owns the port binding and the uvicorn server for one application."""

	def __init__(self, app, routes: Dict[str, Action] | None = None,
	             host: str = cfg.HOST):
		self.app = app
		self.routes = build_routes(app) if routes is None else routes
		self.host = host
		self.status = ServerStatus.UNBOUND
		self.port: int | None = None
		self._server: uvicorn.Server | None = None
		self._task: asyncio.Task | None = None

	async def start(self, attempts: int = 1) -> int:
		"""Binds starting at the application's port and starts serving.

		Returns the bound port. On NoPortAvailable the host goes back to
		UNBOUND so the caller can decide what to do next.
		"""
		if self.status != ServerStatus.UNBOUND:
			raise RuntimeError(f"Server host is already {self.status.value}")

		self.status = ServerStatus.BINDING
		try:
			sock = bind_socket(self.host, self.app.port, attempts)
		except OSError:
			self.status = ServerStatus.UNBOUND
			raise

		self.port = sock.getsockname()[1]
		if self.port != self.app.port:
			self.app.set_port(self.port)

		config = uvicorn.Config(create_server_app(self.app, self.routes),
		                        host=self.host,
		                        port=self.port,
		                        log_level=cfg.UVICORN_LOG_LEVEL,
		                        lifespan="off")
		self._server = uvicorn.Server(config)
		self._task = asyncio.create_task(self._server.serve(sockets=[sock]))

		while not self._server.started:
			if self._task.done():
				self.status = ServerStatus.UNBOUND
				sock.close()
				self._task.result()
				raise RuntimeError("Server exited during startup")
			await asyncio.sleep(0.01)

		self.status = ServerStatus.BOUND
		self.app.is_server_instance = True
		return self.port

	async def serve_forever(self):
		"""Waits until the server exits (signal or stop())."""
		if self._task is None:
			raise RuntimeError("Server host was never started")
		try:
			await self._task
		finally:
			self.status = ServerStatus.SHUTTING_DOWN

	async def stop(self):
		if self._server is None or self._task is None:
			return
		self.status = ServerStatus.SHUTTING_DOWN
		self._server.should_exit = True
		await self._task
