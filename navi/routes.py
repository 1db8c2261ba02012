"""
Action registration and routing.

Public operations are marked with @action on the application class. The
marks are collected into a per-class table when the class is defined, and
build_routes turns that table into invocable Actions, one per `/<name>`.
"""

import inspect
from typing import Any, Callable, Dict, Iterable, List

from navi.errors import ActionFailure

RESERVED_NAMES = {"state"}

_ACTION_ATTR = "__navi_action__"


def action(fn: Callable | None = None,
           *,
           name: str | None = None,
           aliases: Iterable[str] = ()):
	"""Marks a method as a remotely callable action.

	Usable bare (`@action`), with an explicit route name
	(`@action(name="recordVoice")`), or with extra route names that reach
	the same method (`@action(aliases=("recordVoice",))`).
	"""

	def mark(func: Callable) -> Callable:
		setattr(func, _ACTION_ATTR, (name or func.__name__, *aliases))
		return func

	if fn is not None:
		return mark(fn)
	return mark


def collect_actions(cls: type) -> Dict[str, str]:
	"""Action name -> attribute name for `cls`, base classes first."""
	table: Dict[str, str] = {}
	for klass in reversed(cls.__mro__):
		for attr, member in vars(klass).items():
			# An override without the decorator keeps the inherited route.
			for route_name in getattr(member, _ACTION_ATTR, ()):
				if route_name in RESERVED_NAMES:
					raise ValueError(
					    f"{cls.__name__}.{attr}: '{route_name}' is a reserved route")
				table[route_name] = attr
	return table


def normalize_args(body: Any) -> List[Any]:
	if body is None:
		return []
	if isinstance(body, list):
		return body
	return [body]


class Action:
	"""A bound, awaitable entry point for one registered operation."""

	def __init__(self, app, name: str, attr: str):
		self.app = app
		self.name = name
		self.attr = attr

	async def __call__(self, args: List[Any] | None = None) -> Any:
		method = getattr(self.app, self.attr)
		try:
			result = method(*(args or []))
			if inspect.isawaitable(result):
				result = await result
		except Exception as e:
			raise ActionFailure(self.name, str(e) or type(e).__name__) from e
		return result

	def __repr__(self):
		return f"Action({self.name!r} -> {type(self.app).__name__}.{self.attr})"


def build_routes(app) -> Dict[str, Action]:
	return {
	    name: Action(app, name, attr)
	    for name, attr in type(app).actions.items()
	}
