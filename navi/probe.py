import asyncio

import httpx

import config as cfg


async def probe(port: int,
                timeout: float = cfg.PROBE_TIMEOUT,
                host: str = cfg.HOST) -> bool:
	"""
    Is an instance already serving on this port?

    True only when GET /state answers 200 with a JSON object inside the
    timeout. Refused connections, timeouts and malformed replies all count
    as "not live"; this never raises.
    """
	try:
		async with httpx.AsyncClient(timeout=timeout, trust_env=False) as client:
			res = await asyncio.wait_for(client.get(f"http://{host}:{port}/state"),
			                             timeout)
		return res.status_code == 200 and isinstance(res.json(), dict)
	except Exception:
		return False


async def wait_for_live(port: int,
                        attempts: int = cfg.REPROBE_ATTEMPTS,
                        delay: float = cfg.REPROBE_DELAY,
                        host: str = cfg.HOST) -> bool:
	"""Re-probes a port a few times, e.g. right after losing a bind to it."""
	for i in range(attempts):
		if await probe(port, host=host):
			return True
		if i < attempts - 1:
			await asyncio.sleep(delay)
	return False
