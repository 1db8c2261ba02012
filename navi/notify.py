import subprocess
import sys


def send_notification(title: str, body: str):
	"""Best-effort desktop notification through notify-send."""
	try:
		subprocess.Popen(["notify-send", title, body],
		                 stdout=subprocess.DEVNULL,
		                 stderr=subprocess.DEVNULL)
	except OSError as e:
		print(f"Could not send notification: {e}", file=sys.stderr)
