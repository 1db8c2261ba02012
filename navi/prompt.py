import os
import re
from datetime import date

# A streamed chunk is spoken once it ends on punctuation and is long enough
# to sound like a phrase.
MIN_CHUNK_CHARS = 40
MIN_SPOKEN_CHARS = 5
_BREAK = re.compile(r"[.?!,;:\n]")


def strip_markdown(text: str) -> str:
	"""Removes the markdown a model likes to emit so TTS reads plain text."""
	text = re.sub(r"\*\*(.*?)\*\*", r"\1", text)
	text = re.sub(r"\*(.*?)\*", r"\1", text)
	text = re.sub(r"`(.*?)`", r"\1", text)
	text = re.sub(r"#+\s?", "", text)
	text = re.sub(r"[-*]\s+", "", text)
	text = re.sub(r"\n{2,}", "\n", text)
	text = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", text)
	text = re.sub(r">\s+", "", text)
	return text.strip()


def build_prompt(scratchpad: str, research: str, include_research: bool) -> str:
	if include_research and research.strip():
		return f"{scratchpad.strip()}\n\n{research.strip()}"
	return scratchpad.strip()


# --- File I/O ---
def read_scratchpad(path: str) -> str:
	try:
		with open(path, 'r', encoding='utf-8') as f:
			return f.read()
	except FileNotFoundError:
		print(f"Scratchpad not found at {path}")
		return ""


def write_scratchpad(path: str, content: str):
	os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
	with open(path, 'w', encoding='utf-8') as f:
		f.write(content)


def read_daily_note(notes_dir: str, day: date | None = None) -> str:
	"""Reads `<notes_dir>/<YYYY-MM-DD>.md` for today (or `day`)."""
	day = day or date.today()
	path = os.path.join(notes_dir, f"{day.isoformat()}.md")
	try:
		with open(path, 'r', encoding='utf-8') as f:
			return f.read()
	except FileNotFoundError:
		print(f"No daily note at {path}")
		return ""


class SpeechBuffer:
	"""Collects streamed tokens into speakable chunks."""

	def __init__(self):
		self.buffer = ""

	def feed(self, token: str) -> str | None:
		self.buffer += token or ""
		if not (_BREAK.search(token or "") and len(self.buffer) > MIN_CHUNK_CHARS):
			return None
		chunk = strip_markdown(self.buffer.strip())
		self.buffer = ""
		return chunk if len(chunk) > MIN_SPOKEN_CHARS else None

	def flush(self) -> str | None:
		rest = self.buffer.strip()
		self.buffer = ""
		if len(rest) > MIN_SPOKEN_CHARS:
			return strip_markdown(rest)
		return None
