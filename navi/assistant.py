"""
Navi: a push-to-talk voice assistant.

`navi call record_voice` starts recording (starting the resident server if
none is running); calling it again stops, transcribes into the scratchpad.
`navi call ask` sends the scratchpad (plus today's note when use_research is
on) to the language model and speaks the answer as it streams in.
"""

import asyncio
import sys
from typing import AsyncIterator, Iterator

from pydantic import Field, computed_field

import config as cfg
from navi.app import DynamicApp
from navi.dispatcher import run
from navi.prompt import (SpeechBuffer, build_prompt, read_daily_note,
                         read_scratchpad, strip_markdown, write_scratchpad)
from navi.routes import action
from navi.state import StateModel


class NaviState(StateModel):
	port: int = Field(default=cfg.NAVI_PORT, frozen=True)
	use_research: bool = True
	model: str = cfg.LANGUAGE_MODEL
	temperature: float = 0.7
	max_tokens: int = 120
	voice: str = cfg.DEFAULT_VOICE
	scratchpad_path: str = cfg.SCRATCHPAD_FILE
	notes_dir: str | None = cfg.NOTES_DIR
	is_recording: bool = False
	last_transcript: str = ""

	@computed_field
	@property
	def status(self) -> str:
		return "recording" if self.is_recording else "idle"


class LocalVoice:
	"""
    The default I/O adapters: llama.cpp for completions, mlx-audio for speech
    and sounddevice for the microphone. Each library is loaded on first use.
    """

	def __init__(self):
		# model modules touched so far; unload() frees them
		self._models = []

	def _using(self, lib):
		if lib not in self._models:
			self._models.append(lib)
		return lib

	def generate_completion(self, prompt: str, model: str, temperature: float,
	                        max_tokens: int) -> Iterator[str]:
		from navi import llm
		return self._using(llm).generate_stream(prompt,
		                                        model_path=model,
		                                        temperature=temperature,
		                                        max_tokens=max_tokens)

	def start_capture(self):
		from navi import record
		record.start_capture()

	def stop_capture(self) -> str | None:
		from navi import record
		return record.stop_capture(cfg.RECORDED_AUDIO_FILE)

	def transcribe(self, audio_path: str) -> str:
		from navi import stt
		return self._using(stt).transcribe(audio_path)

	def speak(self, text: str, voice: str):
		from navi import tts
		self._using(tts).speak(text, voice=voice)

	def unload(self):
		for lib in self._models:
			lib.unload()
		self._models.clear()


async def _iterate_in_thread(chunks: Iterator[str]) -> AsyncIterator[str]:
	# The model yields from a blocking generator; pull each chunk off-loop.
	done = object()
	while True:
		chunk = await asyncio.to_thread(next, chunks, done)
		if chunk is done:
			return
		yield chunk


class Navi(DynamicApp):
	state_model = NaviState

	def __init__(self, state: NaviState | None = None, adapters=None):
		super().__init__(state)
		self.adapters = adapters if adapters is not None else LocalVoice()
		self._capture_busy = False

	def close(self):
		self.adapters.unload()

	async def _say(self, text: str):
		await asyncio.to_thread(self.adapters.speak, text, self.state.voice)

	@action
	async def ask(self) -> str:
		"""Prompts the model with the scratchpad and speaks the reply."""
		scratchpad = read_scratchpad(self.state.scratchpad_path)
		if not scratchpad.strip():
			self.set_system_message("Scratchpad is empty, nothing to ask.")
			return ""

		research = ""
		if self.state.use_research and self.state.notes_dir:
			research = read_daily_note(self.state.notes_dir)
		prompt = build_prompt(scratchpad, research, self.state.use_research)

		print("🦙 Asking the model...")
		chunks = self.adapters.generate_completion(
		    prompt,
		    model=self.state.model,
		    temperature=self.state.temperature,
		    max_tokens=self.state.max_tokens)
		buffer = SpeechBuffer()
		spoken = []
		async for token in _iterate_in_thread(iter(chunks)):
			phrase = buffer.feed(token)
			if phrase:
				await self._say(phrase)
				spoken.append(phrase)

		rest = buffer.flush()
		if rest:
			await self._say(rest)
			spoken.append(rest)
		return " ".join(spoken)

	@action(aliases=("startRecording",))
	async def start_recording(self) -> str:
		if self.state.is_recording or self._capture_busy:
			return "Already recording."
		self._capture_busy = True
		try:
			await asyncio.to_thread(self.adapters.start_capture)
			self.state.is_recording = True
		finally:
			self._capture_busy = False
		print("🔴 Recording...")
		return "Recording started."

	@action(aliases=("stopRecording",))
	async def stop_recording(self) -> str:
		"""Stops the microphone, transcribes, and writes the scratchpad."""
		if not self.state.is_recording or self._capture_busy:
			return ""
		self._capture_busy = True
		try:
			audio_path = await asyncio.to_thread(self.adapters.stop_capture)
			self.state.is_recording = False
			print("⚫ Recording stopped.")
			if not audio_path:
				self.set_system_message("No audio recorded.")
				return ""
			transcript = await asyncio.to_thread(self.adapters.transcribe, audio_path)
		finally:
			self._capture_busy = False

		transcript = transcript.strip()
		write_scratchpad(self.state.scratchpad_path, transcript)
		self.state.last_transcript = transcript
		return transcript

	@action(aliases=("recordVoice",))
	async def record_voice(self) -> str:
		if self.state.is_recording:
			return await self.stop_recording()
		return await self.start_recording()

	@action
	async def speak(self, *words) -> str:
		text = strip_markdown(" ".join(str(w) for w in words))
		if text:
			await self._say(text)
		return text


def main():
	sys.exit(run(Navi(), prog="navi"))
