import os

import numpy as np
import sounddevice as sd
import soundfile as sf
from mlx_audio.tts.models.kokoro import KokoroPipeline
from mlx_audio.tts.utils import load_model

import config as cfg

SAMPLE_RATE = 24000

model = None
pipeline: KokoroPipeline | None = None

# list is from https://huggingface.co/prince-canuma/Kokoro-82M/tree/main/voices
Voices = [
    'af_alloy', 'af_aoede', 'af_bella', 'af_heart', 'af_jessica', 'af_kore',
    'af_nicole', 'af_nova', 'af_river', 'af_sarah', 'af_sky', 'am_adam',
    'am_echo', 'am_eric', 'am_fenrir', 'am_liam', 'am_michael', 'am_onyx',
    'am_puck', 'am_santa'
]


def init(model_path: str = cfg.TTS_MODEL):
	global model, pipeline
	model = load_model(model_path)
	pipeline = KokoroPipeline(lang_code='a', model=model, repo_id=model_path)


def unload():
	global model, pipeline
	model = None
	pipeline = None


def generate(text: str,
             output_path: str = cfg.TTS_OUTPUT_FILE,
             voice: str = cfg.DEFAULT_VOICE,
             speed: float = 1.2) -> str:
	if pipeline is None:
		init()
	if voice not in Voices:
		print(f"Unknown voice '{voice}', using {cfg.DEFAULT_VOICE}")
		voice = cfg.DEFAULT_VOICE

	parts = []
	for _, _, audio in pipeline(text, voice=voice, speed=speed,
	                            split_pattern=r'\n+'):
		assert audio is not None
		parts.append(np.asarray(audio[0]))

	os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
	sf.write(output_path, np.concatenate(parts), SAMPLE_RATE)
	return output_path


def speak(text: str, voice: str = cfg.DEFAULT_VOICE):
	"""Generates speech for `text` and plays it, blocking until done."""
	print(f"🔊 Speaking: {text}")
	path = generate(text, voice=voice)
	data, samplerate = sf.read(path, dtype='float32')
	sd.play(data, samplerate)
	sd.wait()
