# adapted from https://github.com/Blaizzy/mlx-audio/blob/main/mlx_audio/stt/generate.py

import time
from typing import Any

import mlx.core as mx
from mlx_audio.stt.utils import load_model

import config as cfg

model: Any = None


def init(model_path: str = cfg.WHISPER_MODEL):
	global model
	model = load_model(model_path)
	print(f"\n\033[94mModel:\033[0m {model_path}")
	mx.reset_peak_memory()


def unload():
	global model
	if model is None:
		return
	model = None


def transcribe(audio_path: str) -> str:
	if model is None:
		init()

	print(f"\033[94mAudio path:\033[0m {audio_path}")
	mx.reset_peak_memory()
	start_time = time.time()
	segments = model.generate(audio_path)
	end_time = time.time()

	print(f"\033[94mProcessing time:\033[0m {end_time - start_time:.2f} seconds")
	print(f"\033[94mPeak memory:\033[0m {mx.get_peak_memory() / 1e9:.2f} GB")
	return segments.text.strip()
