import os
import threading

import numpy as np
import sounddevice as sd
from scipy.io.wavfile import write

import config as cfg

lock = threading.Lock()
audio_frames = []
stream: sd.InputStream | None = None


def start_capture():
	"""Starts recording from the default microphone. No-op if already recording."""
	global stream
	with lock:
		if stream is not None:
			return
		audio_frames.clear()

	def audio_callback(indata, frames, time, status):
		if status: print(f"Audio stream status: {status}")
		with lock:
			audio_frames.append(indata.copy())

	new_stream = sd.InputStream(samplerate=cfg.SAMPLE_RATE,
	                            channels=cfg.CHANNELS,
	                            callback=audio_callback,
	                            dtype='float32')
	new_stream.start()
	with lock:
		stream = new_stream


def stop_capture(output_path: str = cfg.RECORDED_AUDIO_FILE) -> str | None:
	"""Stops recording and writes a WAV file. Returns its path, or None if nothing was heard."""
	global stream
	with lock:
		current, stream = stream, None
	if current is None:
		return None
	current.stop()
	current.close()

	with lock:
		if not audio_frames:
			print("No audio recorded.")
			return None
		audio_data = np.concatenate(audio_frames, axis=0)
		audio_frames.clear()

	os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
	write(output_path, cfg.SAMPLE_RATE, audio_data)
	return output_path
