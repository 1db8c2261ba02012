import os

# --- Network ---
HOST = os.environ.get("NAVI_HOST", "127.0.0.1")
NAVI_PORT = int(os.environ.get("NAVI_PORT", "2000"))
PORT_ATTEMPTS = 50  # successive ports tried when the declared one is taken
BACKLOG = 128

# --- Timeouts (seconds) ---
PROBE_TIMEOUT = 1.0
REQUEST_TIMEOUT = 10.0
ACTION_TIMEOUT = 300.0  # remote actions may wait on the LLM / STT
REPROBE_ATTEMPTS = 5
REPROBE_DELAY = 0.2

# --- Server ---
UVICORN_LOG_LEVEL = os.environ.get("NAVI_LOG_LEVEL", "warning")
SYSTEM_LOG_SIZE = 100

# --- Models ---
LANGUAGE_MODEL = os.environ.get("NAVI_LANGUAGE_MODEL",
                                "./models/gemma-3-4b-it-Q4_K_M.gguf")
WHISPER_MODEL = os.environ.get("NAVI_WHISPER_MODEL",
                               "mlx-community/whisper-large-v3-turbo")
TTS_MODEL = os.environ.get("NAVI_TTS_MODEL", "prince-canuma/Kokoro-82M")
DEFAULT_VOICE = "af_heart"

# --- Files ---
DATA_DIR = os.environ.get("NAVI_DATA_DIR", "./data")
SCRATCHPAD_FILE = os.path.join(DATA_DIR, "scratchpad.md")
NOTES_DIR = os.path.join(DATA_DIR, "notes")
RECORDED_AUDIO_FILE = os.path.join(DATA_DIR, "audio.wav")
TTS_OUTPUT_FILE = os.path.join(DATA_DIR, "output.wav")

# --- Audio ---
SAMPLE_RATE = 16000  # Whisper models are trained on 16kHz audio
CHANNELS = 1
