"""
Configuration settings for the CEC voice assistant.

This file contains default configuration values. Users can override these
by creating a config_local.py file with their own settings.
"""

import os
import platform
import importlib.util
import sys

# Detect operating system
IS_MACOS = platform.system() == "Darwin"

# Recognition language (BCP-47 tag, as used by the report forms)
DICTATION_LANGUAGE = "fr-FR"
COMMAND_LANGUAGE = "fr-FR"

# Fuzzy command matching
FUZZY_ERROR_RATIO = 0.3  # Allowed edit distance as a fraction of keyword length
FUZZY_MIN_ERRORS = 2  # Allowed edit distance is never below this
FUZZY_MIN_KEYWORD_LENGTH = 3  # Keywords this short only match by containment

# Whisper model settings
WHISPER_MODEL = "base"  # Options: "tiny", "base", "small", "medium", "large"

if IS_MACOS:
    WHISPER_EXECUTABLE = "/opt/homebrew/bin/whisper-cli"
else:
    WHISPER_EXECUTABLE = os.path.expanduser("~/whisper.cpp/build/bin/whisper-cli")

# Whisper API settings
USE_WHISPER_API = False  # Enable/disable OpenAI Whisper API for transcription
WHISPER_API_KEY = os.environ.get("OPENAI_API_KEY", "")
WHISPER_API_MODEL = "whisper-1"
WHISPER_API_URL = "https://api.openai.com/v1/audio/transcriptions"
WHISPER_API_TIMEOUT = 10  # Seconds

# PortAudio settings
SAMPLE_RATE = 16000  # Sample rate in Hz
FRAMES_PER_BUFFER = 1024
CHANNELS = 1  # Mono
FORMAT = "int16"  # Audio format

# Audio processing settings
MAX_SENTENCE_DURATION = 20  # Maximum duration in seconds for a single utterance
SILENCE_THRESHOLD = 1000  # Fallback amplitude threshold when calibration is disabled
SILENCE_DURATION = 1.0  # Duration of silence to trigger end of speech in seconds
SPEECH_WAIT_DURATION = 8  # Seconds to wait for speech before reporting no-speech
CALIBRATION_ENABLED = True
CALIBRATION_FACTOR = 2.0  # Multiplier above ambient noise floor

# Number of final segments after which a continuous recognition session ends
# on its own, like browser speech services do. Dictation restarts it.
MAX_SEGMENTS_PER_SESSION = 5

# Available application modes
DEFAULT_MODE = "dictation"
AVAILABLE_MODES = ["dictation", "commands"]

# Load local config if it exists
try:
    if importlib.util.find_spec("config_local"):
        import config_local

        # Update this module's variables with values from config_local
        current_module = sys.modules[__name__]
        for attr in dir(config_local):
            if not attr.startswith('_'):
                setattr(current_module, attr, getattr(config_local, attr))

        print("Loaded configuration from config_local.py")
except Exception as e:
    print(f"Warning: Could not load config_local.py: {e}")
    print("Using default configuration")
