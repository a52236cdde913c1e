"""
Speech-to-text transcription module supporting both whisper.cpp and OpenAI Whisper API.
"""

import json
import os
import platform
import re
import subprocess
from typing import List, Optional

import requests

from cecvoice import config
from cecvoice.debug import debug_log

# Timestamps like [00:00:00.000 --> 00:00:02.000]
TIMESTAMP_PATTERN = re.compile(r'\[\d+:\d+:\d+\.\d+ --> \d+:\d+:\d+\.\d+\]\s*')
BLANK_AUDIO_PATTERN = re.compile(r'\[BLANK_AUDIO\]')


def language_hint(language: str) -> str:
    """Reduce a BCP-47 tag such as "fr-FR" to the two-letter code Whisper expects."""
    return language.split("-")[0].lower() if language else ""


def clean_transcription(raw_text: str) -> str:
    """Strip whisper.cpp timestamps, [BLANK_AUDIO] markers and extra whitespace."""
    clean_text = TIMESTAMP_PATTERN.sub('', raw_text)
    clean_text = BLANK_AUDIO_PATTERN.sub('', clean_text)
    return re.sub(r'\s+', ' ', clean_text).strip()


class Transcriber:
    """Interface for speech-to-text using whisper.cpp and OpenAI Whisper API."""

    def __init__(self):
        """Initialize the transcriber with configuration settings."""
        self.model = config.WHISPER_MODEL
        self.whisper_executable = config.WHISPER_EXECUTABLE
        self.is_macos = platform.system() == "Darwin"
        self._model_path = None

        self.use_api = config.USE_WHISPER_API
        self.api_key = config.WHISPER_API_KEY
        self.api_model = config.WHISPER_API_MODEL
        self.api_url = config.WHISPER_API_URL

    def _model_dirs(self) -> List[str]:
        """Directories searched for ggml model files."""
        model_dirs = ["models"]
        if hasattr(config, 'WHISPER_ROOT'):
            model_dirs.append(os.path.join(config.WHISPER_ROOT, "models"))
        if self.is_macos:
            model_dirs.append("/opt/homebrew/share/whisper/models")
        model_dirs.extend([
            os.path.expanduser("~/whisper.cpp/models"),
            os.path.join(os.path.dirname(self.whisper_executable), "../models"),
        ])
        return model_dirs

    def _find_model_path(self) -> Optional[str]:
        """
        Find the path to the selected whisper model.

        Returns:
            Path to the model file if found, None otherwise
        """
        if self._model_path and os.path.exists(self._model_path):
            return self._model_path

        for models_dir in self._model_dirs():
            path = os.path.join(models_dir, f"ggml-{self.model}.bin")
            if os.path.exists(path):
                self._model_path = path
                return path
        return None

    def transcribe(self, audio_file: str, language: str = "") -> Optional[str]:
        """
        Transcribe audio file to text.

        Args:
            audio_file: Path to the audio file to transcribe
            language: BCP-47 language tag of the speech (e.g. "fr-FR")

        Returns:
            Transcribed text or None if transcription failed
        """
        if not os.path.exists(audio_file):
            debug_log(f"Audio file not found: {audio_file}")
            return None

        if self.use_api and self.api_key:
            return self._transcribe_with_api(audio_file, language_hint(language))
        return self._transcribe_with_local(audio_file, language_hint(language))

    def _transcribe_with_local(self, audio_file: str, language: str) -> Optional[str]:
        """
        Transcribe audio file using local whisper.cpp installation.

        Args:
            audio_file: Path to the audio file to transcribe
            language: Two-letter language code, or "" to auto-detect

        Returns:
            Transcribed text or None if transcription failed
        """
        model_path = self._find_model_path()
        if not model_path:
            debug_log(f"Error: Model '{self.model}' not found.")
            return None

        command = [
            self.whisper_executable,
            "-m", model_path,
            "-f", audio_file,
            "-oj"  # Output JSON flag
        ]
        if language:
            command.extend(["-l", language])

        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=True
            )
        except subprocess.CalledProcessError as e:
            debug_log(f"Transcription error: {e}")
            debug_log(f"stderr: {e.stderr}")
            return None
        except (subprocess.SubprocessError, OSError) as e:
            debug_log(f"Unexpected error during transcription: {e}")
            return None

        try:
            raw_text = json.loads(result.stdout).get('text', '')
        except json.JSONDecodeError:
            raw_text = result.stdout
        return clean_transcription(raw_text)

    def _transcribe_with_api(self, audio_file: str, language: str) -> Optional[str]:
        """
        Transcribe audio file using OpenAI Whisper API.

        Args:
            audio_file: Path to the audio file to transcribe
            language: Two-letter language code, or "" to auto-detect

        Returns:
            Transcribed text or None if transcription failed
        """
        with open(audio_file, "rb") as audio:
            audio_data = audio.read()

        files = {
            "file": (os.path.basename(audio_file), audio_data, "audio/wav"),
            "model": (None, self.api_model),
            "response_format": (None, "json")
        }
        if language:
            files["language"] = (None, language)

        try:
            response = requests.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                files=files,
                timeout=config.WHISPER_API_TIMEOUT
            )
        except requests.RequestException as e:
            debug_log(f"Error calling Whisper API: {e}")
            return None

        if response.status_code != 200:
            debug_log(f"API error: {response.status_code} - {response.text}")
            return None

        try:
            return response.json().get("text", "").strip()
        except ValueError as e:
            debug_log(f"Invalid API response: {e}")
            return None

    def is_available(self) -> bool:
        """
        Check if the configured transcription method is usable.

        Returns:
            True if transcription can be attempted
        """
        if self.use_api:
            return bool(self.api_key)

        if not self._find_model_path():
            return False
        try:
            subprocess.run(
                [self.whisper_executable, "--help"],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True
            )
            return True
        except (subprocess.SubprocessError, OSError):
            return False

    def get_available_models(self) -> list:
        """
        Get a list of available whisper models.

        Returns:
            List of available model names
        """
        models = []
        for models_dir in self._model_dirs():
            if os.path.exists(models_dir):
                for file in os.listdir(models_dir):
                    if file.startswith("ggml-") and file.endswith(".bin"):
                        model_name = file[5:-4]
                        if model_name not in models:
                            models.append(model_name)
        return models
