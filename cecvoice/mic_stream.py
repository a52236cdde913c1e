"""
Microphone input handling module using PortAudio.
Captures one utterance at a time, delimited by silence, for transcription.
"""

import os
import tempfile
import time
import wave
from typing import Tuple

import numpy as np
import pyaudio

from cecvoice import config
from cecvoice.debug import debug_log


class MicrophoneStream:
    """Captures utterances from the default (or first usable) input device."""

    def __init__(self):
        """Initialize the microphone stream with configuration settings."""
        self.sample_rate = config.SAMPLE_RATE
        self.chunk_size = config.FRAMES_PER_BUFFER
        self.channels = config.CHANNELS
        self.format_map = {
            'int16': pyaudio.paInt16,
            'int32': pyaudio.paInt32,
            'float32': pyaudio.paFloat32
        }
        self.format = self.format_map.get(config.FORMAT, pyaudio.paInt16)
        self.silence_threshold = config.SILENCE_THRESHOLD
        self.silence_duration = config.SILENCE_DURATION
        self.calibration_factor = config.CALIBRATION_FACTOR

        self.audio = pyaudio.PyAudio()
        self.stream = None
        self.temp_dir = tempfile.mkdtemp(prefix="cecvoice_")
        self.device_index = None

        self.adaptive_threshold = None
        self.auto_calibration_complete = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _find_input_device(self) -> bool:
        """Select the first device that has input channels."""
        info = self.audio.get_host_api_info_by_index(0)
        num_devices = info.get('deviceCount')

        for i in range(num_devices):
            device_info = self.audio.get_device_info_by_index(i)
            if device_info.get('maxInputChannels') > 0:
                self.device_index = i
                debug_log(f"Using input device {i}: {device_info.get('name')}")
                return True

        debug_log("No input devices found. Using default device.")
        self.device_index = None
        return False

    def start_stream(self) -> None:
        """
        Open the audio input stream.

        Raises:
            OSError: If no input stream can be opened (missing device or
                microphone permission refused)
        """
        self._find_input_device()

        try:
            self.stream = self.audio.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.device_index,
                frames_per_buffer=self.chunk_size
            )
        except OSError as e:
            debug_log(f"Error opening audio stream on device {self.device_index}: {e}")
            debug_log("Retrying with the default input device...")
            self.stream = self.audio.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size
            )

    def close(self) -> None:
        """Close and clean up audio resources."""
        if self.stream:
            self.stream.stop_stream()
            self.stream.close()
            self.stream = None
        self.audio.terminate()

        for file in os.listdir(self.temp_dir):
            os.remove(os.path.join(self.temp_dir, file))
        os.rmdir(self.temp_dir)

    def is_silent(self, data_array: np.ndarray) -> bool:
        """
        Determine if the audio chunk is silent.

        Args:
            data_array: Numpy array of audio data

        Returns:
            True if the audio is below the silence threshold
        """
        threshold = self.adaptive_threshold or self.silence_threshold
        return np.max(np.abs(data_array)) < threshold

    def calibrate_silence_threshold(self) -> None:
        """
        Set the silence threshold from about two seconds of ambient noise.
        """
        if not self.stream:
            self.start_stream()

        debug_log("Calibrating microphone silence threshold...")
        samples = []
        for _ in range(60):
            try:
                data = self.stream.read(self.chunk_size, exception_on_overflow=False)
            except OSError as e:
                debug_log(f"Error during calibration: {e}")
                break
            samples.append(np.max(np.abs(np.frombuffer(data, dtype=np.int16))))

        if not samples:
            debug_log("Calibration failed - using default threshold")
            self.adaptive_threshold = self.silence_threshold
            return

        mean_level = np.mean(samples)
        noise_range = np.max(samples) - np.min(samples)
        if noise_range > mean_level * 2:
            # Fluctuating environment
            self.adaptive_threshold = np.percentile(samples, 95) * 1.5
        else:
            self.adaptive_threshold = max(np.percentile(samples, 90) * self.calibration_factor, 500)

        debug_log(f"Silence threshold set to: {self.adaptive_threshold:.1f} (ambient: {mean_level:.0f})")
        self.auto_calibration_complete = True

    def capture_chunk(self) -> Tuple[str, bool]:
        """
        Capture one utterance, ending on sustained silence.

        Returns:
            Tuple containing:
                - Path to the WAV file with the captured audio ("" if none)
                - Boolean indicating if speech was detected
        """
        if not self.stream:
            self.start_stream()

        if not self.auto_calibration_complete and config.CALIBRATION_ENABLED:
            self.calibrate_silence_threshold()

        frames = []
        frames_per_second = self.sample_rate / self.chunk_size
        max_frames = int(frames_per_second * config.MAX_SENTENCE_DURATION)
        wait_frames = int(frames_per_second * config.SPEECH_WAIT_DURATION)
        required_silence_frames = int(self.silence_duration * frames_per_second)

        # Wait for speech to begin
        speech_detected = False
        waited = 0
        while not speech_detected and waited < wait_frames:
            data = self.stream.read(self.chunk_size, exception_on_overflow=False)
            frames.append(data)
            waited += 1
            if not self.is_silent(np.frombuffer(data, dtype=np.int16)):
                speech_detected = True
            elif len(frames) > 30:
                # Keep only the last ~0.3 seconds of leading silence
                frames = frames[-10:]

        if not speech_detected:
            return "", False

        # Capture the rest of the utterance until silence
        consecutive_silence_frames = 0
        while len(frames) < max_frames:
            data = self.stream.read(self.chunk_size, exception_on_overflow=False)
            frames.append(data)
            if self.is_silent(np.frombuffer(data, dtype=np.int16)):
                consecutive_silence_frames += 1
                if consecutive_silence_frames >= required_silence_frames:
                    break
            else:
                consecutive_silence_frames = 0

        if len(frames) >= max_frames:
            debug_log(f"Reached maximum utterance length ({config.MAX_SENTENCE_DURATION}s)")

        temp_file = os.path.join(self.temp_dir, f"chunk_{time.time()}.wav")
        with wave.open(temp_file, 'wb') as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.audio.get_sample_size(self.format))
            wf.setframerate(self.sample_rate)
            wf.writeframes(b''.join(frames))

        return temp_file, True
