"""
Shared pytest fixtures for cecvoice tests.
"""

import pytest
from unittest.mock import MagicMock, patch
import numpy as np

from cecvoice.notifications import Notifier
from cecvoice.recognition import (
    RecognitionResultEvent,
    RecognitionSegment,
    RecognitionStream,
    RecognizerFactory,
    UnavailableRecognizer,
)


class FakeRecognitionStream(RecognitionStream):
    """Recognition stream driven by the test, with browser-like result lists."""

    def __init__(self):
        super().__init__()
        self.start_count = 0
        self.stop_count = 0
        self.results = []
        self._finalized = 0

    def start(self):
        self.start_count += 1
        self.running = True
        self.results = []
        self._finalized = 0

    def stop(self):
        self.stop_count += 1
        if self.running:
            self.running = False
            self._dispatch_end()

    def abort(self):
        if self.running:
            self.running = False
            self._dispatch_error("aborted")
            self._dispatch_end()

    def say_interim(self, text):
        """Deliver a provisional guess for the segment being spoken."""
        index = self._finalized
        self.results = self.results[:index] + [RecognitionSegment(index, False, text)]
        self._dispatch_result(RecognitionResultEvent(index, tuple(self.results)))

    def say_final(self, text):
        """Deliver the final text of the segment being spoken."""
        index = self._finalized
        self.results = self.results[:index] + [RecognitionSegment(index, True, text)]
        self._finalized += 1
        self._dispatch_result(RecognitionResultEvent(index, tuple(self.results)))

    def fail(self, code):
        self._dispatch_error(code)

    def end(self):
        """End the session from the service side."""
        self.running = False
        self._dispatch_end()


class FakeRecognizer(RecognizerFactory):
    def __init__(self, available=True):
        self.available = available
        self.streams = []

    def is_available(self):
        return self.available

    def create(self):
        stream = FakeRecognitionStream()
        self.streams.append(stream)
        return stream

    @property
    def stream(self):
        return self.streams[-1] if self.streams else None


@pytest.fixture
def fake_recognizer():
    """Recognizer whose streams are driven by the test."""
    return FakeRecognizer()


@pytest.fixture
def unavailable_recognizer():
    return UnavailableRecognizer()


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def mock_pyaudio():
    """Fixture that mocks pyaudio.PyAudio for testing without hardware devices."""
    with patch('pyaudio.PyAudio') as mock:
        mock_instance = MagicMock()
        mock.return_value = mock_instance

        mock_info = MagicMock()
        mock_info.get.return_value = 2  # deviceCount
        mock_instance.get_host_api_info_by_index.return_value = mock_info

        device_info1 = {"maxInputChannels": 0, "name": "Test Device 1"}
        device_info2 = {"maxInputChannels": 2, "name": "Test Device 2"}
        mock_instance.get_device_info_by_index.side_effect = [device_info1, device_info2]
        mock_instance.get_sample_size.return_value = 2

        yield mock_instance


@pytest.fixture
def mock_audio_data_silent():
    """Fixture that returns silent audio data for testing."""
    return np.zeros(1024, dtype=np.int16)


@pytest.fixture
def mock_audio_data_speech():
    """Fixture that returns audio data simulating speech for testing."""
    return np.ones(1024, dtype=np.int16) * 1000


@pytest.fixture
def mock_subprocess_run():
    """Fixture that mocks subprocess.run for testing command execution."""
    with patch('subprocess.run') as mock_run:
        mock_result = MagicMock()
        mock_result.stdout = '{"text": "test transcription"}'
        mock_run.return_value = mock_result
        yield mock_run


@pytest.fixture
def mock_requests_post():
    """Fixture that mocks requests.post for Whisper API calls."""
    with patch('requests.post') as mock_post:
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"text": " départ CEC "}
        mock_post.return_value = mock_response
        yield mock_post


@pytest.fixture
def mock_mic():
    """A MicrophoneStream stand-in returning one utterance per capture."""
    mic = MagicMock()
    mic.capture_chunk.return_value = ("/tmp/cecvoice_test_chunk.wav", True)
    return mic


@pytest.fixture
def mock_transcriber():
    transcriber = MagicMock()
    transcriber.is_available.return_value = True
    transcriber.use_api = False
    return transcriber
