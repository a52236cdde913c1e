"""
Unit tests for the mic_stream module.
"""

import wave

import numpy as np
import pytest
from unittest.mock import patch, MagicMock

from cecvoice import config
from cecvoice.mic_stream import MicrophoneStream


class TestMicrophoneStream:
    """Tests for the MicrophoneStream class."""

    def test_init(self):
        with patch('pyaudio.PyAudio'):
            stream = MicrophoneStream()

            assert stream.sample_rate == config.SAMPLE_RATE
            assert stream.chunk_size == config.FRAMES_PER_BUFFER
            assert stream.channels == config.CHANNELS
            assert stream.silence_threshold == config.SILENCE_THRESHOLD
            stream.close()

    def test_find_input_device(self, mock_pyaudio):
        stream = MicrophoneStream()
        result = stream._find_input_device()

        assert result is True
        assert stream.device_index == 1  # Second device (index 1) has input channels
        stream.close()

    def test_start_stream_falls_back_to_default_device(self, mock_pyaudio):
        mock_pyaudio.open.side_effect = [OSError("Invalid device"), MagicMock()]
        stream = MicrophoneStream()
        stream.start_stream()

        assert mock_pyaudio.open.call_count == 2
        assert "input_device_index" not in mock_pyaudio.open.call_args[1]
        stream.close()

    def test_start_stream_failure_raises(self, mock_pyaudio):
        mock_pyaudio.open.side_effect = OSError("Permission denied")
        stream = MicrophoneStream()

        with pytest.raises(OSError):
            stream.start_stream()
        stream.close()

    def test_is_silent_with_silent_data(self, mock_audio_data_silent):
        with patch('pyaudio.PyAudio'):
            stream = MicrophoneStream()
            stream.adaptive_threshold = 500

            assert stream.is_silent(mock_audio_data_silent) == True
            stream.close()

    def test_is_silent_with_speech_data(self, mock_audio_data_speech):
        with patch('pyaudio.PyAudio'):
            stream = MicrophoneStream()
            stream.adaptive_threshold = 500

            assert stream.is_silent(mock_audio_data_speech) == False
            stream.close()

    def test_is_silent_uses_configured_threshold_before_calibration(self, mock_audio_data_speech):
        with patch('pyaudio.PyAudio'):
            with patch.object(config, 'SILENCE_THRESHOLD', 2000):
                stream = MicrophoneStream()

            assert stream.is_silent(mock_audio_data_speech) == True
            stream.close()

    def test_calibrate_silence_threshold(self, mock_pyaudio):
        stream = MicrophoneStream()
        stream.stream = MagicMock()
        stream.stream.read.return_value = (np.ones(1024, dtype=np.int16) * 100).tobytes()
        stream.calibrate_silence_threshold()

        assert stream.auto_calibration_complete is True
        assert stream.adaptive_threshold == 500  # Quiet room floor
        stream.close()

    def test_calibrate_read_failure_uses_default_threshold(self, mock_pyaudio):
        with patch.object(config, 'SILENCE_THRESHOLD', 1200):
            stream = MicrophoneStream()
        stream.stream = MagicMock()
        stream.stream.read.side_effect = OSError("Input overflowed")
        stream.calibrate_silence_threshold()

        assert stream.adaptive_threshold == 1200
        assert stream.auto_calibration_complete is False
        stream.close()

    @patch('tempfile.mkdtemp')
    def test_context_manager(self, mock_mkdtemp):
        mock_mkdtemp.return_value = "/tmp/mock_dir"

        with patch('pyaudio.PyAudio'):
            with patch('os.listdir', return_value=[]):
                with patch('os.rmdir') as mock_rmdir:
                    with MicrophoneStream() as stream:
                        assert isinstance(stream, MicrophoneStream)

                    mock_rmdir.assert_called_once_with("/tmp/mock_dir")

    def test_capture_chunk_with_speech(self, mock_pyaudio, mock_audio_data_speech, tmp_path):
        mock_stream = MagicMock()
        mock_stream.read.return_value = b'\x00\x00' * 4

        with patch('tempfile.mkdtemp', return_value=str(tmp_path)):
            with patch.object(config, 'CALIBRATION_ENABLED', False), \
                 patch.object(config, 'MAX_SENTENCE_DURATION', 1):
                with patch('numpy.frombuffer', return_value=mock_audio_data_speech):
                    stream = MicrophoneStream()
                    stream.adaptive_threshold = 500
                    stream.stream = mock_stream

                    filepath, speech_detected = stream.capture_chunk()

        assert speech_detected is True
        assert filepath.startswith(str(tmp_path))
        with wave.open(filepath, 'rb') as wf:
            assert wf.getnchannels() == config.CHANNELS
            assert wf.getframerate() == config.SAMPLE_RATE

    def test_capture_chunk_without_speech(self, mock_pyaudio, mock_audio_data_silent):
        mock_stream = MagicMock()
        mock_stream.read.return_value = b'\x00\x00' * 4

        with patch.object(config, 'CALIBRATION_ENABLED', False), \
             patch.object(config, 'SPEECH_WAIT_DURATION', 0.5):
            with patch('numpy.frombuffer', return_value=mock_audio_data_silent):
                stream = MicrophoneStream()
                stream.adaptive_threshold = 500
                stream.stream = mock_stream

                assert stream.capture_chunk() == ("", False)
        stream.close()
