"""
Streaming speech recognition capability used by the voice controllers.

Controllers never talk to audio hardware directly. They receive a
RecognizerFactory, ask it whether recognition is available, and create
RecognitionStream objects from it. A stream reports results, errors and
end-of-stream through handler attributes, the way browser speech
recognition does:

    stream = factory.create()
    stream.continuous = True
    stream.on_result = handle_result
    stream.on_end = handle_end
    stream.start()

Events are dispatched synchronously on the caller's thread. The microphone
backend below produces them from its pump() method, one utterance at a time.
"""

import os
from typing import Callable, List, NamedTuple, Optional, Tuple

from cecvoice import config
from cecvoice.debug import debug_log
from cecvoice.mic_stream import MicrophoneStream
from cecvoice.transcriber import Transcriber

# Error codes
NOT_ALLOWED = "not-allowed"
NO_SPEECH = "no-speech"
ABORTED = "aborted"
AUDIO_CAPTURE = "audio-capture"
NETWORK = "network"

BENIGN_ERRORS = (NO_SPEECH, ABORTED)


class RecognitionUnavailableError(RuntimeError):
    """Raised when a stream is requested from an unavailable recognizer."""


class RecognitionSegment(NamedTuple):
    segment_index: int
    is_final: bool
    text: str


class RecognitionResultEvent(NamedTuple):
    """
    Results of the current session, delivered from `result_index` onward.

    `results` holds every segment of the session so far; segments before
    `result_index` are final and were already delivered.
    """

    result_index: int
    results: Tuple[RecognitionSegment, ...]


class RecognitionStream:
    """Base class for one recognition stream."""

    def __init__(self):
        self.language = config.DICTATION_LANGUAGE
        self.continuous = False
        self.interim_results = False

        self.on_result: Optional[Callable[[RecognitionResultEvent], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

        self.running = False

    def start(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        """Stop listening. Dispatches on_end if the handler is still attached."""
        raise NotImplementedError

    def abort(self) -> None:
        """Stop listening, reporting an "aborted" error before the end event."""
        raise NotImplementedError

    def _dispatch_result(self, event: RecognitionResultEvent) -> None:
        if self.on_result:
            self.on_result(event)

    def _dispatch_error(self, code: str) -> None:
        if self.on_error:
            self.on_error(code)

    def _dispatch_end(self) -> None:
        if self.on_end:
            self.on_end()


class RecognizerFactory:
    """Creates recognition streams, if the platform supports them."""

    def is_available(self) -> bool:
        raise NotImplementedError

    def create(self) -> RecognitionStream:
        raise NotImplementedError


class UnavailableRecognizer(RecognizerFactory):
    """Recognizer for platforms without speech recognition."""

    def is_available(self) -> bool:
        return False

    def create(self) -> RecognitionStream:
        raise RecognitionUnavailableError("Speech recognition is not supported on this platform")


class MicrophoneRecognitionStream(RecognitionStream):
    """
    Recognition stream over the local microphone and a Whisper transcriber.

    Every captured utterance becomes one final segment; no interim results
    are produced. A non-continuous stream ends after one utterance. A
    continuous stream ends after config.MAX_SEGMENTS_PER_SESSION segments,
    keeping its calibrated microphone open for the next start().
    """

    def __init__(self, transcriber: Transcriber, mic_factory: Optional[Callable[[], MicrophoneStream]] = None):
        super().__init__()
        self.transcriber = transcriber
        self.mic_factory = mic_factory
        self.max_segments = config.MAX_SEGMENTS_PER_SESSION

        self._mic: Optional[MicrophoneStream] = None
        self._results: List[RecognitionSegment] = []
        self._segments_emitted = 0

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Recognition has already started")

        # A microphone kept open at the session limit is reused as is
        if self._mic is None:
            try:
                self._mic = (self.mic_factory or MicrophoneStream)()
                self._mic.start_stream()
            except OSError as e:
                debug_log(f"Could not open microphone: {e}")
                self._release_mic()
                self._dispatch_error(NOT_ALLOWED)
                self._dispatch_end()
                return

        self._results = []
        self.running = True
        debug_log(f"Recognition started ({self.language}, continuous={self.continuous})")

    def stop(self) -> None:
        if not self.running:
            self._release_mic()
            return
        self._finish()

    def abort(self) -> None:
        if not self.running:
            self._release_mic()
            return
        self._release_mic()
        self.running = False
        self._dispatch_error(ABORTED)
        self._dispatch_end()

    def _finish(self, keep_mic: bool = False) -> None:
        """
        End the session and dispatch the end event.

        Args:
            keep_mic: Leave the microphone open (and calibrated) for a
                following start(); stop() or abort() releases it
        """
        if not keep_mic:
            self._release_mic()
        self.running = False
        self._dispatch_end()

    def _release_mic(self) -> None:
        if self._mic is not None:
            mic, self._mic = self._mic, None
            try:
                mic.close()
            except OSError as e:
                debug_log(f"Error closing microphone: {e}")

    def pump(self) -> bool:
        """
        Capture and transcribe one utterance, dispatching the resulting events.

        Returns:
            True while the stream is still running
        """
        if not self.running:
            return False

        try:
            audio_file, speech_detected = self._mic.capture_chunk()
        except OSError as e:
            debug_log(f"Error capturing audio: {e}")
            self._dispatch_error(AUDIO_CAPTURE)
            if self.running:
                self._finish()
            return self.running

        if not speech_detected:
            return self._no_speech()

        text = self.transcriber.transcribe(audio_file, self.language)
        try:
            os.remove(audio_file)
        except OSError:
            pass

        if text is None:
            self._dispatch_error(NETWORK)
            if self.running:
                self._finish()
            return self.running
        if not text:
            return self._no_speech()

        if self.continuous and self._segments_emitted:
            text = " " + text
        segment = RecognitionSegment(len(self._results), True, text)
        self._results.append(segment)
        self._segments_emitted += 1
        self._dispatch_result(RecognitionResultEvent(segment.segment_index, tuple(self._results)))

        if self.running and not self.continuous:
            self._finish()
        elif self.running and len(self._results) >= self.max_segments:
            self._finish(keep_mic=True)
        return self.running

    def _no_speech(self) -> bool:
        self._dispatch_error(NO_SPEECH)
        if self.running and not self.continuous:
            self._finish()
        return self.running

    def run(self) -> None:
        """Pump utterances until the stream stops."""
        while self.pump():
            pass


class MicrophoneRecognizer(RecognizerFactory):
    """Recognizer backed by the local microphone and a Whisper transcriber."""

    def __init__(self, transcriber: Optional[Transcriber] = None):
        self.transcriber = transcriber or Transcriber()
        self.current: Optional[MicrophoneRecognitionStream] = None

    def is_available(self) -> bool:
        return self.transcriber.is_available()

    def create(self) -> MicrophoneRecognitionStream:
        self.current = MicrophoneRecognitionStream(self.transcriber)
        return self.current

    def pump(self) -> bool:
        """Pump the most recently created stream. Returns True while it runs."""
        if self.current is None:
            return False
        return self.current.pump()
