"""
Continuous dictation into a text field.

The controller keeps a recognition stream open while dictation is on and
writes `accumulated + pending` text back to the field after every result.
Final segments are appended to the accumulated text; the interim guess for
the segment still being spoken is kept separately and replaced on every
event, so dictated text is never lost or duplicated.

Recognition services end a session on their own after a while. When that
happens without the user having asked to stop, the controller restarts the
same stream and carries on appending.
"""

from typing import Callable, Optional

from cecvoice import config
from cecvoice.debug import debug_log
from cecvoice.notifications import Notifier
from cecvoice.recognition import (
    BENIGN_ERRORS,
    NOT_ALLOWED,
    MicrophoneRecognizer,
    RecognitionResultEvent,
    RecognitionStream,
    RecognitionUnavailableError,
    RecognizerFactory,
)


class DictationSession:
    """Text state of one dictation session."""

    def __init__(self, seed: str = ""):
        self.accumulated_text = seed
        self.pending_text = ""
        self.is_active = True

    @property
    def value(self) -> str:
        return self.accumulated_text + self.pending_text


class DictationController:
    """Drives a continuous recognition stream feeding one text field."""

    def __init__(
        self,
        on_change: Callable[[str], None],
        get_value: Callable[[], str] = lambda: "",
        recognizer: Optional[RecognizerFactory] = None,
        notifier: Optional[Notifier] = None,
        language: Optional[str] = None,
    ):
        """
        Initialize the controller and probe the recognizer.

        Args:
            on_change: Receives the live field value after every result
            get_value: Returns the current field value, used to seed a session
            recognizer: Recognition capability (defaults to the microphone)
            notifier: Receives user-facing error notifications
            language: BCP-47 tag of the dictated speech
        """
        self.on_change = on_change
        self.get_value = get_value
        self.recognizer = recognizer if recognizer is not None else MicrophoneRecognizer()
        self.notifier = notifier or Notifier()
        self.language = language or config.DICTATION_LANGUAGE

        self.session: Optional[DictationSession] = None
        self.last_transcript = ""
        self._stream: Optional[RecognitionStream] = None
        self._stop_requested = False

        self.is_supported = self.recognizer.is_available()
        if not self.is_supported:
            debug_log("Speech recognition unsupported, dictation disabled")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def is_listening(self) -> bool:
        return self._stream is not None

    @property
    def value(self) -> str:
        return self.session.value if self.session else ""

    def start(self) -> None:
        """Start dictating after the field's current text."""
        if self.is_listening or not self.is_supported:
            return

        try:
            stream = self.recognizer.create()
        except RecognitionUnavailableError as e:
            debug_log(f"Cannot start dictation: {e}")
            self.is_supported = False
            return

        stream.continuous = True
        stream.interim_results = True
        stream.language = self.language

        seed = str(self.get_value() or "")
        if seed and not seed[-1].isspace():
            seed += " "
        self.session = DictationSession(seed)
        self._stop_requested = False

        stream.on_result = self._handle_result
        stream.on_error = self._handle_error
        stream.on_end = self._handle_end
        self._stream = stream
        debug_log("Dictation started")
        stream.start()

    def stop(self) -> None:
        """Stop dictating. Does nothing when already stopped."""
        if self._stream is None:
            return

        self._stop_requested = True
        stream, self._stream = self._stream, None
        # Detach first so the end event caused by stop() cannot restart the stream
        stream.on_result = None
        stream.on_end = None
        stream.stop()

        if self.session:
            self.session.is_active = False
            self.session = None
        debug_log("Dictation stopped")

    def toggle(self) -> None:
        if self.is_listening:
            self.stop()
        else:
            self.start()

    def close(self) -> None:
        """Release the recognition stream."""
        self.stop()

    def _handle_result(self, event: RecognitionResultEvent) -> None:
        session = self.session
        if session is None:
            return

        pending = ""
        for segment in event.results[event.result_index:]:
            if segment.is_final:
                session.accumulated_text += segment.text
                self.last_transcript = segment.text.strip()
            else:
                pending += segment.text
        session.pending_text = pending

        self.on_change(session.value)

    def _handle_error(self, code: str) -> None:
        if code in BENIGN_ERRORS:
            debug_log(f"Ignoring recognition event: {code}")
            return

        debug_log(f"Speech recognition error: {code}")
        if code == NOT_ALLOWED:
            self.notifier.notify(
                "Accès au microphone refusé",
                "Veuillez autoriser l'accès au microphone.",
                "destructive",
            )
        self.stop()

    def _handle_end(self) -> None:
        if self._stop_requested or self._stream is None:
            return
        debug_log("Recognition ended by the service, restarting")
        self._stream.start()
