"""
Single-utterance voice command listener.
"""

from typing import Callable, List, Optional, Sequence

from cecvoice import config
from cecvoice.debug import debug_log
from cecvoice.matcher import VoiceCommand, match
from cecvoice.recognition import (
    MicrophoneRecognizer,
    RecognitionResultEvent,
    RecognitionStream,
    RecognitionUnavailableError,
    RecognizerFactory,
)


class VoiceCommandListener:
    """Listens for one spoken command at a time and runs the matching action."""

    def __init__(
        self,
        commands: Sequence[VoiceCommand],
        language: Optional[str] = None,
        on_transcript: Optional[Callable[[str], None]] = None,
        recognizer: Optional[RecognizerFactory] = None,
    ):
        self.commands: List[VoiceCommand] = list(commands)
        self.language = language or config.COMMAND_LANGUAGE
        self.on_transcript = on_transcript
        self.recognizer = recognizer if recognizer is not None else MicrophoneRecognizer()

        self.is_listening = False
        self.last_transcript = ""
        self.last_error: Optional[str] = None
        self._stream: Optional[RecognitionStream] = None

        self.is_supported = self.recognizer.is_available()

    def set_commands(self, commands: Sequence[VoiceCommand]) -> None:
        """Replace the registered command set."""
        self.commands = list(commands)

    def process_command(self, transcript: str) -> Optional[VoiceCommand]:
        """
        Run the first command matching a transcript.

        Args:
            transcript: Recognized utterance

        Returns:
            The command that was run, or None
        """
        clean_transcript = transcript.lower().strip()
        debug_log(f"Voice transcript: {clean_transcript}")

        command = match(clean_transcript, self.commands)
        if command:
            debug_log(f"Executing command: {command.name}")
            command.action()
        return command

    def start_listening(self) -> None:
        if not self.is_supported or self.is_listening:
            return

        try:
            stream = self.recognizer.create()
        except RecognitionUnavailableError as e:
            debug_log(f"Cannot start listening: {e}")
            self.is_supported = False
            return

        stream.language = self.language
        # One utterance per session
        stream.continuous = False
        stream.interim_results = False
        stream.on_result = self._handle_result
        stream.on_error = self._handle_error
        stream.on_end = self._handle_end

        self._stream = stream
        self.is_listening = True
        self.last_error = None
        stream.start()

    def stop_listening(self) -> None:
        if self._stream is not None:
            self._stream.stop()

    def toggle_listening(self) -> None:
        if self.is_listening:
            self.stop_listening()
        else:
            self.start_listening()

    def close(self) -> None:
        self.stop_listening()

    def _handle_result(self, event: RecognitionResultEvent) -> None:
        transcript = event.results[event.result_index].text
        self.last_transcript = transcript
        if self.on_transcript:
            self.on_transcript(transcript)
        self.process_command(transcript)

    def _handle_error(self, code: str) -> None:
        debug_log(f"Speech recognition error: {code}")
        self.last_error = code
        self.is_listening = False

    def _handle_end(self) -> None:
        self.is_listening = False
        self._stream = None
