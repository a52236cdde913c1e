#!/usr/bin/env python3
"""
CEC Voice Assistant - Main Entry Point

Runs either continuous dictation into a report field or the report's voice
command set, using the microphone and whisper.cpp (or the Whisper API) for
speech recognition.
"""

import argparse
import signal
import sys
from typing import NoReturn

from cecvoice import config
from cecvoice.commands import CecProcedure, build_voice_commands
from cecvoice.debug import debug_log
from cecvoice.dictation import DictationController
from cecvoice.notifications import Notification, Notifier
from cecvoice.recognition import NOT_ALLOWED, MicrophoneRecognizer
from cecvoice.transcriber import Transcriber
from cecvoice.voice_input import VoiceCommandListener


class VoiceApp:
    """Command-line voice assistant for the CEC report."""

    def __init__(self, mode: str = config.DEFAULT_MODE, language: str = config.DICTATION_LANGUAGE,
                 initial_text: str = ""):
        """
        Initialize the application.

        Args:
            mode: "dictation" or "commands"
            language: BCP-47 tag of the spoken language
            initial_text: Existing field content dictation appends to
        """
        self.mode = mode
        self.language = language
        self.running = False
        self.field_value = initial_text

        self.notifier = Notifier(listener=self._show_notification)
        self.recognizer = MicrophoneRecognizer(Transcriber())
        self.procedure = CecProcedure(notifier=self.notifier)

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, sig, frame) -> NoReturn:
        """Handle termination signals for graceful shutdown."""
        print("\nShutting down voice assistant...")
        self.running = False
        sys.exit(0)

    def _show_notification(self, notification: Notification) -> None:
        print(f"*** {notification.title}: {notification.description}")

    def _update_field(self, value: str) -> None:
        self.field_value = value
        print(f"> {value}")

    def _show_transcript(self, transcript: str) -> None:
        print(f'"{transcript.strip()}"')

    def check_dependencies(self) -> bool:
        """
        Check that speech recognition can run.

        Returns:
            True if a transcription method is available, False otherwise
        """
        transcriber = self.recognizer.transcriber
        if transcriber.use_api:
            if not transcriber.api_key:
                print("Error: Whisper API enabled but OPENAI_API_KEY is not set")
                return False
            return True

        if not transcriber.is_available():
            print(f"Error: whisper.cpp executable '{transcriber.whisper_executable}' "
                  f"or model '{transcriber.model}' not found")
            print("Build whisper.cpp and download a model, or use --use-whisper-api")
            return False
        return True

    def run(self) -> None:
        """Run the selected mode until interrupted."""
        if not self.check_dependencies():
            return

        self.running = True
        try:
            if self.mode == "commands":
                self._run_commands()
            else:
                self._run_dictation()
        except KeyboardInterrupt:
            debug_log("Shutting down voice assistant...")
            self.running = False

    def _run_dictation(self) -> None:
        with DictationController(
            on_change=self._update_field,
            get_value=lambda: self.field_value,
            recognizer=self.recognizer,
            notifier=self.notifier,
            language=self.language,
        ) as dictation:
            dictation.start()
            print("Dictation started. Press Ctrl+C to stop.")
            while self.running and dictation.is_listening:
                self.recognizer.pump()
        print(f"Final text: {self.field_value}")

    def _run_commands(self) -> None:
        listener = VoiceCommandListener(
            build_voice_commands(self.procedure),
            language=self.language,
            on_transcript=self._show_transcript,
            recognizer=self.recognizer,
        )
        print("Listening for voice commands. Press Ctrl+C to stop.")
        try:
            while self.running and listener.is_supported:
                listener.start_listening()
                while listener.is_listening:
                    self.recognizer.pump()
                if listener.last_error == NOT_ALLOWED:
                    self.notifier.notify(
                        "Accès au microphone refusé",
                        "Veuillez autoriser l'accès au microphone.",
                        "destructive",
                    )
                    break
                self._show_procedure()
        finally:
            listener.close()

    def _show_procedure(self) -> None:
        print(f"Step: {self.procedure.active_step + 1}/{self.procedure.total_steps} "
              f"({self.procedure.active_step_title})")
        for event in self.procedure.timeline_events:
            print(f"  {event.time}  {event.name}")


def main():
    """Parse command line arguments and start the application."""
    parser = argparse.ArgumentParser(description="Voice dictation and commands for CEC reports")

    parser.add_argument(
        "--mode",
        choices=config.AVAILABLE_MODES,
        default=config.DEFAULT_MODE,
        help="Application mode (default: %(default)s)"
    )
    parser.add_argument(
        "--language",
        default=config.DICTATION_LANGUAGE,
        help="Spoken language tag (default: %(default)s)"
    )
    parser.add_argument(
        "--initial-text",
        default="",
        help="Existing field text that dictation appends to"
    )
    parser.add_argument(
        "--model",
        help=f"Whisper model to use (default: {config.WHISPER_MODEL})"
    )
    parser.add_argument(
        "--list-models",
        action="store_true",
        help="List available installed models and exit"
    )
    parser.add_argument(
        "--use-whisper-api",
        action="store_true",
        help="Use OpenAI Whisper API for transcription instead of local whisper.cpp"
    )

    args = parser.parse_args()

    if args.list_models:
        available_models = Transcriber().get_available_models()
        if available_models:
            print("Installed Whisper models:")
            for model in available_models:
                print(f"  - {model}")
        else:
            print("No Whisper models found. You need to install at least one model.")
        return

    if args.model:
        config.WHISPER_MODEL = args.model
    if args.use_whisper_api:
        config.USE_WHISPER_API = True
        if not config.WHISPER_API_KEY:
            print("Warning: OpenAI API key not found. Set OPENAI_API_KEY environment variable or update config_local.py")

    app = VoiceApp(mode=args.mode, language=args.language, initial_text=args.initial_text)
    app.run()


if __name__ == "__main__":
    main()
