"""
cecvoice - Voice control and dictation for cardiopulmonary bypass (CEC) reports.

This package matches spoken commands against the report's voice command set,
drives continuous dictation into free-text fields, and provides a microphone
and Whisper based recognition backend for both.
"""

__version__ = "0.1.0"
