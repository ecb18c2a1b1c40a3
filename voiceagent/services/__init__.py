"""Services layer tying capture, transcription and command dispatch together."""

from .voice_command_service import CommandOutcome, CommandTicket, VoiceCommandService

__all__ = [
    "VoiceCommandService",
    "CommandTicket",
    "CommandOutcome",
]
