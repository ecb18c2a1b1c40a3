"""Data models for the voiceagent application."""

from .audio import CaptureStats, TrimmedClip
from .commands import Action, HeuristicRule, Resolution, ResolutionTier
from .events import ActionEvent
from .transcription import TranscriptionResult

__all__ = [
    "CaptureStats",
    "TrimmedClip",
    "Action",
    "HeuristicRule",
    "Resolution",
    "ResolutionTier",
    "ActionEvent",
    "TranscriptionResult",
]
