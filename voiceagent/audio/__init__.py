"""Audio capture and clip extraction module."""

from .ring import RingCapture
from .session import RecordingSession, PushToTalkRecorder, SessionState
from .wav import encode_wav, save_wav, float_to_pcm16

__all__ = [
    'RingCapture',
    'RecordingSession',
    'PushToTalkRecorder',
    'SessionState',
    'encode_wav',
    'save_wav',
    'float_to_pcm16',
]
