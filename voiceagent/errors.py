"""Error taxonomy for the voice command pipeline.

None of these are fatal to the host process: capture and session errors are
logged and absorbed, resolution errors are turned into the IDLE safe default.
"""


class VoiceAgentError(Exception):
    """Base class for all voice agent errors."""


class DeviceUnavailable(VoiceAgentError):
    """No capture device exists or the input stream could not be opened."""


class DeviceNotReady(VoiceAgentError):
    """The capture device did not produce any frames in time."""


class NotReady(VoiceAgentError):
    """A recording session was requested while capture is inactive."""


class EmptyCommand(VoiceAgentError):
    """There is no text to resolve."""


class TranscriptionFailure(VoiceAgentError):
    """Speech-to-text failed or returned an empty transcript."""


class RemoteResolutionFailure(VoiceAgentError):
    """The remote language-model fallback failed."""


class UnknownAction(VoiceAgentError):
    """A token outside the closed action set was resolved."""

    def __init__(self, token: str):
        super().__init__(f"Unknown action token: {token!r}")
        self.token = token
