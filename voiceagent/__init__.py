"""Push-to-talk voice commands for a controlled agent."""

__version__ = "0.1.0"
