"""Main application entry point for voiceagent."""

import sys
import time
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console

from voiceagent.audio.ring import RingCapture
from voiceagent.commands import (ActionDispatcher, ActionPublisher, ChatGPTCommandEngine,
                                 CommandResolver, build_rules)
from voiceagent.errors import EmptyCommand, RemoteResolutionFailure
from voiceagent.models.commands import Action
from voiceagent.services.voice_command_service import VoiceCommandService
from voiceagent.transcription import TranscriptionPublisher, WhisperApiBackend
from voiceagent.ui.keyboard_input import InputEvent, PushToTalkKeyListener, TextCommandPrompt

from .config import VoiceAgentConfig

logger = logging.getLogger(__name__)

ACTION_STYLES = {
    Action.FOLLOW: "green",
    Action.STOP: "red",
    Action.JUMP: "magenta",
    Action.IDLE: "dim",
    Action.BACKOFF: "yellow",
}


class ConsoleAgent:
    """Stand-in agent that shows the current action on the terminal."""

    def __init__(self, console: Console):
        self.console = console
        self.current_action = Action.IDLE

    def perform(self, action: Action) -> None:
        self.current_action = action
        self.console.print(f"Agent -> {action.value}", style=ACTION_STYLES[action])

    def register_with(self, dispatcher: ActionDispatcher) -> None:
        for action in Action:
            dispatcher.register(action, lambda action=action: self.perform(action))


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = VoiceAgentConfig(config_path)
        # Set up logging (override config with command line if specified)
        log_level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, log_level)
        self.console = Console()
        self.should_exit = False
        self.service: Optional[VoiceCommandService] = None
        self.listener: Optional[PushToTalkKeyListener] = None

    def init(self):
        # Initialize services
        logger.info("Initializing services...")

        audio = self.config.audio_settings()
        commands = self.config.command_settings()
        self.input_settings = self.config.input_settings()

        logger.info(f"Audio settings: {audio.sample_rate}Hz, {audio.channels} channels, "
                    f"{audio.loop_seconds}s loop, {audio.pre_roll_seconds}s pre-roll")

        capture = RingCapture(
            sample_rate=audio.sample_rate,
            channels=audio.channels,
            loop_seconds=audio.loop_seconds,
            chunk_size=audio.chunk_size,
            device_index=audio.device_index,
        )

        api_key = self.config.get_openai_api_key()
        if not api_key:
            logger.warning("OpenAI API key not set; remote resolution will fall back to IDLE")

        engine = ChatGPTCommandEngine(
            api_key,
            model=commands.model,
            max_tokens=commands.max_tokens,
            temperature=commands.temperature,
        )
        resolver = CommandResolver(
            engine=engine,
            rules=build_rules(commands.keywords),
            cache_heuristic_matches=commands.cache_heuristic_matches,
        )

        dispatcher = ActionDispatcher(publisher=ActionPublisher("agent.action"))
        self.agent = ConsoleAgent(self.console)
        self.agent.register_with(dispatcher)

        self.service = VoiceCommandService(
            capture,
            self._create_backend(api_key),
            resolver,
            dispatcher,
            pre_roll_seconds=audio.pre_roll_seconds,
            max_record_seconds=audio.max_record_seconds,
            min_record_seconds=audio.min_record_seconds,
            cancel_stale=commands.cancel_stale,
            clip_directory=audio.clip_directory,
            transcription_publisher=TranscriptionPublisher("voice.transcription"),
        )

    def _create_backend(self, api_key: str):
        backend_name = self.config.get('transcription.backend', 'whisper')
        language = self.config.get('transcription.language', 'en-US')

        try:
            if backend_name == 'google':
                from voiceagent.transcription.google_backend import GoogleSpeechBackend
                backend = GoogleSpeechBackend(self.config.get_google_credentials_path(), language)
            elif backend_name == 'whisper':
                backend = WhisperApiBackend(api_key, language=language)
            else:
                raise ValueError(f"Unknown transcription backend: {backend_name}")

            if not backend.initialize():
                logger.warning(f"Transcription backend '{backend_name}' unavailable")
                return None
        except (ValueError, FileNotFoundError) as e:
            logger.warning(f"Transcription backend '{backend_name}' disabled: {e}")
            return None

        logger.info(f"Using transcription backend: {backend.service_name}")
        return backend

    def run(self):
        self.listener = PushToTalkKeyListener(self.input_settings.record_key, self.input_settings.text_key)
        prompt = TextCommandPrompt(self.service.submit_text, suppressor=self.listener)

        try:
            if self.service.start():
                self.console.print(f"Hold '{self.input_settings.record_key}' to talk, "
                                   f"'{self.input_settings.text_key}' to type a command.", style="blue")
            else:
                self.console.print(f"Voice input unavailable. Press '{self.input_settings.text_key}' "
                                   f"to type a command.", style="yellow")
            self.listener.start()

            while not self.should_exit:
                for event in self.listener.poll_events():
                    if event is InputEvent.PRESS:
                        self.service.press()
                    elif event is InputEvent.RELEASE:
                        self.service.release()
                    elif event is InputEvent.TOGGLE_TEXT and not self.service.is_recording:
                        prompt.open()
                self.service.tick()
                time.sleep(self.input_settings.tick_seconds)
        except Exception as e:
            logger.error(f"Error in run: {e}")
        finally:
            self.cleanup()

    def run_command(self, command: str) -> Optional[Action]:
        """Resolve and dispatch a single typed command, then return."""
        try:
            resolution = asyncio.run(self.service.resolver.resolve(command))
        except EmptyCommand:
            logger.info("Ignoring empty command")
            return None
        except RemoteResolutionFailure as e:
            return self.service.dispatcher.dispatch_fallback(str(e))

        self.console.print(f"{command!r} => {resolution.token} ({resolution.tier.value})", style="blue")
        return self.service.dispatcher.dispatch(resolution.token)

    def cleanup(self):
        if self.listener is not None:
            self.listener.stop()
        if self.service is not None:
            self.service.shutdown()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'data/logs/voiceagent.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    # Set up handlers
    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("voiceagent starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for voiceagent."""
    parser = argparse.ArgumentParser(
        description="voiceagent - push-to-talk voice commands for an agent",
        epilog="Hold the record key to talk, press the text key to type a command, Ctrl+C to quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config, else INFO)"
    )

    parser.add_argument(
        "--command",
        type=str,
        help="Resolve and dispatch a single typed command, then exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="voiceagent v0.1.0"
    )

    args = parser.parse_args()

    server = None
    try:
        server = Server(args.config, args.log_level)
        server.init()
        if args.command:
            server.run_command(args.command)
        else:
            server.run()
    except KeyboardInterrupt:
        if server is not None:
            server.cleanup()
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
