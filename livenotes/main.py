"""Main application entry point for LiveNotes."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from livenotes.audio.devices import DeviceUnavailable, PyAudioDeviceLayer
from livenotes.models.audio import CaptureSource, SessionState
from livenotes.services.capture_session import CaptureSession
from livenotes.services.session_factory import create_session
from livenotes.ui.summary_sink import ConsoleSummarySink

from .config import LiveNotesConfig

logger = logging.getLogger(__name__)

SOURCES = {
    "microphone": [CaptureSource.MICROPHONE],
    "desktop": [CaptureSource.DESKTOP],
    "both": [CaptureSource.MICROPHONE, CaptureSource.DESKTOP],
}


class Server:

    def __init__(self, config_path: str, log_level: Optional[str] = None):
        # Load configuration
        self.config = LiveNotesConfig(config_path)
        # Set up logging (command line overrides config)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.console = Console()
        self.device_layer: Optional[PyAudioDeviceLayer] = None
        self.sessions: List[CaptureSession] = []

    def init(self, sources: List[CaptureSource]):
        logger.info("Initializing sessions...")
        self.device_layer = PyAudioDeviceLayer(
            frames_per_buffer=self.config.get('capture.frames_per_buffer', 1024)
        )
        for source in sources:
            sink = ConsoleSummarySink(source.value, console=self.console)
            self.sessions.append(create_session(self.config, source, self.device_layer, sink))

    def run(self, duration: Optional[int]):
        asyncio.run(self._run(duration))

    async def _run(self, duration: Optional[int]):
        try:
            started = await self._start_sessions()
            if not started:
                raise RuntimeError("No capture session could be started")

            if duration:
                await asyncio.sleep(duration)
            else:
                # Until Ctrl-C or until every stream is ended by its device
                while any(s.state == SessionState.RECORDING for s in started):
                    await asyncio.sleep(1)
        finally:
            await self.cleanup()

    async def _start_sessions(self) -> List[CaptureSession]:
        started = []
        for session in self.sessions:
            try:
                await session.start()
            except DeviceUnavailable as e:
                logger.error(f"{session.source.value} capture unavailable: {e}")
                self.console.print(f"[red]{session.source.value} capture unavailable:[/red] {e}")
                continue
            self.console.print(f"[green]Recording {session.source.value}[/green] "
                               f"(chunk every {session.interval_ms}ms)")
            started.append(session)
        return started

    async def cleanup(self):
        for session in self.sessions:
            session.stop()

        drain_timeout = self.config.get('capture.drain_timeout_seconds', 30.0)
        for session in self.sessions:
            await session.drain(timeout=drain_timeout)
            await session.cleanup()
            self._print_transcript(session)

        if self.device_layer:
            self.device_layer.terminate()

    def _print_transcript(self, session: CaptureSession):
        if session.state == SessionState.IDLE:
            return
        stats = session.get_stats()
        self.console.rule(f"{session.source.value} transcript")
        self.console.print(session.transcript.accumulated_text or "[dim](no speech transcribed)[/dim]")
        self.console.print(f"[dim]{stats.total_chunks} chunks over {stats.duration_seconds:.1f}s, "
                           f"{session.transcript.iteration} merges[/dim]")


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/livenotes.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

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
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info("=" * 50)
    logger.info("LiveNotes starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for LiveNotes."""
    parser = argparse.ArgumentParser(
        description="LiveNotes - live transcription and summaries of microphone or desktop audio"
    )

    parser.add_argument(
        "--config",
        type=str,
        default="livenotes.yaml",
        help="Path to configuration YAML file (default: livenotes.yaml)"
    )

    parser.add_argument(
        "--source",
        type=str,
        default="microphone",
        choices=sorted(SOURCES),
        help="Audio source to capture (default: microphone)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        help="Stop after this many seconds (default: until Ctrl-C or the stream ends)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="LiveNotes v0.1.0"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.init(SOURCES[args.source])
        server.run(args.duration)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
