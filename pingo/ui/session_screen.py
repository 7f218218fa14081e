"""Terminal conversation screen: push-to-talk, live transcript and feedback."""

import asyncio
import logging
from typing import List, Optional

from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..audio.playback import RemoteAudioPlayer
from ..clients.feedback import FeedbackClient
from ..config import PingoConfig
from ..errors import MicrophonePermissionError, RealtimeConnectionError, SummaryError
from ..models.scenario import Language, Scenario
from ..models.transcript import Speaker, Utterance
from ..realtime.controller import RealtimeSessionController
from ..realtime.publisher import TOPIC_CONNECTED, TOPIC_SPEAKING, TOPIC_TRANSCRIPT
from .keyboard_input import KeyboardInputHandler

logger = logging.getLogger(__name__)


class SessionScreen:
    """Conversation practice interface driven by single keypresses.

    Keys are read on a background thread and handed to the event loop, so all
    controller calls happen on the loop thread.
    """

    def __init__(
        self,
        config: PingoConfig,
        scenario: Scenario,
        language: Optional[Language] = None,
        controller: Optional[RealtimeSessionController] = None,
        feedback: Optional[FeedbackClient] = None,
        player: Optional[RemoteAudioPlayer] = None,
        console: Optional[Console] = None,
    ):
        self.config = config
        self.scenario = scenario
        self.language = language
        self.console = console or Console()
        self.controller = controller or RealtimeSessionController(config)
        self.feedback = feedback or FeedbackClient(config.get('api.base_url'))
        self.player = player or RemoteAudioPlayer()

        self.connected = False
        self.speaking = False
        self.utterances: List[Utterance] = []
        self.status_message = ""
        self.ended = False

        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.quit_event: Optional[asyncio.Event] = None
        self.pending: set = set()

    # ----------------------------------------------------------- subscriptions

    def _subscribe(self) -> None:
        pub.subscribe(self.on_connected, TOPIC_CONNECTED)
        pub.subscribe(self.on_speaking, TOPIC_SPEAKING)
        pub.subscribe(self.on_transcript, TOPIC_TRANSCRIPT)

    def _unsubscribe(self) -> None:
        pub.unsubscribe(self.on_connected, TOPIC_CONNECTED)
        pub.unsubscribe(self.on_speaking, TOPIC_SPEAKING)
        pub.unsubscribe(self.on_transcript, TOPIC_TRANSCRIPT)

    def on_connected(self, connected: bool) -> None:
        self.connected = connected
        if not connected and not self.ended:
            self.status_message = "Connection lost"
        self.show_status()

    def on_speaking(self, speaking: bool) -> None:
        self.speaking = speaking
        self.show_status()

    def on_transcript(self, utterances: List[Utterance]) -> None:
        self.utterances = list(utterances)
        self.show_status()

    # --------------------------------------------------------------- rendering

    def show_status(self) -> None:
        """Redraw the screen."""
        self.console.clear()
        self.console.print(Panel(
            f"Pingo - {self.scenario.value}"
            + (f" ({self.language.value})" if self.language else ""),
            style="bold blue",
        ))

        if self.ended:
            state = "[bold blue]ENDED[/bold blue]"
        elif not self.connected:
            state = "[bold red]DISCONNECTED[/bold red]"
        elif self.speaking:
            state = "[bold magenta]ASSISTANT SPEAKING[/bold magenta]"
        elif self.controller.capture.is_enabled:
            state = f"[bold green]LISTENING[/bold green]  {self._level_meter()}"
        elif self.controller.session is not None and self.controller.session.ignore_remote_audio:
            state = "[bold cyan]PROCESSING[/bold cyan]"
        else:
            state = "[bold yellow]READY[/bold yellow]"
        self.console.print(state)

        if self.utterances:
            self.console.print(self._transcript_table("Transcript", self.utterances))
        else:
            self.console.print("\nWaiting for the conversation to start...")

        if self.status_message:
            self.console.print(f"\n{self.status_message}", style="italic")

        self.console.print("\nCommands:")
        self.console.print("  [bold green]1[/bold green] - Start talking (interrupts the assistant)")
        self.console.print("  [bold yellow]2[/bold yellow] - Stop talking and send")
        self.console.print("  [bold blue]e[/bold blue] - End conversation and get feedback")
        self.console.print("  [bold cyan]t[/bold cyan] - Show corrected transcript")
        self.console.print("  [bold red]q[/bold red] - Quit")

    def _level_meter(self, width: int = 20) -> str:
        level = min(max(self.controller.capture.peak_level, 0.0), 1.0)
        filled = int(round(level * width))
        return "[green]" + "█" * filled + "[/green]" + "░" * (width - filled)

    def _transcript_table(self, title: str, utterances: List[Utterance]) -> Table:
        table = Table(title=title, show_header=False, expand=True)
        table.add_column("Speaker", style="bold", width=6)
        table.add_column("Text")
        for utterance in utterances:
            who = "AI" if utterance.speaker == Speaker.ASSISTANT else "You"
            table.add_row(who, utterance.text)
        return table

    # ------------------------------------------------------------------- keys

    def on_key(self, key: str) -> bool:
        """Keyboard thread callback; forwards the key to the event loop."""
        if self.loop is None or self.loop.is_closed():
            return False
        self.loop.call_soon_threadsafe(self.handle_key, key)
        return key != 'q'

    def handle_key(self, key: str) -> None:
        """Dispatch one keypress on the event loop."""
        if key == '1':
            self.start_talking()
        elif key == '2':
            self._spawn(self.stop_talking())
        elif key == 'e':
            self._spawn(self.end_conversation())
        elif key == 't':
            self._spawn(self.show_corrected_transcript())
        elif key == 'q':
            if self.quit_event:
                self.quit_event.set()
        else:
            logger.debug(f"Unknown command: {key}")

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)

    def start_talking(self) -> None:
        if self.ended or not self.connected:
            self.status_message = "Not connected"
            self.show_status()
            return
        self.player.muted = True
        self.controller.ptt_start()
        self.status_message = "Listening... press 2 when done"
        self.show_status()
        if self.loop is not None:
            self._spawn(self._refresh_while_listening())

    async def _refresh_while_listening(self, interval: float = 0.2) -> None:
        """Redraw so the level meter follows the microphone."""
        while not self.ended and self.controller.capture.is_enabled:
            await asyncio.sleep(interval)
            self.show_status()

    async def stop_talking(self) -> None:
        if self.ended:
            return
        self.status_message = "Transcribing..."
        self.show_status()
        try:
            text = await self.controller.ptt_end()
        finally:
            self.player.muted = False
        self.status_message = "" if text else "Nothing was transcribed"
        self.show_status()

    async def end_conversation(self) -> None:
        """End the call and show performance feedback."""
        if self.ended:
            return
        self.ended = True
        transcript = self.controller.transcript
        await self.player.stop()
        await self.controller.cleanup()

        if not transcript:
            self.status_message = "No conversation to summarize"
            self.show_status()
            return

        self.status_message = "Generating feedback..."
        self.show_status()
        try:
            summary = await self.feedback.summarize(transcript, self.scenario)
        except SummaryError as e:
            logger.error(f"Summary failed: {e}")
            self.status_message = "Failed to generate summary"
            self.show_status()
            return

        self.status_message = ""
        self.show_status()
        self.console.print(Panel(summary, title="Feedback", border_style="green"))

    async def show_corrected_transcript(self) -> None:
        transcript = self.controller.transcript
        if not transcript:
            self.status_message = "Transcript is empty"
            self.show_status()
            return

        corrected = await self.feedback.correct_transcript(transcript, self.scenario)
        self.console.print(self._transcript_table("Corrected transcript", corrected))

    # -------------------------------------------------------------------- run

    async def run(self) -> None:
        """Connect, configure the scenario and process keys until quit."""
        self.loop = asyncio.get_running_loop()
        self.quit_event = asyncio.Event()
        self._subscribe()

        self.console.print("Connecting...", style="blue")
        try:
            remote = await self.controller.connect()
        except MicrophonePermissionError as e:
            self.console.print(f"Microphone unavailable: {e}", style="bold red")
            self._unsubscribe()
            return
        except RealtimeConnectionError as e:
            self.console.print(f"Failed to connect: {e}", style="bold red")
            self._unsubscribe()
            return

        for track in remote.audio_tracks[:1]:
            self.player.start(track)
        self.controller.set_scenario(self.scenario, self.language)
        self.show_status()

        keyboard = KeyboardInputHandler(self.on_key)
        keyboard.start()
        try:
            await self.quit_event.wait()
        finally:
            keyboard.stop()
            for task in list(self.pending):
                task.cancel()
            await self.player.stop()
            await self.controller.cleanup()
            self._unsubscribe()
            self.console.print("\nPingo session ended", style="bold blue")
            logger.info("SessionScreen cleanup completed")
