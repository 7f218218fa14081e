"""Realtime session controller: connection, push-to-talk and speaking state."""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, Optional

from aiortc import RTCConfiguration, RTCIceServer, RTCPeerConnection, RTCSessionDescription

from ..audio.capture import MicrophoneCapture
from ..clients.signaling import SignalingClient
from ..clients.transcription import TranscriptionClient
from ..config import PingoConfig
from ..config.scenarios import build_session_instructions, voice_for
from ..errors import PingoError, RealtimeConnectionError, TranscriptionError
from ..models.scenario import Language, Scenario, ScenarioSelection
from ..models.session import RemoteStream, SessionState, SpeakingState
from ..models.transcript import Transcript
from . import messages
from .interpreter import EventChannelInterpreter
from .publisher import SessionStatePublisher

logger = logging.getLogger(__name__)

CHANNEL_LABEL = "oai-events"


class RealtimeSessionController:
    """Orchestrates one realtime conversation at a time.

    All methods must be called from the event loop thread. Network, media and
    side-channel callbacks are delivered on the same loop, so the transcript
    and the speaking state need no locking.
    """

    def __init__(
        self,
        config: PingoConfig,
        capture: Optional[MicrophoneCapture] = None,
        signaling: Optional[SignalingClient] = None,
        transcriber: Optional[TranscriptionClient] = None,
        publisher: Optional[SessionStatePublisher] = None,
        peer_connection_factory: Optional[Callable[[], Any]] = None,
    ):
        """Initialize the controller.

        Args:
            config: Application configuration
            capture: Microphone owner; built from ``audio.*`` settings if None
            signaling: Token/SDP client; built from ``api``/``realtime`` settings if None
            transcriber: Transcription client; built from ``api.base_url`` if None
            publisher: State publisher for the presentation layer
            peer_connection_factory: Returns a new peer connection (aiortc by default)
        """
        self.config = config
        api_base_url = config.get('api.base_url')

        self.capture = capture or MicrophoneCapture(
            sample_rate=config.get('audio.sample_rate', 16000),
            chunk_size=config.get('audio.chunk_size', 320),
            channels=config.get('audio.channels', 1),
        )
        self.signaling = signaling or SignalingClient(
            api_base_url,
            config.get('realtime.url'),
            config.get('realtime.model'),
        )
        self.transcriber = transcriber or TranscriptionClient(
            api_base_url,
            model=config.get('openai.transcription_model', 'whisper-1'),
        )
        self.publisher = publisher or SessionStatePublisher()
        self.peer_connection_factory = peer_connection_factory or self._create_peer_connection

        self.temperature = float(config.get('realtime.temperature', 0.6))
        self.greeting_delay = float(config.get('realtime.greeting_delay_seconds', 1.0))
        self.submit_delay = float(config.get('realtime.submit_delay_seconds', 0.1))
        self.channel_open_timeout = float(config.get('realtime.channel_open_timeout_seconds', 30.0))
        self.done_ends_speaking = bool(config.get('realtime.done_events_end_speaking', False))
        self.input_transcription_model = config.get('realtime.input_transcription_model', 'whisper-1')

        self._session: Optional[SessionState] = None
        self._connected = False
        self._speaking = SpeakingState.IDLE
        self._transcript = Transcript()

    # ------------------------------------------------------------------ state

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def speaking(self) -> bool:
        return self._speaking == SpeakingState.SPEAKING

    @property
    def speaking_state(self) -> SpeakingState:
        return self._speaking

    @property
    def transcript(self) -> Transcript:
        return self._transcript

    @property
    def session(self) -> Optional[SessionState]:
        return self._session

    @property
    def scenario(self) -> Optional[ScenarioSelection]:
        return self._session.scenario if self._session else None

    def _set_speaking(self, state: SpeakingState) -> None:
        if state == self._speaking:
            return
        self._speaking = state
        self.publisher.publish_speaking(state == SpeakingState.SPEAKING)

    def _set_connected(self, connected: bool) -> None:
        if connected == self._connected:
            return
        self._connected = connected
        self.publisher.publish_connected(connected)

    def _transcript_changed(self) -> None:
        self.publisher.publish_transcript(list(self._transcript.utterances))

    # ------------------------------------------------------------- connection

    def _create_peer_connection(self) -> RTCPeerConnection:
        servers = [RTCIceServer(urls=url) for url in self.config.get('realtime.ice_servers', [])]
        return RTCPeerConnection(RTCConfiguration(iceServers=servers))

    async def connect(self) -> RemoteStream:
        """Establish the peer connection and wait for the side channel to open.

        Returns:
            The remote stream that will receive the assistant's audio track

        Raises:
            RealtimeConnectionError: if the credential fetch, the negotiation
                or the side channel fails
            MicrophonePermissionError: if the microphone cannot be opened
        """
        if self._session is not None:
            logger.warning("connect() called with an active session, cleaning it up first")
            await self.cleanup()

        session = SessionState()
        session.interpreter = EventChannelInterpreter(
            self._transcript,
            self._set_speaking,
            self._transcript_changed,
            done_ends_speaking=self.done_ends_speaking,
        )
        self._session = session

        logger.info("Starting connection...")
        try:
            credential = await self.signaling.fetch_credential()

            pc = self.peer_connection_factory()
            session.peer_connection = pc
            pc.on("track", lambda track: self._on_remote_track(session, track))
            pc.on("connectionstatechange", lambda: self._on_connection_state_change(session))

            # Muted until push-to-talk; present so the offer carries audio
            session.local_track = self.capture.acquire()
            pc.addTrack(session.local_track)

            channel = pc.createDataChannel(CHANNEL_LABEL)
            session.channel = channel
            channel.on("open", lambda: self._on_channel_open(session))
            channel.on("message", session.interpreter.handle_message)
            channel.on("close", lambda: logger.info("Data channel closed"))

            offer = await pc.createOffer()
            await pc.setLocalDescription(offer)
            answer = await self.signaling.exchange(pc.localDescription.sdp, credential)
            await pc.setRemoteDescription(RTCSessionDescription(sdp=answer, type="answer"))

            await asyncio.wait_for(session.channel_open.wait(), timeout=self.channel_open_timeout)
        except asyncio.TimeoutError as e:
            await self._abort(session)
            raise RealtimeConnectionError(
                f"Side channel did not open within {self.channel_open_timeout}s"
            ) from e
        except PingoError:
            await self._abort(session)
            raise
        except Exception as e:
            await self._abort(session)
            raise RealtimeConnectionError(f"Connection setup failed: {e}") from e

        logger.info("Realtime session connected")
        return session.remote_stream

    def _on_channel_open(self, session: SessionState) -> None:
        if session is not self._session or session.closed:
            return
        logger.info("Data channel opened")
        session.channel_open.set()
        self._set_connected(True)

    def _on_remote_track(self, session: SessionState, track: Any) -> None:
        logger.info(f"Received remote track: {track.kind}")
        session.remote_stream.add_track(track)

    def _on_connection_state_change(self, session: SessionState) -> None:
        state = session.peer_connection.connectionState if session.peer_connection else "closed"
        logger.info(f"Connection state changed: {state}")
        if session is self._session and state in ("failed", "disconnected", "closed"):
            self._set_connected(False)

    # ------------------------------------------------------------ side channel

    def _send(self, session: SessionState, message: Dict[str, Any]) -> bool:
        if not session.channel_ready:
            logger.debug(f"Channel not open, not sending {message['type']}")
            return False
        session.channel.send(messages.encode(message))
        logger.debug(f"Sent {message['type']}")
        return True

    def _send_best_effort(self, session: SessionState, batch: Iterable[Dict[str, Any]]) -> None:
        for message in batch:
            try:
                self._send(session, message)
            except Exception as e:
                logger.warning(f"Could not send {message['type']}: {e}")

    def set_scenario(self, scenario: Scenario, language: Optional[Language] = None) -> bool:
        """Configure the remote session for a practice scenario.

        A no-op returning False while the channel is not open, so a caller can
        retry once ``connected`` turns true. The greeting request is scheduled
        once per session, after ``greeting_delay`` so the configuration is
        applied first.
        """
        session = self._session
        if session is None or not session.channel_ready:
            logger.info("Data channel not ready, skipping scenario update")
            return False

        if session.scenario is not None:
            logger.warning(f"Scenario already set to {session.scenario}, ignoring {scenario}")
            return False

        selection = ScenarioSelection(scenario, language)
        session.scenario = selection
        logger.info(f"Updating scenario instructions: {scenario.value} in {selection.effective_language.value}")

        self._send(session, messages.session_update(
            instructions=build_session_instructions(selection),
            voice=voice_for(language),
            temperature=self.temperature,
            transcription_model=self.input_transcription_model,
        ))

        if not session.greeting_sent:
            session.greeting_sent = True
            loop = asyncio.get_running_loop()
            session.greeting_handle = loop.call_later(self.greeting_delay, self._send_greeting, session)
        return True

    def _send_greeting(self, session: SessionState) -> None:
        session.greeting_handle = None
        if self._send(session, messages.response_create()):
            logger.info("Greeting request sent")

    # ----------------------------------------------------------- push-to-talk

    def ptt_start(self) -> None:
        """Begin a push-to-talk turn, interrupting the assistant if it is speaking.

        The speaking state is forced to IDLE before returning, without waiting
        for the service to acknowledge the cancellation.
        """
        session = self._session
        if session is None or session.closed:
            logger.warning("Push-to-talk ignored: no active session")
            return

        logger.info("Push-to-talk started")
        session.ignore_remote_audio = True

        if self._speaking == SpeakingState.SPEAKING:
            logger.info("Interrupting assistant speech")
            self._send_best_effort(session, [messages.response_cancel(), messages.output_audio_buffer_clear()])
            self._set_speaking(SpeakingState.IDLE)

        self.capture.enable()
        if self.capture.is_recording:
            logger.warning("Discarding stale recording")
            self.capture.discard_recording()
        self.capture.start_recording()

    async def ptt_end(self) -> Optional[str]:
        """Finish a push-to-talk turn: transcribe it and submit it to the assistant.

        Only one submission runs at a time; a call made while another is in
        flight is dropped together with its recording.

        Returns:
            The transcribed text, or None if nothing was transcribed
        """
        self.capture.disable()

        session = self._session
        if session is None or session.closed:
            return None
        if session.processing:
            logger.info("Already processing a request, skipping")
            if self.capture.is_recording:
                self.capture.discard_recording()
            return None
        if not self.capture.is_recording:
            logger.debug("No recording in progress")
            return None

        logger.info("Push-to-talk ended")
        session.processing = True
        audio = self.capture.stop_recording()

        try:
            text = await self.transcriber.transcribe(audio)
        except TranscriptionError as e:
            logger.error(f"Transcription failed: {e}")
            session.processing = False
            session.ignore_remote_audio = False
            return None

        if session is not self._session or session.closed:
            logger.info("Session ended during transcription, dropping result")
            return None

        try:
            self._transcript.add_user_text(text)
            self._transcript_changed()

            if text.strip() and self._send(session, messages.user_text_item(text)):
                await asyncio.sleep(self.submit_delay)
                if self._send(session, messages.response_create()):
                    logger.info("Requested assistant response")
        finally:
            session.processing = False
            session.ignore_remote_audio = False

        return text

    # --------------------------------------------------------------- teardown

    async def cleanup(self) -> None:
        """Tear down the session's network and media resources.

        Stops interpreting inbound events first, then sends a best-effort
        reset, then closes the side channel, the peer connection and the
        microphone in that order.
        """
        session = self._session
        if session is None:
            return
        self._session = None

        logger.info("Cleaning up realtime session")
        if session.interpreter:
            session.interpreter.close()

        self._send_best_effort(session, [
            messages.conversation_item_truncate(),
            messages.response_cancel(),
            messages.output_audio_buffer_clear(),
        ])
        session.closed = True
        await self._teardown(session)
        self._set_connected(False)
        self._set_speaking(SpeakingState.IDLE)
        logger.info("Cleanup completed")

    def reset_state(self) -> None:
        """Clear UI-visible state for a fresh conversation."""
        self._set_connected(False)
        self._set_speaking(SpeakingState.IDLE)
        self._transcript.clear()
        self._transcript_changed()
        if self._session:
            self._session.greeting_sent = False

    async def _abort(self, session: SessionState) -> None:
        if session.interpreter:
            session.interpreter.close()
        session.closed = True
        if self._session is session:
            self._session = None
        await self._teardown(session)

    async def _teardown(self, session: SessionState) -> None:
        if session.greeting_handle:
            session.greeting_handle.cancel()
            session.greeting_handle = None

        if session.channel is not None:
            try:
                session.channel.close()
            except Exception as e:
                logger.warning(f"Error closing data channel: {e}")
            session.channel = None

        if session.peer_connection is not None:
            try:
                await session.peer_connection.close()
            except Exception as e:
                logger.warning(f"Error closing peer connection: {e}")
            session.peer_connection = None

        self.capture.release()
        session.local_track = None
        session.reset_flags()
