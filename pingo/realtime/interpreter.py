"""Interpreter for inbound realtime side-channel events."""

import logging
from typing import Any, Callable, Dict

from ..errors import ProtocolError
from ..models.events import ServerEvent, ServerEventType, parse_server_event
from ..models.session import SpeakingState
from ..models.transcript import Transcript

logger = logging.getLogger(__name__)


class EventChannelInterpreter:
    """Maps each inbound side-channel message to a speaking-state transition
    or a transcript mutation.

    The speaking state is driven only by remote events here:

    * response.created and any audio/transcript delta -> SPEAKING
    * output_audio_buffer.stopped, output_audio_buffer.cleared and
      response.cancelled -> IDLE
    * response.done / response.audio_transcript.done -> IDLE only when
      ``done_ends_speaking`` is set, since text can finish before playback

    Unknown event types and unparseable frames are ignored. Once closed the
    interpreter drops every message.
    """

    def __init__(
        self,
        transcript: Transcript,
        set_speaking: Callable[[SpeakingState], None],
        on_transcript_changed: Callable[[], None],
        done_ends_speaking: bool = False,
    ):
        self.transcript = transcript
        self.set_speaking = set_speaking
        self.on_transcript_changed = on_transcript_changed
        self.done_ends_speaking = done_ends_speaking
        self.active = True

        self.handlers: Dict[ServerEventType, Callable[[ServerEvent], None]] = {
            ServerEventType.RESPONSE_CREATED: self._on_response_created,
            ServerEventType.RESPONSE_AUDIO_DELTA: self._on_audio_delta,
            ServerEventType.RESPONSE_AUDIO_TRANSCRIPT_DELTA: self._on_transcript_delta,
            ServerEventType.RESPONSE_DONE: self._on_done,
            ServerEventType.RESPONSE_AUDIO_TRANSCRIPT_DONE: self._on_done,
            ServerEventType.OUTPUT_AUDIO_BUFFER_STOPPED: self._on_playback_finished,
            ServerEventType.OUTPUT_AUDIO_BUFFER_CLEARED: self._on_playback_finished,
            ServerEventType.RESPONSE_CANCELLED: self._on_playback_finished,
            ServerEventType.RESPONSE_OUTPUT_ITEM_ADDED: self._on_output_item_added,
            ServerEventType.INPUT_AUDIO_TRANSCRIPTION_COMPLETED: self._on_remote_input,
            ServerEventType.INPUT_AUDIO_BUFFER: self._on_remote_input,
            ServerEventType.ERROR: self._on_error,
        }

    def close(self) -> None:
        """Stop reacting to messages; late frames from a torn-down channel are dropped."""
        self.active = False

    def handle_message(self, raw: Any) -> None:
        """Entry point for the data channel's message callback."""
        if not self.active:
            logger.debug("Dropping side-channel message after close")
            return

        try:
            event = parse_server_event(raw)
        except ProtocolError as e:
            logger.debug(f"Ignoring side-channel frame: {e}")
            return

        logger.debug(f"Received side-channel event: {event.type_name}")
        handler = self.handlers.get(event.kind, self._on_unknown)
        handler(event)

    def _on_response_created(self, event: ServerEvent) -> None:
        logger.info("Assistant response started")
        self.set_speaking(SpeakingState.SPEAKING)

    def _on_audio_delta(self, event: ServerEvent) -> None:
        self.set_speaking(SpeakingState.SPEAKING)

    def _on_transcript_delta(self, event: ServerEvent) -> None:
        self.set_speaking(SpeakingState.SPEAKING)
        if self.transcript.append_assistant_fragment(event.delta or ""):
            self.on_transcript_changed()

    def _on_done(self, event: ServerEvent) -> None:
        if self.done_ends_speaking:
            self.set_speaking(SpeakingState.IDLE)
        else:
            logger.debug(f"{event.type_name}: waiting for playback to finish")

    def _on_playback_finished(self, event: ServerEvent) -> None:
        logger.info(f"Assistant stopped speaking ({event.type_name})")
        self.set_speaking(SpeakingState.IDLE)

    def _on_output_item_added(self, event: ServerEvent) -> None:
        logger.debug("Assistant output item added")

    def _on_remote_input(self, event: ServerEvent) -> None:
        # Speech is captured and transcribed locally, whether or not a turn is active
        logger.debug(f"Ignoring remote input event: {event.type_name}")

    def _on_error(self, event: ServerEvent) -> None:
        logger.error(f"Realtime service error: {event.payload.get('error')}")
        if event.error_type == "invalid_request_error":
            self.set_speaking(SpeakingState.IDLE)

    def _on_unknown(self, event: ServerEvent) -> None:
        logger.debug(f"Ignoring unknown side-channel event: {event.type_name}")
