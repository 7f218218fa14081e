"""Microphone capture for push-to-talk sessions."""

import pyaudio
import logging
from threading import Thread, Event
from typing import Optional

import numpy as np

from ..errors import MicrophonePermissionError
from .recorder import ChunkRecorder
from .track import MicrophoneTrack

logger = logging.getLogger(__name__)


class MicrophoneCapture:
    """Owns the local microphone stream.

    Audio is read continuously on a background thread once acquired, but is
    only transmitted (via the track) and recorded (via the recorder) while
    push-to-talk has it enabled.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 320,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize microphone capture.

        Args:
            sample_rate: Audio sample rate in Hz
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        self.track: Optional[MicrophoneTrack] = None
        self.recorder = ChunkRecorder(sample_rate=sample_rate, channels=channels)

        # Reader thread management
        self.reader_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.total_chunks = 0
        self.peak_level = 0.0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None

    @property
    def is_acquired(self) -> bool:
        return self.stream is not None

    @property
    def is_enabled(self) -> bool:
        return bool(self.track and self.track.enabled)

    @property
    def is_recording(self) -> bool:
        return self.recorder.is_recording

    def acquire(self) -> MicrophoneTrack:
        """Open the microphone and return a muted outbound track.

        Raises:
            MicrophonePermissionError: if the input device cannot be opened
        """
        if self.is_acquired:
            logger.warning("Microphone already acquired")
            return self.track

        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
            )
        except OSError as e:
            self._close_stream()
            raise MicrophonePermissionError(f"Microphone access denied: {e}") from e

        logger.info(f"Microphone opened: {self.sample_rate}Hz, {self.chunk_size} samples/chunk")

        self.track = MicrophoneTrack(sample_rate=self.sample_rate, channels=self.channels)
        self.stop_event.clear()
        self.total_chunks = 0
        self.reader_thread = Thread(target=self._read_continuously, daemon=True)
        self.reader_thread.name = "MicrophoneReaderThread"
        self.reader_thread.start()
        return self.track

    def enable(self) -> None:
        """Start transmitting microphone audio."""
        if self.track:
            self.track.set_enabled(True)
            logger.debug("Microphone track enabled")

    def disable(self) -> None:
        """Stop transmitting microphone audio; the connection is untouched."""
        if self.track:
            self.track.set_enabled(False)
            logger.debug("Microphone track disabled")
        self.peak_level = 0.0

    def start_recording(self) -> None:
        """Begin buffering audio chunks for transcription."""
        self.recorder.start()

    def stop_recording(self) -> bytes:
        """Stop buffering and return the recording as WAV bytes."""
        return self.recorder.stop()

    def discard_recording(self) -> None:
        """Stop buffering and drop the audio."""
        self.recorder.discard()
        logger.debug("Recording discarded")

    def release(self) -> None:
        """Stop the outbound track and the microphone, then drop any pending recording."""
        if self.track:
            self.track.set_enabled(False)
            self.track.stop()
            self.track = None

        self.stop_event.set()
        if self.reader_thread and self.reader_thread.is_alive():
            self.reader_thread.join(timeout=2.0)
            if self.reader_thread.is_alive():
                logger.warning("Microphone reader thread did not stop cleanly")
        self.reader_thread = None
        self._close_stream()
        self.recorder.discard()
        logger.info(f"Microphone released. Total chunks: {self.total_chunks}")

    def _close_stream(self) -> None:
        if self.stream:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except OSError as e:
                logger.warning(f"Error closing microphone stream: {e}")
            self.stream = None
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def _read_continuously(self) -> None:
        """Internal method: reader loop in background thread."""
        stream = self.stream
        while not self.stop_event.is_set():
            try:
                audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
            except OSError as e:
                logger.error(f"Microphone read failed: {e}")
                break
            self.total_chunks += 1
            self._dispatch(audio_chunk)

    def _dispatch(self, audio_chunk: bytes) -> None:
        if not self.is_enabled:
            return

        samples = np.frombuffer(audio_chunk, dtype=np.int16)
        if samples.size:
            self.peak_level = float(np.abs(samples.astype(np.int32)).max()) / 32768.0

        track = self.track
        if track:
            track.feed(audio_chunk)
        self.recorder.add_chunk(audio_chunk)
