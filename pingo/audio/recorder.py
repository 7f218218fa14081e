"""In-memory push-to-talk recording buffer."""

import io
import time
import wave
import logging
import threading
from typing import List, Optional

logger = logging.getLogger(__name__)


class ChunkRecorder:
    """Accumulates PCM chunks between push-to-talk start and end.

    Chunks arrive from the capture thread; start/stop are called from the
    event loop, so the chunk list is guarded by a lock.
    """

    def __init__(self, sample_rate: int = 16000, channels: int = 1, sample_width: int = 2):
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_width = sample_width

        self.chunks: List[bytes] = []
        self.lock = threading.Lock()
        self.is_recording = False
        self.start_time: Optional[float] = None

    def start(self) -> None:
        """Begin a new recording from an empty buffer.

        Raises:
            RuntimeError: if a recording is already active
        """
        with self.lock:
            if self.is_recording:
                raise RuntimeError("A recording is already active")
            self.chunks = []
            self.is_recording = True
            self.start_time = time.time()
        logger.debug("Recording started")

    def add_chunk(self, audio_chunk: bytes) -> None:
        if not audio_chunk:
            return
        with self.lock:
            if self.is_recording:
                self.chunks.append(audio_chunk)

    def stop(self) -> bytes:
        """Stop recording and return the audio as a WAV file."""
        with self.lock:
            chunks = self.chunks
            self.chunks = []
            self.is_recording = False

        duration = time.time() - self.start_time if self.start_time else 0.0
        self.start_time = None
        pcm = b''.join(chunks)
        logger.info(f"Recording stopped: {len(chunks)} chunks, {len(pcm)} bytes, {duration:.1f}s")
        return self._to_wav(pcm)

    def discard(self) -> None:
        """Drop any buffered audio without producing a file."""
        with self.lock:
            self.chunks = []
            self.is_recording = False
        self.start_time = None

    def _to_wav(self, pcm: bytes) -> bytes:
        buffer = io.BytesIO()
        with wave.open(buffer, 'wb') as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.sample_rate)
            wf.writeframes(pcm)
        return buffer.getvalue()
