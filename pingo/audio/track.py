"""Outbound WebRTC audio track fed by the local microphone."""

import time
import asyncio
import fractions
import logging
import threading

import av
import numpy as np
from aiortc.mediastreams import MediaStreamError, MediaStreamTrack

logger = logging.getLogger(__name__)

AUDIO_PTIME = 0.020  # 20ms packets


class MicrophoneTrack(MediaStreamTrack):
    """Audio track that transmits microphone PCM only while enabled.

    The track is always attached to the peer connection so the offer carries
    an audio section; while disabled it sends silence.
    """

    kind = "audio"

    def __init__(self, sample_rate: int = 16000, channels: int = 1):
        super().__init__()
        self.sample_rate = sample_rate
        self.channels = channels
        self.enabled = False

        self._pending = bytearray()
        self._lock = threading.Lock()
        self._start: float = 0.0
        self._timestamp = None

    def feed(self, audio_chunk: bytes) -> None:
        """Queue PCM16 audio captured from the microphone."""
        if not self.enabled or self.readyState != "live":
            return
        with self._lock:
            self._pending.extend(audio_chunk)
            # Keep at most one second queued
            max_bytes = self.sample_rate * self.channels * 2
            if len(self._pending) > max_bytes:
                del self._pending[:len(self._pending) - max_bytes]

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if not enabled:
            with self._lock:
                self._pending.clear()

    def _take(self, size: int) -> bytes:
        with self._lock:
            data = bytes(self._pending[:size])
            del self._pending[:size]
        if len(data) < size:
            data += b'\x00' * (size - len(data))
        return data

    async def recv(self) -> av.AudioFrame:
        if self.readyState != "live":
            raise MediaStreamError

        samples = int(AUDIO_PTIME * self.sample_rate)

        if self._timestamp is not None:
            self._timestamp += samples
            wait = self._start + (self._timestamp / self.sample_rate) - time.time()
            if wait > 0:
                await asyncio.sleep(wait)
        else:
            self._start = time.time()
            self._timestamp = 0

        size = samples * self.channels * 2
        pcm = self._take(size) if self.enabled else b'\x00' * size

        layout = "mono" if self.channels == 1 else "stereo"
        samples_array = np.frombuffer(pcm, dtype=np.int16).reshape(1, -1)
        frame = av.AudioFrame.from_ndarray(samples_array, format="s16", layout=layout)
        frame.pts = self._timestamp
        frame.sample_rate = self.sample_rate
        frame.time_base = fractions.Fraction(1, self.sample_rate)
        return frame
