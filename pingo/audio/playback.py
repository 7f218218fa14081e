"""Playback of the remote assistant audio through the local speakers."""

import asyncio
import logging
from typing import Optional

import av
import pyaudio
from aiortc.mediastreams import MediaStreamError

logger = logging.getLogger(__name__)


class RemoteAudioPlayer:
    """Pulls frames from a remote audio track and writes them to an output device."""

    def __init__(self, sample_rate: int = 24000, channels: int = 1):
        self.sample_rate = sample_rate
        self.channels = channels
        self.resampler = av.AudioResampler(
            format="s16",
            layout="mono" if channels == 1 else "stereo",
            rate=sample_rate,
        )
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self.task: Optional[asyncio.Task] = None
        self.frames_played = 0
        # Muted frames are received and dropped
        self.muted = False

    def start(self, track) -> None:
        """Begin playing ``track`` on the running event loop."""
        if self.task and not self.task.done():
            logger.warning("Playback already running")
            return

        self.pyaudio_instance = pyaudio.PyAudio()
        self.stream = self.pyaudio_instance.open(
            format=pyaudio.paInt16,
            channels=self.channels,
            rate=self.sample_rate,
            output=True,
        )
        self.task = asyncio.ensure_future(self._play(track))
        logger.info(f"Remote audio playback started at {self.sample_rate}Hz")

    async def _play(self, track) -> None:
        loop = asyncio.get_running_loop()
        try:
            while True:
                try:
                    frame = await track.recv()
                except MediaStreamError:
                    logger.info("Remote audio track ended")
                    break
                if self.muted:
                    continue
                for resampled in self.resampler.resample(frame):
                    pcm = resampled.to_ndarray().tobytes()
                    await loop.run_in_executor(None, self.stream.write, pcm)
                    self.frames_played += 1
        finally:
            self._close_stream()

    async def stop(self) -> None:
        if self.task and not self.task.done():
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        self.task = None
        self._close_stream()

    def _close_stream(self) -> None:
        if self.stream:
            self.stream.stop_stream()
            self.stream.close()
            self.stream = None
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
