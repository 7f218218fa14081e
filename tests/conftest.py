"""Pytest configuration and fixtures for Pingo tests."""

import asyncio
import json
import logging
from types import SimpleNamespace
from unittest.mock import Mock, patch

import numpy as np
import pytest
from aiohttp import web

from pingo.clients.signaling import SessionCredential
from pingo.config import PingoConfig
from pingo.errors import MicrophonePermissionError, RealtimeConnectionError, TranscriptionError
from pingo.realtime.controller import RealtimeSessionController


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line("markers", "integration: tests that run in-process HTTP servers")


class FakeEmitter:
    """Minimal stand-in for the pyee ``on``/``emit`` API used by aiortc objects."""

    def __init__(self):
        self._handlers = {}

    def on(self, event, f=None):
        if f is None:
            def decorator(func):
                self._handlers.setdefault(event, []).append(func)
                return func
            return decorator
        self._handlers.setdefault(event, []).append(f)
        return f

    def emit(self, event, *args):
        for handler in list(self._handlers.get(event, [])):
            handler(*args)


class FakeChannel(FakeEmitter):
    """Data channel that records what is sent and lets tests inject messages."""

    def __init__(self, label):
        super().__init__()
        self.label = label
        self.readyState = "connecting"
        self.sent = []

    def open(self):
        self.readyState = "open"
        self.emit("open")

    def send(self, data):
        if self.readyState != "open":
            raise RuntimeError("Data channel is not open")
        self.sent.append(json.loads(data))

    def close(self):
        if self.readyState != "closed":
            self.readyState = "closed"
            self.emit("close")

    def receive(self, message):
        """Deliver an inbound frame; dicts are JSON encoded."""
        self.emit("message", json.dumps(message) if isinstance(message, dict) else message)

    @property
    def sent_types(self):
        return [m["type"] for m in self.sent]


class FakePeerConnection(FakeEmitter):
    """Peer connection that answers any offer and opens its data channel."""

    def __init__(self, open_channel=True, remote_tracks=(), fail_remote=False):
        super().__init__()
        self.open_channel = open_channel
        self.remote_tracks = list(remote_tracks)
        self.fail_remote = fail_remote
        self.connectionState = "new"
        self.tracks = []
        self.channels = []
        self.localDescription = None
        self.remoteDescription = None
        self.closed = False

    @property
    def channel(self):
        return self.channels[0]

    def addTrack(self, track):
        self.tracks.append(track)

    def createDataChannel(self, label):
        channel = FakeChannel(label)
        self.channels.append(channel)
        return channel

    async def createOffer(self):
        return SimpleNamespace(sdp="v=0\r\no=- offer\r\n", type="offer")

    async def setLocalDescription(self, description):
        self.localDescription = description

    async def setRemoteDescription(self, description):
        if self.fail_remote:
            raise ValueError("Invalid SDP answer")
        self.remoteDescription = description
        for track in self.remote_tracks:
            self.emit("track", track)
        self.set_state("connected")
        if self.open_channel:
            asyncio.get_running_loop().call_soon(self.channel.open)

    def set_state(self, state):
        self.connectionState = state
        self.emit("connectionstatechange")

    async def close(self):
        self.closed = True
        for channel in self.channels:
            channel.close()
        self.connectionState = "closed"


class FakeCapture:
    """Microphone owner without hardware.

    ``feed`` buffers audio like the real recorder; a recording that was never
    fed returns ``audio``.
    """

    def __init__(self, deny=False, audio=b"RIFF-fake-wav"):
        self.deny = deny
        self.audio = audio
        self.track = Mock(kind="audio")
        self.acquired = False
        self.enabled = False
        self.recording = False
        self.chunks = []
        self.peak_level = 0.0
        self.release_count = 0

    @property
    def is_enabled(self):
        return self.enabled

    @property
    def is_recording(self):
        return self.recording

    def acquire(self):
        if self.deny:
            raise MicrophonePermissionError("Microphone access denied")
        self.acquired = True
        return self.track

    def enable(self):
        self.enabled = True

    def disable(self):
        self.enabled = False

    def start_recording(self):
        if self.recording:
            raise RuntimeError("A recording is already active")
        self.recording = True
        self.chunks = []

    def feed(self, chunk):
        if self.recording:
            self.chunks.append(chunk)

    def stop_recording(self):
        self.recording = False
        chunks, self.chunks = self.chunks, []
        return b"".join(chunks) if chunks else self.audio

    def discard_recording(self):
        self.recording = False
        self.chunks = []

    def release(self):
        self.enabled = False
        self.recording = False
        self.chunks = []
        self.acquired = False
        self.release_count += 1


class FakeSignaling:
    """Token and SDP exchange without a network."""

    def __init__(self, fail_credential=False, fail_exchange=False):
        self.fail_credential = fail_credential
        self.fail_exchange = fail_exchange
        self.offers = []

    async def fetch_credential(self):
        if self.fail_credential:
            raise RealtimeConnectionError("Token endpoint error: 500")
        return SessionCredential(value="ek_test")

    async def exchange(self, offer_sdp, credential):
        if self.fail_exchange:
            raise RealtimeConnectionError("Realtime negotiation failed: 401")
        self.offers.append((offer_sdp, credential.value))
        return "v=0\r\no=- answer\r\n"


class FakeTranscriber:
    """Transcriber that can be held open with ``gate`` to simulate latency."""

    def __init__(self, text="Hello there"):
        self.text = text
        self.error = None
        self.gate = None
        self.calls = []

    async def transcribe(self, audio):
        self.calls.append(audio)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def pingo_config():
    """Default configuration with short protocol delays."""
    config = PingoConfig()
    config.set('api.base_url', 'http://pingo.test')
    config.set('realtime.greeting_delay_seconds', 0.01)
    config.set('realtime.submit_delay_seconds', 0.0)
    config.set('realtime.channel_open_timeout_seconds', 0.2)
    return config


@pytest.fixture
def session_parts(pingo_config):
    """A controller wired to fakes; ``peer_options`` configures the next peer connection."""
    parts = SimpleNamespace(
        capture=FakeCapture(),
        signaling=FakeSignaling(),
        transcriber=FakeTranscriber(),
        publisher=Mock(),
        peers=[],
        peer_options={},
    )

    def factory():
        pc = FakePeerConnection(**parts.peer_options)
        parts.peers.append(pc)
        return pc

    parts.controller = RealtimeSessionController(
        pingo_config,
        capture=parts.capture,
        signaling=parts.signaling,
        transcriber=parts.transcriber,
        publisher=parts.publisher,
        peer_connection_factory=factory,
    )
    return parts


@pytest.fixture
def transcription_error():
    return TranscriptionError("Transcription failed: 500 - upstream down")


@pytest.fixture
def sample_audio_chunk():
    """Generate a 20ms PCM16 chunk (sine wave)."""
    sample_rate = 16000
    samples = 320
    t = np.linspace(0, samples / sample_rate, samples, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = b'\x00' * 640  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


class FakeUpstream:
    """Third-party API stand-in: records calls and answers with canned responses.

    ``chat_reply`` may be a string or a callable taking the request body.
    ``chat_response`` replaces the whole completion body when set.
    """

    def __init__(self):
        self.calls = []
        self.offers = []
        self.status = 200
        self.chat_reply = "Solid answers."
        self.chat_response = None
        self.transcription = "Hola, me llamo Ana."

    def app(self):
        app = web.Application()
        app.router.add_post("/v1/realtime/sessions", self.sessions)
        app.router.add_post("/v1/realtime", self.realtime)
        app.router.add_post("/v1/audio/transcriptions", self.transcriptions)
        app.router.add_post("/v1/chat/completions", self.chat)
        return app

    async def sessions(self, request):
        self.calls.append(("sessions", await request.json()))
        if self.status != 200:
            return web.Response(text="upstream secret detail", status=self.status)
        return web.json_response({"id": "sess_1", "client_secret": {"value": "ek_live", "expires_at": 1}})

    async def realtime(self, request):
        self.offers.append({
            "sdp": await request.text(),
            "model": request.query.get("model"),
            "auth": request.headers.get("Authorization"),
        })
        return web.Response(text="v=0\r\no=- answer\r\n", status=201, content_type="application/sdp")

    async def transcriptions(self, request):
        form = await request.post()
        self.calls.append(("transcriptions", {
            "model": form["model"],
            "filename": form["file"].filename,
            "audio": form["file"].file.read(),
        }))
        if self.status != 200:
            return web.Response(text="upstream secret detail", status=self.status)
        return web.json_response({"text": self.transcription})

    async def chat(self, request):
        body = await request.json()
        self.calls.append(("chat", body))
        if self.status != 200:
            return web.Response(text="upstream secret detail", status=self.status)
        if self.chat_response is not None:
            return web.json_response(self.chat_response)
        reply = self.chat_reply(body) if callable(self.chat_reply) else self.chat_reply
        return web.json_response({"choices": [{"message": {"content": reply}}]})


@pytest.fixture
def fake_upstream():
    return FakeUpstream()


@pytest.fixture
def fake_capture():
    return FakeCapture()


@pytest.fixture
def peer_factory():
    """Creates FakePeerConnections and remembers them in ``peers``."""
    factory = SimpleNamespace(peers=[])

    def create():
        pc = FakePeerConnection()
        factory.peers.append(pc)
        return pc

    factory.create = create
    return factory
