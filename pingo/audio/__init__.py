"""Audio capture, recording and playback."""

from .capture import MicrophoneCapture
from .recorder import ChunkRecorder
from .track import MicrophoneTrack
from .playback import RemoteAudioPlayer

__all__ = [
    'MicrophoneCapture',
    'ChunkRecorder',
    'MicrophoneTrack',
    'RemoteAudioPlayer',
]
