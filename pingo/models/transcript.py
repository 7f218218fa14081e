"""Conversation transcript models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple


class Speaker(Enum):
    """Who produced an utterance. Values match the wire format."""
    USER = "user"
    ASSISTANT = "ai"


@dataclass
class Utterance:
    """One turn of the conversation."""
    speaker: Speaker
    text: str
    timestamp: Optional[datetime] = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.speaker.value, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "Utterance":
        return cls(speaker=Speaker(data["role"]), text=data["text"], timestamp=None)


class Transcript:
    """Ordered sequence of utterances for one session.

    Entries are only ever appended or extended at the tail, so ordering is
    monotonic.
    """

    def __init__(self, utterances: Optional[List[Utterance]] = None):
        self._utterances: List[Utterance] = list(utterances or [])

    def append_assistant_fragment(self, fragment: str) -> bool:
        """Add a streamed assistant text fragment.

        Consecutive fragments are merged into the trailing assistant entry.

        Returns:
            True if the transcript changed
        """
        if not fragment:
            return False

        last = self.last
        if last is not None and last.speaker == Speaker.ASSISTANT:
            last.text = (last.text or "") + fragment
        else:
            self._utterances.append(Utterance(Speaker.ASSISTANT, fragment))
        return True

    def add_user_text(self, text: str) -> None:
        """Record a locally transcribed user utterance.

        A trailing empty user entry (left by a silent push-to-talk) is filled
        in rather than followed by a second user entry.
        """
        last = self.last
        if last is not None and last.speaker == Speaker.USER and last.text == "":
            last.text = text
        else:
            self._utterances.append(Utterance(Speaker.USER, text))

    def clear(self) -> None:
        self._utterances.clear()

    @property
    def last(self) -> Optional[Utterance]:
        return self._utterances[-1] if self._utterances else None

    @property
    def utterances(self) -> Tuple[Utterance, ...]:
        return tuple(self._utterances)

    def to_wire(self) -> List[Dict[str, str]]:
        return [u.to_dict() for u in self._utterances]

    def conversation_text(self) -> str:
        """Render as 'AI: ...' / 'User: ...' lines."""
        lines = []
        for u in self._utterances:
            label = "AI" if u.speaker == Speaker.ASSISTANT else "User"
            lines.append(f"{label}: {u.text}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._utterances)

    def __iter__(self) -> Iterator[Utterance]:
        return iter(tuple(self._utterances))

