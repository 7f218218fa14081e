"""Scenario selection models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Scenario(Enum):
    """Practice modes offered to the user."""
    JOB_INTERVIEW = "jobInterview"
    LANGUAGE_TUTOR = "languageTutor"
    FOUNDER_MOCK = "founderMock"


class Language(Enum):
    """Target languages a session can be conducted in."""
    ENGLISH = "English"
    SPANISH = "Spanish"
    MANDARIN = "Mandarin"
    ARABIC = "Arabic"


@dataclass(frozen=True)
class ScenarioSelection:
    """The practice mode chosen for one session."""
    scenario: Scenario
    language: Optional[Language] = None

    @property
    def effective_language(self) -> Language:
        return self.language or Language.ENGLISH
