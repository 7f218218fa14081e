"""Static scenario and language catalogue."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..models.scenario import Scenario, Language, ScenarioSelection


@dataclass(frozen=True)
class LanguageConfig:
    """Vocabulary used to seed a language session."""
    code: str
    name: Language
    native_name: str
    greeting: str
    basic_words: List[str]
    numbers: List[str]
    colors: List[str]


@dataclass(frozen=True)
class ScenarioConfig:
    """Prompt material for one practice mode."""
    id: Scenario
    name: str
    description: str
    intro: str
    flow: List[str]
    rules: List[str]
    context: str  # Short description used when summarizing


LANGUAGES: Dict[Language, LanguageConfig] = {
    Language.ENGLISH: LanguageConfig(
        code='en',
        name=Language.ENGLISH,
        native_name='English',
        greeting='Hello!',
        basic_words=['Hello', 'Goodbye', 'Please', 'Thank you', 'Yes', 'No'],
        numbers=['One', 'Two', 'Three', 'Four', 'Five'],
        colors=['Red', 'Blue', 'Green', 'Yellow', 'Black'],
    ),
    Language.SPANISH: LanguageConfig(
        code='es',
        name=Language.SPANISH,
        native_name='Español',
        greeting='¡Hola!',
        basic_words=['Hola', 'Adiós', 'Por favor', 'Gracias', 'Sí', 'No'],
        numbers=['Uno', 'Dos', 'Tres', 'Cuatro', 'Cinco'],
        colors=['Rojo', 'Azul', 'Verde', 'Amarillo', 'Negro'],
    ),
    Language.MANDARIN: LanguageConfig(
        code='zh',
        name=Language.MANDARIN,
        native_name='中文',
        greeting='你好！',
        basic_words=['你好', '再见', '请', '谢谢', '是', '不'],
        numbers=['一', '二', '三', '四', '五'],
        colors=['红色', '蓝色', '绿色', '黄色', '黑色'],
    ),
    Language.ARABIC: LanguageConfig(
        code='ar',
        name=Language.ARABIC,
        native_name='العربية',
        greeting='مرحبا!',
        basic_words=['مرحبا', 'وداعا', 'من فضلك', 'شكرا', 'نعم', 'لا'],
        numbers=['واحد', 'اثنان', 'ثلاثة', 'أربعة', 'خمسة'],
        colors=['أحمر', 'أزرق', 'أخضر', 'أصفر', 'أسود'],
    ),
}

VOICES: Dict[Language, str] = {
    Language.ENGLISH: 'alloy',
    Language.SPANISH: 'echo',
    Language.MANDARIN: 'shimmer',
    Language.ARABIC: 'coral',
}

SCENARIOS: Dict[Scenario, ScenarioConfig] = {
    Scenario.JOB_INTERVIEW: ScenarioConfig(
        id=Scenario.JOB_INTERVIEW,
        name='Job Interview',
        description='Practice technical interviews',
        intro=('You are a friendly job interviewer. Your goal is to get to know the candidate '
               'through natural conversation. ALWAYS start with a simple greeting.'),
        flow=[
            'Start with a simple greeting: "Hello!" or "Hi there!" or "Good morning!"',
            'Learn about their current/recent work (listen to what they actually say)',
            'Ask about their experience in that field',
            "Understand what they're looking for in their next role",
            'Ask behavioral questions relevant to their background',
            'Give them a chance to ask questions about the role/company',
        ],
        rules=[
            'ALWAYS begin with a simple greeting like "Hello!" - never start with a confirmation',
            'NEVER assume they work in tech - respond to what they actually tell you',
            'Match your questions to THEIR actual background',
            'Keep it conversational, not interrogational',
            'One question at a time',
            'If they mention inappropriate behavior, redirect professionally',
        ],
        context='job interview practice session',
    ),
    Scenario.LANGUAGE_TUTOR: ScenarioConfig(
        id=Scenario.LANGUAGE_TUTOR,
        name='Language Tutor',
        description='Learn a new language',
        intro=('You are a friendly language tutor. Start VERY simple and build up gradually. '
               'ALWAYS begin with a simple greeting in the target language.'),
        flow=[
            'Start with a simple greeting in the target language',
            'Basic greetings and how-are-you phrases',
            'Simple introductions: my name is..., I am from...',
            'Numbers 1-10, then colors',
            'Basic questions: what is your name? where are you from?',
            'Simple conversations about family, food, hobbies',
        ],
        rules=[
            'ALWAYS begin with a simple greeting - never start with a confirmation',
            'Start with ONE word/phrase at a time',
            'Let them repeat it back',
            'Gently correct pronunciation if needed',
            'Give lots of encouragement',
            "If they're struggling, go slower and simpler",
            "Only move to next topic when they're comfortable",
        ],
        context='language learning session',
    ),
    Scenario.FOUNDER_MOCK: ScenarioConfig(
        id=Scenario.FOUNDER_MOCK,
        name='Founder Mock',
        description='Pitch to investors',
        intro=('You are a skeptical but fair investor. Your job is to evaluate their startup idea. '
               'ALWAYS start with a simple professional greeting.'),
        flow=[
            'Start with a simple professional greeting: "Good morning!" or "Hello!"',
            'Listen to their pitch completely',
            "Ask about the problem they're solving",
            "Understand their solution and how it's different",
            'Ask about market size and competition',
            'Dig into business model and revenue',
            'Question their traction and growth plans',
            'Challenge assumptions respectfully',
        ],
        rules=[
            'ALWAYS begin with a simple greeting - never start with a confirmation',
            'Be skeptical but not dismissive',
            'Ask tough questions: "How do you know customers will pay for this?"',
            'Reference only what they actually tell you',
            'Push for specifics: "What are your actual numbers?"',
            'One focused question at a time',
        ],
        context='startup pitch practice session',
    ),
}


def get_scenario_config(scenario: Scenario) -> ScenarioConfig:
    return SCENARIOS[scenario]


def get_language_config(language: Language) -> LanguageConfig:
    return LANGUAGES[language]


def voice_for(language: Optional[Language]) -> str:
    return VOICES[language or Language.ENGLISH]


def _start_phrase(config: ScenarioConfig, language: Optional[Language]) -> str:
    if config.id == Scenario.LANGUAGE_TUTOR:
        greeting = get_language_config(language).greeting if language else 'Hola'
        return f'Let\'s start super simple - can you say "{greeting}" back to me?'

    if config.id == Scenario.JOB_INTERVIEW:
        phrase = "Let's start simple - tell me about yourself and what you currently do."
    else:
        phrase = 'I have about 10 minutes - tell me about your startup idea.'
    if language:
        phrase += f' (Please respond in {language.value})'
    return phrase


def format_instructions(scenario: Scenario, language: Optional[Language] = None) -> str:
    """Render the full prompt for a scenario, optionally in a target language."""
    config = get_scenario_config(scenario)
    sections = [config.intro, f'START: "{_start_phrase(config, language)}"']

    if language:
        lang = get_language_config(language)
        if scenario == Scenario.LANGUAGE_TUTOR:
            sections.append(
                f'LANGUAGE: {lang.name.value} ({lang.native_name})\n'
                f'BASIC WORDS: {", ".join(lang.basic_words)}\n'
                f'NUMBERS: {", ".join(lang.numbers)}\n'
                f'COLORS: {", ".join(lang.colors)}'
            )
        else:
            activity = 'interview' if scenario == Scenario.JOB_INTERVIEW else 'pitch session'
            sections.append(
                f'LANGUAGE: Please conduct this {activity} in {lang.name.value} ({lang.native_name}).'
            )

    flow = '\n'.join(f'{i}. {step}' for i, step in enumerate(config.flow, 1))
    sections.append(f'{scenario.value.upper()} FLOW:\n{flow}')
    rules = '\n'.join(f'- {rule}' for rule in config.rules)
    sections.append(f'RULES:\n{rules}')
    return '\n\n'.join(sections)


def build_session_instructions(selection: ScenarioSelection) -> str:
    """Instructions text sent with session.update."""
    language = selection.effective_language.value
    header = (
        f'CRITICAL: You must speak EXCLUSIVELY in {language}. '
        f'You are conducting a {selection.scenario.value}. '
        f'Do not use any other language under any circumstances. '
        f'Your first message should be a simple greeting in {language} '
        f'asking the user to introduce themselves.'
    )
    return f'{header}\n\n{format_instructions(selection.scenario, selection.language)}'


def scenario_context(scenario: Scenario) -> str:
    return get_scenario_config(scenario).context
