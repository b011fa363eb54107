import json
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from google import genai
from google.genai import types
from pydantic import ValidationError

from .config import settings
from .models import RuleCategory, WordItem

logger = logging.getLogger(__name__)


class GenerationCollaborator(ABC):
    """Source of generated practice content.

    Implementations must never raise: a failed call returns an empty list
    (or ``None`` for speech) and the caller falls back to bundled content.
    """

    @abstractmethod
    async def generate_words(
        self, difficulty_label: str, excluded_words: Sequence[str]
    ) -> List[WordItem]:
        pass

    @abstractmethod
    async def generate_rule_examples(self) -> List[RuleCategory]:
        pass

    @abstractmethod
    async def synthesize_speech(self, text: str) -> Optional[bytes]:
        pass


WORD_LIST_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "word": types.Schema(type=types.Type.STRING),
            "sound": types.Schema(
                type=types.Type.STRING, description="One of: 't', 'd', 'id'"
            ),
            "rule": types.Schema(type=types.Type.STRING),
            "exampleSentence": types.Schema(type=types.Type.STRING),
        },
        required=["word", "sound", "rule", "exampleSentence"],
    ),
)

RULES_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "category": types.Schema(type=types.Type.STRING),
            "description": types.Schema(type=types.Type.STRING),
            "examples": types.Schema(
                type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING)
            ),
        },
        required=["category", "description", "examples"],
    ),
)


def build_words_prompt(difficulty_label: str, excluded_words: Sequence[str]) -> str:
    exclusion = ""
    if excluded_words:
        exclusion = f" DO NOT use any of these words: {', '.join(excluded_words)}."
    return (
        "Generate 10 English regular verbs in past tense (ending in -ed) "
        f"suitable for CEFR level {difficulty_label}. Include a mix of the three "
        f"pronunciation sounds: /t/, /d/, and /id/.{exclusion} Return as JSON."
    )


RULES_PROMPT = (
    "Generate a set of English regular verb examples for the three -ed "
    "pronunciation sounds. Return exactly 3 categories: '/t/ Sound', "
    "'/d/ Sound', and '/ɪd/ Sound'. For each category, provide a short "
    "description of when it's used and exactly 8 example words ending in -ed. "
    "Return as JSON array."
)


def parse_word_list(payload: str) -> List[WordItem]:
    """Validate a generated JSON word list, dropping malformed and repeated entries."""
    data = json.loads(payload or "[]")
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array, got {type(data).__name__}")

    items: List[WordItem] = []
    seen = set()
    for entry in data:
        try:
            item = WordItem.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Dropping generated word {entry!r}: {e.error_count()} error(s)")
            continue
        if item.word in seen:
            continue
        seen.add(item.word)
        items.append(item)
    return items


def parse_rule_examples(payload: str) -> List[RuleCategory]:
    data = json.loads(payload or "[]")
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array, got {type(data).__name__}")
    return [RuleCategory.model_validate(entry) for entry in data]


class GeminiCollaborator(GenerationCollaborator):
    """Gemini-backed generator for word lists, rule examples and speech."""

    def __init__(
        self,
        api_key: str = settings.GEMINI_API_KEY,
        text_model: str = settings.TEXT_MODEL,
        speech_model: str = settings.SPEECH_MODEL,
        voice_name: str = settings.VOICE_NAME,
    ):
        self.api_key = api_key
        self.text_model = text_model
        self.speech_model = speech_model
        self.voice_name = voice_name
        self._client: Optional[genai.Client] = None

    @property
    def client(self) -> Optional[genai.Client]:
        if self._client is None and self.api_key:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _generate_json(self, prompt: str, schema: types.Schema) -> Optional[str]:
        if self.client is None:
            logger.warning("No Gemini API key configured; skipping generation.")
            return None
        response = await self.client.aio.models.generate_content(
            model=self.text_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        return response.text

    async def generate_words(
        self, difficulty_label: str, excluded_words: Sequence[str]
    ) -> List[WordItem]:
        try:
            payload = await self._generate_json(
                build_words_prompt(difficulty_label, excluded_words), WORD_LIST_SCHEMA
            )
            if payload is None:
                return []
            words = parse_word_list(payload)
        except Exception as e:
            logger.error(f"Error generating words: {e}")
            return []
        logger.info(f"Generated {len(words)} words for level {difficulty_label}")
        return words

    async def generate_rule_examples(self) -> List[RuleCategory]:
        try:
            payload = await self._generate_json(RULES_PROMPT, RULES_SCHEMA)
            if payload is None:
                return []
            return parse_rule_examples(payload)
        except Exception as e:
            logger.error(f"Error generating examples: {e}")
            return []

    async def synthesize_speech(self, text: str) -> Optional[bytes]:
        if self.client is None:
            logger.warning("No Gemini API key configured; skipping speech.")
            return None
        try:
            response = await self.client.aio.models.generate_content(
                model=self.speech_model,
                contents=f"Pronounce clearly: {text}",
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=types.SpeechConfig(
                        voice_config=types.VoiceConfig(
                            prebuilt_voice_config=types.PrebuiltVoiceConfig(
                                voice_name=self.voice_name
                            )
                        )
                    ),
                ),
            )
        except Exception as e:
            logger.error(f"Error generating speech: {e}")
            return None

        if not response.candidates:
            return None
        content = response.candidates[0].content
        if content is None or not content.parts:
            return None
        inline_data = content.parts[0].inline_data
        if inline_data is None or not inline_data.data:
            return None
        return inline_data.data
