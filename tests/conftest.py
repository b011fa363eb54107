import asyncio
import os
import random
from typing import List, Optional, Sequence

import pytest

from edmaster.controller import QuizController
from edmaster.gemini import GenerationCollaborator
from edmaster.models import RuleCategory, WordItem
from edmaster.vocabulary import WordBank
from edmaster.word_source import WordSource

BUNDLED_VOCAB_DIR = os.path.join(os.path.dirname(__file__), "..", "vocabulary")

GENERATED_WORDS = [
    WordItem(word="jumped", sound="t", rule="Ends with voiceless /p/", exampleSentence="The cat jumped."),
    WordItem(word="hugged", sound="d", rule="Ends with voiced /g/", exampleSentence="She hugged him."),
    WordItem(word="painted", sound="id", rule="Ends with /t/", exampleSentence="We painted the fence."),
    WordItem(word="kissed", sound="t", rule="Ends with voiceless /s/", exampleSentence="He kissed her hand."),
    WordItem(word="lived", sound="d", rule="Ends with voiced /v/", exampleSentence="They lived in Rome."),
    WordItem(word="decided", sound="id", rule="Ends with /d/", exampleSentence="I decided to stay."),
    WordItem(word="washed", sound="t", rule="Ends with voiceless /ʃ/", exampleSentence="She washed the car."),
    WordItem(word="called", sound="d", rule="Ends with voiced /l/", exampleSentence="Mum called twice."),
    WordItem(word="shouted", sound="id", rule="Ends with /t/", exampleSentence="The crowd shouted."),
    WordItem(word="named", sound="d", rule="Ends with voiced /m/", exampleSentence="They named the dog Rex."),
]


class FakeCollaborator(GenerationCollaborator):
    """Scripted generator. Set ``gate`` to an asyncio.Event to hold calls open."""

    def __init__(self, words=None, rules=None, speech: Optional[bytes] = None):
        self.words: List[WordItem] = list(words or [])
        self.rules: List[RuleCategory] = list(rules or [])
        self.speech = speech
        self.word_calls = []
        self.speech_calls = []
        self.gate: Optional[asyncio.Event] = None

    async def _wait(self):
        if self.gate is not None:
            await self.gate.wait()

    async def generate_words(self, difficulty_label: str, excluded_words: Sequence[str]):
        self.word_calls.append((difficulty_label, list(excluded_words)))
        await self._wait()
        return list(self.words)

    async def generate_rule_examples(self):
        await self._wait()
        return list(self.rules)

    async def synthesize_speech(self, text: str):
        self.speech_calls.append(text)
        await self._wait()
        return self.speech


@pytest.fixture
def word_bank(tmp_path):
    bank = WordBank(str(tmp_path / "no-such-dir"))
    bank.load_all()
    return bank


@pytest.fixture
def fake():
    return FakeCollaborator(words=GENERATED_WORDS)


@pytest.fixture
def word_source(word_bank, fake):
    return WordSource(word_bank, fake, rng=random.Random(7))


@pytest.fixture
def controller(word_source, fake):
    return QuizController(word_source, fake, feedback_delay=0)
