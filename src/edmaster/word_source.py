import logging
import random
from abc import ABC, abstractmethod
from typing import AbstractSet, Optional, Tuple

from .config import settings
from .gemini import GenerationCollaborator
from .models import DifficultyLevel, WordItem
from .vocabulary import WordBank

logger = logging.getLogger(__name__)

Batch = Tuple[WordItem, ...]


# --- Strategy Pattern: Batch Generators ---
class BatchGenerator(ABC):
    """Abstract Base Class for the ways a quiz batch can be produced."""

    @abstractmethod
    async def generate(
        self, difficulty: DifficultyLevel, excluding: AbstractSet[str]
    ) -> Batch:
        pass


class StaticBatchGenerator(BatchGenerator):
    """Random subset of the bundled list, skipping words already seen."""

    def __init__(
        self,
        word_bank: WordBank,
        rng: Optional[random.Random] = None,
        batch_size: int = settings.BATCH_SIZE,
        min_pool_size: int = settings.MIN_POOL_SIZE,
    ):
        self.word_bank = word_bank
        self.rng = rng or random.Random()
        self.batch_size = batch_size
        self.min_pool_size = min_pool_size

    def pick(self, excluding: AbstractSet[str]) -> Batch:
        all_words = self.word_bank.get_words()
        pool = [item for item in all_words if item.word not in excluding]
        if len(pool) < self.min_pool_size:
            # Repeats are better than an empty quiz
            pool = all_words
        return tuple(self.rng.sample(pool, min(self.batch_size, len(pool))))

    async def generate(
        self, difficulty: DifficultyLevel, excluding: AbstractSet[str]
    ) -> Batch:
        return self.pick(excluding)


class GeneratedBatchGenerator(BatchGenerator):
    """Fresh words from the generation collaborator; empty on failure."""

    def __init__(self, collaborator: GenerationCollaborator):
        self.collaborator = collaborator

    async def generate(
        self, difficulty: DifficultyLevel, excluding: AbstractSet[str]
    ) -> Batch:
        try:
            words = await self.collaborator.generate_words(
                difficulty.label, sorted(excluding)
            )
        except Exception as e:
            logger.error(f"Word generation failed for level {difficulty.label}: {e}")
            return ()
        return tuple(words or ())


class WordSource:
    """Chooses between bundled and generated batches."""

    def __init__(
        self,
        word_bank: WordBank,
        collaborator: GenerationCollaborator,
        rng: Optional[random.Random] = None,
        batch_size: int = settings.BATCH_SIZE,
        min_pool_size: int = settings.MIN_POOL_SIZE,
    ):
        self.word_bank = word_bank
        self.static = StaticBatchGenerator(word_bank, rng, batch_size, min_pool_size)
        self.generated = GeneratedBatchGenerator(collaborator)

    def create(self, use_generated: bool) -> BatchGenerator:
        return self.generated if use_generated else self.static

    def static_batch(self, excluding: AbstractSet[str] = frozenset()) -> Batch:
        return self.static.pick(excluding)

    async def generated_batch(
        self, difficulty: DifficultyLevel, excluding: AbstractSet[str] = frozenset()
    ) -> Batch:
        return await self.generated.generate(difficulty, excluding)

    def fallback_batch(self) -> Batch:
        """The whole bundled list in its bundled order."""
        return tuple(self.word_bank.get_words())
