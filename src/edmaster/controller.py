import asyncio
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from .audio import AudioPlayer, Clip
from .config import settings
from .content import DEFAULT_RULES, result_note
from .errors import InvalidActionError
from .evaluator import evaluate
from .gemini import GenerationCollaborator
from .models import DifficultyLevel, Feedback, Mode, RuleCategory, SessionState, Sound
from .share import ShareMessage, build_share
from .word_source import WordSource

logger = logging.getLogger(__name__)

RULE_CATEGORY_COUNT = 3


class QuizController:
    """Owns one user's quiz: screen mode, session state and seen words.

    Every operation runs on the event loop thread. Generation calls are the
    only suspension points; results that arrive after the user has moved on
    are dropped by comparing the generation token minted at request time.
    """

    def __init__(
        self,
        word_source: WordSource,
        collaborator: GenerationCollaborator,
        feedback_delay: float = settings.FEEDBACK_DELAY_SECONDS,
        difficulty: Optional[DifficultyLevel] = None,
    ):
        self.word_source = word_source
        self.collaborator = collaborator
        self.player = AudioPlayer(collaborator)
        self.feedback_delay = feedback_delay

        self.state = SessionState()
        self.seen_words: Set[str] = set()
        self.difficulty = difficulty or DifficultyLevel.from_label(settings.DEFAULT_LEVEL)
        self.use_generated = False
        self.rules: List[RuleCategory] = list(DEFAULT_RULES)
        self.is_generating_examples = False
        self.feedback: Optional[Feedback] = None

        self._token = 0
        self._advance: Optional[asyncio.TimerHandle] = None
        self._loading: Optional[asyncio.Task] = None

    @property
    def mode(self) -> Mode:
        return self.state.mode

    def _set_mode(self, mode: Mode):
        self.state = self.state.model_copy(update={"mode": mode})

    # --- Session lifecycle ---

    def _enter_loading(self, use_generated: bool, difficulty: DifficultyLevel) -> int:
        self._cancel_feedback()
        self._token += 1
        self.use_generated = use_generated
        self.difficulty = difficulty
        self._set_mode(Mode.LOADING)
        return self._token

    async def start_session(self, use_generated: bool, difficulty: DifficultyLevel) -> bool:
        """Load a batch and enter the quiz.

        Returns False when the batch arrived too late to be used.
        """
        token = self._enter_loading(use_generated, difficulty)
        return await self._load(token, use_generated, difficulty)

    def begin_session(self, use_generated: bool, difficulty: DifficultyLevel) -> asyncio.Task:
        """Enter Loading now and fetch the batch in the background."""
        token = self._enter_loading(use_generated, difficulty)
        self._loading = asyncio.create_task(self._load(token, use_generated, difficulty))
        return self._loading

    async def _load(self, token: int, use_generated: bool, difficulty: DifficultyLevel) -> bool:
        generator = self.word_source.create(use_generated)
        batch = await generator.generate(difficulty, frozenset(self.seen_words))

        if token != self._token or self.state.mode is not Mode.LOADING:
            logger.info(f"Discarding stale batch for level {difficulty.label}")
            return False

        source = "generated" if use_generated else "static"
        if batch:
            self.seen_words.update(item.word for item in batch)
        else:
            logger.warning(f"Empty {source} batch for level {difficulty.label}; using bundled list")
            batch = self.word_source.fallback_batch()
            source = "fallback"

        self.state = SessionState.fresh(batch)
        logger.info(
            f"New session [Source: {source}, Level: {difficulty.label}, Words: {len(batch)}]"
        )
        self.sync_mode()
        return True

    async def request_new_batch(self, use_generated: bool = True) -> bool:
        return await self.start_session(use_generated, self.difficulty)

    def return_home(self):
        self._cancel_feedback()
        self._set_mode(Mode.IDLE)

    def view_rules(self):
        if self.state.mode is not Mode.IDLE:
            raise InvalidActionError(f"Cannot open rules from {self.state.mode.value}")
        self._set_mode(Mode.LEARNING)

    # --- Answering ---

    def _check_answerable(self):
        if self.state.mode is not Mode.IN_QUIZ:
            raise InvalidActionError(f"No quiz in progress (mode {self.state.mode.value})")
        if self.state.is_finished:
            raise InvalidActionError("All questions have been answered")

    def submit_answer(self, choice: Sound) -> SessionState:
        self._check_answerable()
        self._cancel_feedback()
        self.state = evaluate(self.state, choice)
        self.sync_mode()
        return self.state

    def sync_mode(self) -> bool:
        """Move to Results once every word is answered. True only on the move."""
        if self.state.mode is Mode.IN_QUIZ and self.state.is_finished:
            self._set_mode(Mode.RESULTS)
            logger.info(
                f"Session finished: {self.state.score}/{self.state.total_questions} "
                f"at level {self.difficulty.label}"
            )
            return True
        return False

    def choose(self, choice: Sound) -> Optional[Feedback]:
        """Show feedback for ``choice`` and submit it after the feedback delay.

        Returns None when feedback for this question is already showing.
        """
        if self.feedback is not None:
            return None
        self._check_answerable()

        item = self.state.current_item
        self.feedback = Feedback(
            word=item.word,
            choice=choice,
            expected_sound=item.expected_sound,
            is_correct=choice == item.expected_sound,
            rule=item.rule,
            example_sentence=item.example_sentence,
        )
        feedback = self.feedback
        key = (self._token, self.state.current_index)
        if self.feedback_delay <= 0:
            self._advance_after_feedback(key)
        else:
            loop = asyncio.get_running_loop()
            self._advance = loop.call_later(
                self.feedback_delay, self._advance_after_feedback, key
            )
        return feedback

    def _advance_after_feedback(self, key: Tuple[int, int]):
        self._advance = None
        feedback = self.feedback
        if feedback is None or self.state.mode is not Mode.IN_QUIZ:
            return
        if key != (self._token, self.state.current_index):
            return
        self.submit_answer(feedback.choice)

    def _cancel_feedback(self):
        if self._advance is not None:
            self._advance.cancel()
            self._advance = None
        self.feedback = None

    # --- Rules, audio, sharing ---

    async def refresh_rules(self) -> bool:
        """Replace the rule examples with generated ones if exactly three come back."""
        if self.is_generating_examples:
            return False
        self.is_generating_examples = True
        try:
            rules = await self.collaborator.generate_rule_examples()
        except Exception as e:
            logger.error(f"Rule example generation failed: {e}")
            rules = []
        finally:
            self.is_generating_examples = False

        if len(rules) != RULE_CATEGORY_COUNT:
            logger.warning(f"Ignoring {len(rules)} generated rule categories")
            return False
        self.rules = list(rules)
        return True

    async def speak(self, text: str) -> Optional[Clip]:
        return await self.player.play(text)

    def share(self) -> ShareMessage:
        return build_share(self.state, self.difficulty)

    def snapshot(self) -> Dict[str, Any]:
        state = self.state
        current = state.current_item if state.mode is Mode.IN_QUIZ else None
        data: Dict[str, Any] = {
            "mode": state.mode.value,
            "level": self.difficulty.label,
            "use_generated": self.use_generated,
            "current_index": state.current_index,
            "total_questions": state.total_questions,
            "score": state.score,
            "word": current.word if current else None,
            "feedback": self.feedback.model_dump(mode="json") if self.feedback else None,
            "history": [record.model_dump(mode="json") for record in state.history],
            "is_speaking": self.player.is_playing,
            "is_generating_examples": self.is_generating_examples,
        }
        if state.mode is Mode.RESULTS:
            data["percentage"] = state.percentage
            data["result_note"] = result_note(state.percentage)
        return data
