import asyncio

import pytest

from edmaster.content import DEFAULT_RULES, DEFAULT_WORDS
from edmaster.controller import QuizController
from edmaster.errors import InvalidActionError
from edmaster.models import DifficultyLevel, Mode, RuleCategory, Sound

from conftest import GENERATED_WORDS


def answer_all(controller, correct=True):
    while controller.mode is Mode.IN_QUIZ:
        expected = controller.state.current_item.expected_sound
        choice = expected if correct else (Sound.D if expected is Sound.T else Sound.T)
        controller.submit_answer(choice)


class TestStartSession:
    def test_static_session(self, controller):
        applied = asyncio.run(controller.start_session(False, DifficultyLevel.A2))
        state = controller.state
        assert applied is True
        assert state.mode is Mode.IN_QUIZ
        assert state.total_questions == 10
        assert (state.current_index, state.score, state.history) == (0, 0, ())
        assert controller.difficulty is DifficultyLevel.A2
        assert controller.seen_words == {item.word for item in DEFAULT_WORDS}

    def test_generated_session(self, controller, fake):
        asyncio.run(controller.start_session(True, DifficultyLevel.C2))
        assert list(controller.state.items) == GENERATED_WORDS
        assert fake.word_calls == [("C2", [])]
        assert "painted" in controller.seen_words

    def test_seen_words_sent_on_next_request(self, controller, fake):
        asyncio.run(controller.start_session(False, DifficultyLevel.B1))
        asyncio.run(controller.start_session(True, DifficultyLevel.B1))
        _, excluded = fake.word_calls[0]
        assert set(excluded) == {item.word for item in DEFAULT_WORDS}

    def test_empty_generation_falls_back_to_bundled_list(self, controller, fake):
        fake.words = []
        asyncio.run(controller.start_session(True, DifficultyLevel.B1))
        assert controller.mode is Mode.IN_QUIZ
        assert list(controller.state.items) == DEFAULT_WORDS
        assert controller.seen_words == set()

    def test_new_session_replaces_state(self, controller):
        asyncio.run(controller.start_session(False, DifficultyLevel.B1))
        controller.submit_answer(Sound.T)
        asyncio.run(controller.request_new_batch())
        assert controller.state.history == ()
        assert controller.state.score == 0
        assert controller.difficulty is DifficultyLevel.B1
        assert list(controller.state.items) == GENERATED_WORDS


class TestStaleResults:
    def test_result_after_return_home_is_dropped(self, controller, fake):
        async def scenario():
            fake.gate = asyncio.Event()
            task = asyncio.create_task(controller.start_session(True, DifficultyLevel.B2))
            await asyncio.sleep(0)
            assert controller.mode is Mode.LOADING
            controller.return_home()
            fake.gate.set()
            return await task

        assert asyncio.run(scenario()) is False
        assert controller.mode is Mode.IDLE
        assert controller.state.items == ()
        assert controller.seen_words == set()

    def test_newer_session_wins(self, controller, fake):
        async def scenario():
            fake.gate = asyncio.Event()
            first = asyncio.create_task(controller.start_session(True, DifficultyLevel.C1))
            await asyncio.sleep(0)
            second = await controller.start_session(False, DifficultyLevel.A1)
            fake.gate.set()
            return await first, second

        first, second = asyncio.run(scenario())
        assert (first, second) == (False, True)
        assert controller.mode is Mode.IN_QUIZ
        assert controller.difficulty is DifficultyLevel.A1
        assert {item.word for item in controller.state.items} <= {w.word for w in DEFAULT_WORDS}

    def test_begin_session_runs_in_background(self, controller):
        async def scenario():
            task = controller.begin_session(False, DifficultyLevel.B1)
            assert controller.mode is Mode.LOADING
            await task

        asyncio.run(scenario())
        assert controller.mode is Mode.IN_QUIZ

    def test_abandoned_background_load_is_dropped_after_restart(self, controller, fake):
        async def scenario():
            fake.gate = asyncio.Event()
            abandoned = controller.begin_session(True, DifficultyLevel.C2)
            await asyncio.sleep(0)
            controller.return_home()
            fake.gate.set()
            current = controller.begin_session(False, DifficultyLevel.A1)
            return await abandoned, await current

        abandoned, current = asyncio.run(scenario())
        assert (abandoned, current) == (False, True)
        assert controller.mode is Mode.IN_QUIZ
        assert controller.difficulty is DifficultyLevel.A1
        generated = {item.word for item in GENERATED_WORDS}
        assert not generated & {item.word for item in controller.state.items}
        assert not generated & controller.seen_words


class TestAnswering:
    def test_submit_outside_quiz_is_rejected(self, controller):
        with pytest.raises(InvalidActionError):
            controller.submit_answer(Sound.T)

    def test_all_correct_reaches_results(self, controller):
        asyncio.run(controller.start_session(False, DifficultyLevel.B1))
        answer_all(controller)
        assert controller.mode is Mode.RESULTS
        assert controller.state.score == 10
        assert controller.state.percentage == 100

    def test_submit_after_finish_is_rejected(self, controller):
        asyncio.run(controller.start_session(False, DifficultyLevel.B1))
        answer_all(controller)
        with pytest.raises(InvalidActionError):
            controller.submit_answer(Sound.T)
        assert len(controller.state.history) == 10

    def test_results_transition_happens_once(self, controller):
        asyncio.run(controller.start_session(False, DifficultyLevel.B1))
        for _ in range(9):
            controller.submit_answer(Sound.D)
            assert controller.sync_mode() is False
        assert controller.sync_mode() is False
        controller.submit_answer(Sound.D)
        assert controller.mode is Mode.RESULTS
        assert controller.sync_mode() is False
        assert controller.sync_mode() is False

    def test_return_home_keeps_history(self, controller):
        asyncio.run(controller.start_session(False, DifficultyLevel.B1))
        controller.submit_answer(Sound.T)
        seen = set(controller.seen_words)
        controller.return_home()
        assert controller.mode is Mode.IDLE
        assert len(controller.state.history) == 1
        assert controller.seen_words == seen


class TestFeedback:
    def test_zero_delay_submits_immediately(self, controller):
        asyncio.run(controller.start_session(False, DifficultyLevel.B1))
        expected = controller.state.current_item.expected_sound
        feedback = controller.choose(expected)
        assert feedback.is_correct
        assert controller.state.current_index == 1
        assert controller.feedback is None

    def test_delayed_advance(self, word_source, fake):
        controller = QuizController(word_source, fake, feedback_delay=0.05)

        async def scenario():
            await controller.start_session(False, DifficultyLevel.B1)
            item = controller.state.current_item
            feedback = controller.choose(item.expected_sound)
            assert feedback.word == item.word
            assert feedback.rule == item.rule
            assert controller.state.current_index == 0
            assert controller.choose(Sound.T) is None
            await asyncio.sleep(0.2)

        asyncio.run(scenario())
        assert controller.state.current_index == 1
        assert controller.state.score == 1
        assert controller.feedback is None

    def test_leaving_cancels_pending_advance(self, word_source, fake):
        controller = QuizController(word_source, fake, feedback_delay=0.05)

        async def scenario():
            await controller.start_session(False, DifficultyLevel.B1)
            controller.choose(Sound.T)
            controller.return_home()
            await asyncio.sleep(0.2)

        asyncio.run(scenario())
        assert controller.mode is Mode.IDLE
        assert controller.state.history == ()
        assert controller.feedback is None

    def test_choose_outside_quiz_is_rejected(self, controller):
        with pytest.raises(InvalidActionError):
            controller.choose(Sound.T)


class TestRules:
    def test_view_rules_from_idle(self, controller):
        controller.view_rules()
        assert controller.mode is Mode.LEARNING
        controller.return_home()
        assert controller.mode is Mode.IDLE

    def test_view_rules_only_from_idle(self, controller):
        asyncio.run(controller.start_session(False, DifficultyLevel.B1))
        with pytest.raises(InvalidActionError):
            controller.view_rules()

    def test_wrong_number_of_categories_is_ignored(self, controller, fake):
        fake.rules = [
            RuleCategory(category="/t/ Sound", description="x", examples=["a"]),
            RuleCategory(category="/d/ Sound", description="y", examples=["b"]),
        ]
        assert asyncio.run(controller.refresh_rules()) is False
        assert controller.rules == DEFAULT_RULES
        assert controller.is_generating_examples is False

    def test_three_categories_replace_rules(self, controller, fake):
        fake.rules = [
            RuleCategory(category=f"/{s}/ Sound", description="d", examples=["x"] * 8)
            for s in ("t", "d", "ɪd")
        ]
        assert asyncio.run(controller.refresh_rules()) is True
        assert controller.rules == fake.rules


class TestSnapshot:
    def test_hides_answer_of_current_word(self, controller):
        asyncio.run(controller.start_session(False, DifficultyLevel.B1))
        view = controller.snapshot()
        assert view["mode"] == "InQuiz"
        assert view["word"] == controller.state.current_item.word
        assert "items" not in view
        assert "percentage" not in view

    def test_results_include_note(self, controller):
        asyncio.run(controller.start_session(False, DifficultyLevel.B1))
        answer_all(controller, correct=False)
        view = controller.snapshot()
        assert view["percentage"] == 0
        assert view["result_note"].startswith("Keep practicing")
