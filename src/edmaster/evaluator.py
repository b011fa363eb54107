from .errors import OutOfRangeError
from .models import AnswerRecord, SessionState, Sound


def evaluate(state: SessionState, choice: Sound) -> SessionState:
    """Score ``choice`` against the current word and return the next state.

    The input state is never modified; callers holding the old snapshot keep
    seeing it unchanged.
    """
    if state.current_index >= len(state.items):
        raise OutOfRangeError(
            f"No word at index {state.current_index} (session has {len(state.items)})"
        )

    current_word = state.items[state.current_index]
    is_correct = choice == current_word.expected_sound
    record = AnswerRecord(word=current_word.word, user_choice=choice, is_correct=is_correct)

    return state.model_copy(
        update={
            "current_index": state.current_index + 1,
            "score": state.score + 1 if is_correct else state.score,
            "history": state.history + (record,),
        }
    )
