from urllib.parse import quote

from pydantic import BaseModel

from .config import settings
from .models import DifficultyLevel, SessionState

APP_NAME = "ED-Master Pro"


class ShareMessage(BaseModel):
    subject: str
    body: str
    url: str


def compose_summary(state: SessionState, level: DifficultyLevel) -> str:
    """Plain-text practice report: score, level and every answered word."""
    score_text = (
        f"I scored {state.score}/{state.total_questions} on {APP_NAME} "
        f"(Level {level.label})!"
    )
    word_list = "\n".join(
        f"{'✓' if record.is_correct else '✗'} {record.word:<15} - "
        f"Predicted: /{record.user_choice.value}/"
        for record in state.history
    )
    return (
        "Hi,\n\n"
        "I just finished a pronunciation practice session for English -ed endings.\n\n"
        f"Summary: {score_text}\n\n"
        f"Word List:\n{word_list}\n\n"
        "Keep practicing!\n"
        f"Sent from {APP_NAME}"
    )


def mail_compose_url(subject: str, body: str) -> str:
    return (
        f"{settings.MAIL_COMPOSE_URL}?view=cm&fs=1"
        f"&su={quote(subject, safe='')}&body={quote(body, safe='')}"
    )


def build_share(state: SessionState, level: DifficultyLevel) -> ShareMessage:
    body = compose_summary(state, level)
    subject = settings.SHARE_SUBJECT
    return ShareMessage(subject=subject, body=body, url=mail_compose_url(subject, body))
