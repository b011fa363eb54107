import os

from fastapi.templating import Jinja2Templates

from .config import settings
from .controller import QuizController
from .gemini import GeminiCollaborator
from .sessions import SessionStore
from .vocabulary import WordBank
from .word_source import WordSource

templates = Jinja2Templates(directory=os.path.join(os.path.dirname(__file__), "templates"))
word_bank = WordBank(settings.VOCAB_DIR)
collaborator = GeminiCollaborator()


def new_controller() -> QuizController:
    return QuizController(WordSource(word_bank, collaborator), collaborator)


session_store = SessionStore(new_controller)
