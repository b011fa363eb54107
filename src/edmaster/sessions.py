import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

from .config import settings
from .controller import QuizController

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory map of cookie id to controller, expiring idle entries."""

    def __init__(
        self,
        controller_factory: Callable[[], QuizController],
        timeout_minutes: int = settings.SESSION_TIMEOUT_MINUTES,
    ):
        self.controller_factory = controller_factory
        self.timeout = timedelta(minutes=timeout_minutes)
        self._sessions: Dict[str, Tuple[QuizController, datetime]] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: Optional[str]) -> Optional[QuizController]:
        if not session_id or session_id not in self._sessions:
            return None
        controller, last_seen = self._sessions[session_id]
        now = datetime.now()
        if now - last_seen > self.timeout:
            del self._sessions[session_id]
            logger.info(f"Session expired: {session_id}")
            return None
        self._sessions[session_id] = (controller, now)
        return controller

    def create(self) -> Tuple[str, QuizController]:
        session_id = str(uuid.uuid4())
        controller = self.controller_factory()
        self._sessions[session_id] = (controller, datetime.now())
        logger.info(f"New browser session: {session_id}")
        return session_id, controller

    def get_or_create(self, session_id: Optional[str]) -> Tuple[str, QuizController]:
        controller = self.get(session_id)
        if controller is not None:
            return session_id, controller
        return self.create()

    def drop(self, session_id: Optional[str]):
        if session_id:
            self._sessions.pop(session_id, None)
