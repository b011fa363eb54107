import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Form, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from .config import settings
from .controller import QuizController
from .errors import InvalidActionError
from .globals import session_store, templates
from .models import DifficultyLevel, Mode, Sound
from .sessions import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter()


class Client:
    """The browser session behind a request."""

    def __init__(self, session_id: str, controller: QuizController):
        self.session_id = session_id
        self.controller = controller

    def attach(self, response: Response) -> Response:
        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=self.session_id,
            httponly=True,
            samesite="Lax",
        )
        return response


# --- Dependencies ---
def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return session_id


def get_store() -> SessionStore:
    return session_store


def get_client(
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_store),
) -> Client:
    return Client(*store.get_or_create(session_id))


def parse_level(level: str) -> DifficultyLevel:
    try:
        return DifficultyLevel.from_label(level)
    except KeyError:
        logger.warning(f"Unknown level {level!r}; using {settings.DEFAULT_LEVEL}")
        return DifficultyLevel.from_label(settings.DEFAULT_LEVEL)


def parse_choice(choice: str) -> Optional[Sound]:
    try:
        return Sound.parse(choice)
    except ValueError:
        return None


def home_redirect(client: Client) -> Response:
    return client.attach(RedirectResponse(url="/", status_code=302))


def state_response(client: Client, status_code: int = 200, **extra) -> Response:
    content = client.controller.snapshot()
    content.update(extra)
    return client.attach(JSONResponse(content, status_code=status_code))


def error_response(client: Client, message: str, status_code: int) -> Response:
    return client.attach(JSONResponse({"error": message}, status_code=status_code))


# --- Pages ---


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, client: Client = Depends(get_client)):
    controller = client.controller
    context = {
        "view": controller.snapshot(),
        "levels": [level.label for level in DifficultyLevel],
        "rules": controller.rules,
        "choices": list(Sound),
        "share": controller.share() if controller.mode is Mode.RESULTS else None,
    }
    return client.attach(templates.TemplateResponse(request, "index.html", context))


@router.post("/start", response_class=RedirectResponse)
async def start_page(
    level: str = Form(settings.DEFAULT_LEVEL),
    use_generated: bool = Form(False),
    client: Client = Depends(get_client),
):
    client.controller.begin_session(use_generated, parse_level(level))
    return home_redirect(client)


@router.post("/new-batch", response_class=RedirectResponse)
async def new_batch_page(client: Client = Depends(get_client)):
    controller = client.controller
    controller.begin_session(True, controller.difficulty)
    return home_redirect(client)


@router.post("/answer", response_class=RedirectResponse)
async def answer_page(choice: str = Form(...), client: Client = Depends(get_client)):
    sound = parse_choice(choice)
    if sound is not None:
        try:
            client.controller.choose(sound)
        except InvalidActionError as e:
            logger.info(f"Ignored answer {choice!r}: {e}")
    return home_redirect(client)


@router.post("/home", response_class=RedirectResponse)
async def home_page(client: Client = Depends(get_client)):
    client.controller.return_home()
    return home_redirect(client)


@router.post("/rules", response_class=RedirectResponse)
async def rules_page(client: Client = Depends(get_client)):
    try:
        client.controller.view_rules()
    except InvalidActionError as e:
        logger.info(f"Ignored rules request: {e}")
    return home_redirect(client)


@router.post("/rules/refresh", response_class=RedirectResponse)
async def refresh_rules_page(client: Client = Depends(get_client)):
    await client.controller.refresh_rules()
    return home_redirect(client)


# --- JSON API ---


@router.get("/api/levels")
async def get_levels():
    return [
        {"id": level.label, "index": int(level), "default": level.label == settings.DEFAULT_LEVEL}
        for level in DifficultyLevel
    ]


@router.get("/api/state")
async def get_state(client: Client = Depends(get_client)):
    return state_response(client)


@router.post("/api/start")
async def start_session(
    level: str = Form(settings.DEFAULT_LEVEL),
    use_generated: bool = Form(False),
    client: Client = Depends(get_client),
):
    applied = await client.controller.start_session(use_generated, parse_level(level))
    return state_response(client, applied=applied)


@router.post("/api/new-batch")
async def new_batch(client: Client = Depends(get_client)):
    applied = await client.controller.request_new_batch()
    return state_response(client, applied=applied)


@router.post("/api/answer")
async def submit_answer(choice: str = Form(...), client: Client = Depends(get_client)):
    sound = parse_choice(choice)
    if sound is None:
        return error_response(client, "Invalid choice", 400)
    # InvalidActionError becomes a 409 in the app-level handler
    state = client.controller.submit_answer(sound)
    record = state.history[-1]
    return state_response(client, answer=record.model_dump(mode="json"))


@router.post("/api/home")
async def return_home(client: Client = Depends(get_client)):
    client.controller.return_home()
    return state_response(client)


@router.post("/api/reset")
async def reset_session(
    session_id: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_store),
):
    store.drop(session_id)
    response = JSONResponse({"status": "success"})
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/api/rules")
async def get_rules(client: Client = Depends(get_client)):
    rules = [rule.model_dump() for rule in client.controller.rules]
    return client.attach(JSONResponse(rules))


@router.post("/api/rules/refresh")
async def refresh_rules(client: Client = Depends(get_client)):
    updated = await client.controller.refresh_rules()
    rules = [rule.model_dump() for rule in client.controller.rules]
    return client.attach(JSONResponse({"updated": updated, "rules": rules}))


@router.get("/api/share")
async def get_share(client: Client = Depends(get_client)):
    if client.controller.mode is not Mode.RESULTS:
        return error_response(client, "No finished session to share", 409)
    return client.attach(JSONResponse(client.controller.share().model_dump()))


@router.get("/api/speak")
async def speak(text: str, client: Client = Depends(get_client)):
    clip = await client.controller.speak(text)
    if clip is None:
        return client.attach(Response(status_code=204))
    headers = {"X-Audio-Duration": f"{clip.duration:.3f}"}
    return client.attach(
        Response(content=clip.to_wav(), media_type="audio/wav", headers=headers)
    )
