import os


class Settings:
    PROJECT_NAME: str = "edmaster"
    DEBUG: bool = os.environ.get("DEBUG", "").lower() in ("1", "true", "yes")
    LOG_DIR: str = os.environ.get("LOG_DIR", "log")
    LOG_FILE: str = "edmaster.log"
    VOCAB_DIR: str = os.environ.get("VOCAB_DIR", "vocabulary")
    BATCH_SIZE: int = 10
    MIN_POOL_SIZE: int = 5
    FEEDBACK_DELAY_SECONDS: float = 2.5
    DEFAULT_LEVEL: str = "B1"
    SESSION_COOKIE_NAME: str = "edmaster_session_id"
    SESSION_TIMEOUT_MINUTES: int = 120
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")

    # --- Gemini ---
    GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY", os.environ.get("API_KEY", ""))
    TEXT_MODEL: str = os.environ.get("TEXT_MODEL", "gemini-3-flash-preview")
    SPEECH_MODEL: str = os.environ.get("SPEECH_MODEL", "gemini-2.5-flash-preview-tts")
    VOICE_NAME: str = "Kore"
    SAMPLE_RATE: int = 24000
    AUDIO_CHANNELS: int = 1

    # --- Sharing ---
    MAIL_COMPOSE_URL: str = "https://mail.google.com/mail/"
    SHARE_SUBJECT: str = "My English Pronunciation Practice"


settings = Settings()
