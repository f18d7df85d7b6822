from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./chat.sqlite"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Login collaborator: a shared passcode grants a session.
    PASSCODE: str = "changeme"
    SESSION_COOKIE_NAME: str = "parlor_session"
    SESSION_MAX_AGE_SECONDS: int = 86_400  # 1 day

    # Redis session storage
    # Set to empty string to disable Redis (sessions are then kept in-process)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Used to namespace Redis keys when several deployments share a Redis.
    SERVER_DOMAIN: str = "localhost"

    # Messages and reactions
    MAX_MESSAGE_LENGTH: int = 2000
    TOGGLE_MAX_ATTEMPTS: int = 3

    # Channel names are not unique unless this is switched on.
    UNIQUE_CHANNEL_NAMES: bool = False

    # When true, edit/delete/reaction events go to every connection instead of
    # only the subscribers of the message's channel.
    GLOBAL_MUTATION_EVENTS: bool = False

    model_config = {"env_file": ".env"}


settings = Settings()
