from functools import lru_cache

from config import Settings, get_settings
from database import engine
from services.account_service import AccountManager
from services.account_store import AccountStore
from services.email_service import NotificationDispatcher
from services.password_service import SecretHasher
from services.session_service import SessionManager
from services.token_service import TokenIssuer


@lru_cache
def get_app_settings() -> Settings:
    return get_settings()


@lru_cache
def get_account_store() -> AccountStore:
    return AccountStore(engine)


@lru_cache
def get_session_manager() -> SessionManager:
    settings = get_app_settings()
    return SessionManager(TokenIssuer(settings), settings)


@lru_cache
def get_account_manager() -> AccountManager:
    settings = get_app_settings()
    return AccountManager(
        store=get_account_store(),
        hasher=SecretHasher(settings),
        sessions=get_session_manager(),
        notifications=NotificationDispatcher(settings),
        settings=settings,
    )
