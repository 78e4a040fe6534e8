from sqlmodel import Session, SQLModel, create_engine

from accountmodel.account_model import Account  # noqa: F401  registers the table
from config import DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)


def init_db(bind=None):
    SQLModel.metadata.create_all(bind or engine)


def get_session(bind=None):
    return Session(bind or engine, expire_on_commit=False)
