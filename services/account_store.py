import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from accountmodel.account_model import Account, OTPPurpose
from database import engine as default_engine
from database import get_session
from errors import ConflictError, DependencyError

logger = logging.getLogger("auth_service_api.store")

STORE_UNAVAILABLE_MSG = "account store unavailable"
USER_EXISTS_MSG = "user already exist"


class AccountStore:
    """Persistence for Account records, keyed by id and by email."""

    def __init__(self, engine=None):
        self.engine = engine or default_engine

    async def find_by_email(self, email: str) -> Account | None:
        try:
            with get_session(self.engine) as session:
                return session.exec(select(Account).where(Account.email == email)).first()
        except SQLAlchemyError as e:
            logger.exception("Account lookup by email failed")
            raise DependencyError(STORE_UNAVAILABLE_MSG) from e

    async def find_by_id(self, account_id: str) -> Account | None:
        try:
            with get_session(self.engine) as session:
                return session.get(Account, account_id)
        except SQLAlchemyError as e:
            logger.exception(f"Account lookup failed for id={account_id}")
            raise DependencyError(STORE_UNAVAILABLE_MSG) from e

    async def save(self, account: Account) -> Account:
        """Insert or overwrite the record. The last write for an id wins."""
        try:
            with get_session(self.engine) as session:
                merged = session.merge(account)
                session.commit()
                return merged
        except IntegrityError as e:
            # Unique index on email lost a registration race
            logger.warning(f"Duplicate account rejected for email={account.email}")
            raise ConflictError(USER_EXISTS_MSG) from e
        except SQLAlchemyError as e:
            logger.exception(f"Saving account id={account.id} failed")
            raise DependencyError(STORE_UNAVAILABLE_MSG) from e

    async def save_if_otp_unchanged(self, account: Account, purpose: OTPPurpose, code: str) -> bool:
        """
        Write the account only if the stored OTP for `purpose` is still `code`.

        Returns False when another request has already replaced or cleared it.
        """
        values = {name: getattr(account, name) for name in Account.model_fields if name != "id"}
        stmt = (
            update(Account)
            .where(Account.id == account.id)
            .where(getattr(Account, f"{purpose}_otp") == code)
            .values(values)
        )
        try:
            with get_session(self.engine) as session:
                result = session.exec(stmt)
                session.commit()
                return (result.rowcount or 0) == 1
        except SQLAlchemyError as e:
            logger.exception(f"Saving account id={account.id} failed")
            raise DependencyError(STORE_UNAVAILABLE_MSG) from e

    async def clear_expired_otps(self, now: datetime) -> int:
        """Clear every OTP whose expiry is before `now`. Returns the rows touched."""
        rows = 0
        try:
            with get_session(self.engine) as session:
                for purpose in ("verify", "reset"):
                    code_col = f"{purpose}_otp"
                    expiry_col = f"{purpose}_otp_expires_at"
                    stmt = (
                        update(Account)
                        .where(getattr(Account, expiry_col) < now)
                        .values({code_col: "", expiry_col: None})
                    )
                    result = session.exec(stmt)
                    rows += result.rowcount or 0
                session.commit()
        except SQLAlchemyError as e:
            logger.exception("Expired OTP cleanup failed")
            raise DependencyError(STORE_UNAVAILABLE_MSG) from e
        return rows
