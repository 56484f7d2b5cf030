import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, UniqueConstraint

from .database import Base


def _new_identity_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdentityRecord(Base):
    __tablename__ = "wallet_identities"
    __table_args__ = (
        UniqueConstraint("wallet_address", name="uq_wallet_identities_wallet_address"),
    )

    id = Column(String(36), primary_key=True, default=_new_identity_id)
    wallet_address = Column(String(44), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
