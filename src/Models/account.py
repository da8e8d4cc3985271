# src/Models/account.py

from sqlalchemy.orm import declared_attr
from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.sql import func

from src.DB.base_class import Base


class Account(Base):
    """
    Account owning devices, geozones and points of interest.

    Only the display preferences used by the map renderer are stored here;
    blank values fall back to the MAP_* settings.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "accounts"

    AccountID = Column(String(100), primary_key=True)
    Description = Column(String(200), nullable=True)

    # Display preferences
    TimeZone = Column(String(64), nullable=True, doc="IANA timezone, e.g. 'America/Bogota'")
    DateFormat = Column(String(32), nullable=True, doc="strftime date format")
    TimeFormat = Column(String(32), nullable=True, doc="strftime time format")

    IsActive = Column(Boolean, default=True, nullable=False)
    CreatedAt = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Account(AccountID={self.AccountID!r})>"
