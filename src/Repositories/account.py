# src/Repositories/account.py

from sqlalchemy.orm import Session
from typing import Optional

from src.Models.account import Account
from src.Services.map_events.map_writer import AccountInfo


def get_account_by_id(db: Session, account_id: str) -> Optional[Account]:
    """Active account or None."""
    return (
        db.query(Account)
        .filter(Account.AccountID == account_id, Account.IsActive == True)
        .first()
    )


def to_account_info(account: Optional[Account]) -> Optional[AccountInfo]:
    if account is None:
        return None
    return AccountInfo(
        account_id=account.AccountID,
        timezone=account.TimeZone or "",
        date_format=account.DateFormat or "",
        time_format=account.TimeFormat or "",
    )
