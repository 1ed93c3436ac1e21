from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel


# 付款紀錄 (append-only)
class Payment(SQLModel, table=True):
    __tablename__ = "payments"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: str = Field(index=True, unique=True)  # unique 防止重複入帳
    amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    currency: str = Field(default="GMD", max_length=3)
    status: str
    provider_event_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
