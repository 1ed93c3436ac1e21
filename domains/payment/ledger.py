import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from domains.payment.model import Payment

logger = logging.getLogger(__name__)


class PaymentLedger:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def record(
        self,
        order_id: str,
        amount: Optional[Decimal],
        currency: Optional[str],
        status: str,
        provider_event_id: Optional[str] = None,
    ) -> bool:
        """
        Append one payment row. False when the order is already recorded.
        """
        with Session(self.engine) as session:
            # guard 擋過了，但 DB unique 才是最後防線
            existing = session.exec(
                select(Payment).where(Payment.order_id == order_id)
            ).first()
            if existing:
                logger.warning(f" ⚠️ [Ledger] Order {order_id} already recorded.")
                return False

            session.add(
                Payment(
                    order_id=order_id,
                    amount=amount if amount is not None else Decimal("0"),
                    currency=currency or "GMD",
                    status=status,
                    provider_event_id=provider_event_id,
                )
            )
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.warning(f" ⚠️ [Ledger] Order {order_id} recorded concurrently.")
                return False

        logger.info(f" 📒 [Ledger] Recorded payment for {order_id}.")
        return True

    def get(self, order_id: str) -> Optional[Payment]:
        with Session(self.engine) as session:
            return session.exec(
                select(Payment).where(Payment.order_id == order_id)
            ).first()
