from dataclasses import replace
from decimal import Decimal
from typing import Sequence

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.payment_repo import PaymentRepo
from app.domain.entities.payment import CustomerPayment, PaymentStatus
from app.infrastructure.db.errors import from_db_datetime, persistence_errors, to_db_datetime
from app.infrastructure.db.tables import customer_payments


class PaymentRepoSQL(PaymentRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_pending(self, payment: CustomerPayment) -> CustomerPayment:
        with persistence_errors("create pending payment"):
            stmt = insert(customer_payments).values(
                booking_id=payment.booking_id,
                customer_id=payment.customer_id,
                agent_id=payment.agent_id,
                stripe_payment_intent_id=payment.stripe_payment_intent_id,
                amount=payment.amount,
                currency=payment.currency,
                status=PaymentStatus.PENDING.value,
                created_at=to_db_datetime(payment.created_at),
                updated_at=to_db_datetime(payment.updated_at),
            )
            result = await self._session.execute(stmt)
        return replace(payment, id=result.inserted_primary_key[0], status=PaymentStatus.PENDING)

    async def find_by_payment_intent(
        self,
        stripe_payment_intent_id: str,
    ) -> CustomerPayment | None:
        with persistence_errors("load payment"):
            stmt = select(customer_payments).where(
                customer_payments.c.stripe_payment_intent_id == stripe_payment_intent_id
            )
            result = await self._session.execute(stmt)
            row = result.mappings().first()
        return self._map_payment(row) if row else None

    async def update_status(
        self,
        stripe_payment_intent_id: str,
        status: PaymentStatus,
    ) -> CustomerPayment | None:
        with persistence_errors("update payment status"):
            stmt = (
                update(customer_payments)
                .where(customer_payments.c.stripe_payment_intent_id == stripe_payment_intent_id)
                .values(status=status.value)
            )
            await self._session.execute(stmt)
        return await self.find_by_payment_intent(stripe_payment_intent_id)

    async def list_by_booking(self, booking_id: int) -> Sequence[CustomerPayment]:
        with persistence_errors("list booking payments"):
            stmt = (
                select(customer_payments)
                .where(customer_payments.c.booking_id == booking_id)
                .order_by(customer_payments.c.id)
            )
            result = await self._session.execute(stmt)
            rows = result.mappings().all()
        return [self._map_payment(row) for row in rows]

    def _map_payment(self, row) -> CustomerPayment:
        return CustomerPayment(
            id=row["id"],
            booking_id=row.get("booking_id"),
            customer_id=row.get("customer_id"),
            agent_id=row.get("agent_id"),
            stripe_payment_intent_id=row.get("stripe_payment_intent_id"),
            amount=Decimal(str(row["amount"])),
            currency=row["currency"],
            status=PaymentStatus(row["status"]),
            created_at=from_db_datetime(row.get("created_at")),
            updated_at=from_db_datetime(row.get("updated_at")),
        )
