from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.quote_repo import QuoteRepo
from app.domain.entities.quote import Customer, Quote, QuoteItem, QuoteStatus
from app.infrastructure.db.errors import persistence_errors
from app.infrastructure.db.tables import customers, quote_items, quotes


class QuoteRepoSQL(QuoteRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_for_agent(self, quote_id: int, agent_id: str) -> Quote | None:
        with persistence_errors("load quote"):
            stmt = (
                select(quotes)
                .where(quotes.c.id == quote_id, quotes.c.agent_id == agent_id)
                .limit(1)
            )
            result = await self._session.execute(stmt)
            row = result.mappings().first()
            if not row:
                return None

            items_stmt = (
                select(quote_items)
                .where(quote_items.c.quote_id == quote_id)
                .order_by(quote_items.c.id)
            )
            items_result = await self._session.execute(items_stmt)
            items = [self._map_item(item_row) for item_row in items_result.mappings().all()]

            customer = await self.get_customer(row["customer_id"]) if row["customer_id"] else None

        return Quote(
            id=row["id"],
            agent_id=row["agent_id"],
            customer_id=row["customer_id"],
            status=QuoteStatus(row["status"]),
            customer=customer,
            items=items,
            trip_start_date=row.get("trip_start_date"),
            trip_end_date=row.get("trip_end_date"),
        )

    async def mark_converted(self, quote_id: int) -> None:
        with persistence_errors("mark quote as converted"):
            stmt = (
                update(quotes)
                .where(quotes.c.id == quote_id)
                .values(status=QuoteStatus.CONVERTED.value)
            )
            await self._session.execute(stmt)

    async def get_customer(self, customer_id: int) -> Customer | None:
        with persistence_errors("load customer"):
            stmt = select(customers).where(customers.c.id == customer_id).limit(1)
            result = await self._session.execute(stmt)
            row = result.mappings().first()
        if not row:
            return None
        return Customer(
            id=row["id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row.get("email"),
            phone=row.get("phone"),
        )

    def _map_item(self, row) -> QuoteItem:
        return QuoteItem(
            id=row["id"],
            quote_id=row["quote_id"],
            item_type=row["item_type"],
            item_name=row["item_name"],
            cost=Decimal(str(row["cost"])),
            quantity=row["quantity"],
            details=row.get("details") or {},
        )
