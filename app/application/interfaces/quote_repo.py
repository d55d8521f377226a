from app.domain.entities.quote import Customer, Quote


class QuoteRepo:
    async def get_for_agent(self, quote_id: int, agent_id: str) -> Quote | None:
        """Cotización con cliente e items, solo si pertenece al agente."""
        raise NotImplementedError

    async def mark_converted(self, quote_id: int) -> None:
        raise NotImplementedError

    async def get_customer(self, customer_id: int) -> Customer | None:
        raise NotImplementedError
