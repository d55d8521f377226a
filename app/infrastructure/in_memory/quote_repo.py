from copy import deepcopy
from dataclasses import replace

from app.application.interfaces.quote_repo import QuoteRepo
from app.domain.entities.quote import Customer, Quote, QuoteStatus


class InMemoryQuoteRepo(QuoteRepo):
    def __init__(self) -> None:
        self._quotes: dict[int, Quote] = {}
        self._customers: dict[int, Customer] = {}
        self._next_quote_id = 1
        self._next_item_id = 1
        self._next_customer_id = 1

    def add_customer(self, customer: Customer) -> Customer:
        if customer.id is None:
            customer = replace(customer, id=self._next_customer_id)
        self._next_customer_id = max(self._next_customer_id, customer.id) + 1
        self._customers[customer.id] = customer
        return customer

    def add_quote(self, quote: Quote) -> Quote:
        """Siembra una cotización (con cliente e items) y asigna ids faltantes."""
        quote = deepcopy(quote)
        if quote.id is None:
            quote.id = self._next_quote_id
        self._next_quote_id = max(self._next_quote_id, quote.id) + 1
        if quote.customer is not None:
            quote.customer = self.add_customer(quote.customer)
            quote.customer_id = quote.customer.id
        for item in quote.items:
            if item.id is None:
                item.id = self._next_item_id
            self._next_item_id = max(self._next_item_id, item.id) + 1
            item.quote_id = quote.id
        self._quotes[quote.id] = quote
        return deepcopy(quote)

    async def get_for_agent(self, quote_id: int, agent_id: str) -> Quote | None:
        quote = self._quotes.get(quote_id)
        if quote is None or not quote.is_owned_by(agent_id):
            return None
        return deepcopy(quote)

    async def mark_converted(self, quote_id: int) -> None:
        quote = self._quotes.get(quote_id)
        if quote is not None:
            quote.status = QuoteStatus.CONVERTED

    async def get_customer(self, customer_id: int) -> Customer | None:
        return self._customers.get(customer_id)
