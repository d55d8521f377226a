from dataclasses import replace

from app.application.interfaces.subscription_repo import SubscriptionRepo
from app.domain.entities.subscription import Subscription


class InMemorySubscriptionRepo(SubscriptionRepo):
    def __init__(self) -> None:
        self._by_agent: dict[str, Subscription] = {}
        self._next_id = 1

    async def get_by_agent(self, agent_id: str) -> Subscription | None:
        subscription = self._by_agent.get(agent_id)
        return replace(subscription) if subscription else None

    async def upsert(self, subscription: Subscription) -> Subscription:
        existing = self._by_agent.get(subscription.agent_id)
        if existing is not None:
            saved = replace(subscription, id=existing.id, created_at=existing.created_at)
        else:
            saved = replace(subscription, id=self._next_id)
            self._next_id += 1
        self._by_agent[saved.agent_id] = saved
        return replace(saved)
