from app.domain.entities.subscription import Subscription


class SubscriptionRepo:
    async def get_by_agent(self, agent_id: str) -> Subscription | None:
        raise NotImplementedError

    async def upsert(self, subscription: Subscription) -> Subscription:
        """Inserta o actualiza por agent_id (una suscripción por agente)."""
        raise NotImplementedError
