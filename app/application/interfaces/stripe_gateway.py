from typing import Any


class StripeGateway:
    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict[str, Any]:
        """
        Verifica la firma sobre los bytes crudos y solo después decodifica el JSON.

        Raises:
            InvalidSignatureError: falta firma o secreto, o la firma no coincide.
            InvalidInputError: el cuerpo firmado no es un evento válido.
        """
        raise NotImplementedError

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        raise NotImplementedError

    async def create_customer(self, email: str, agent_id: str) -> str:
        raise NotImplementedError

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        trial_days: int,
        metadata: dict[str, str],
    ) -> dict[str, Any]:
        raise NotImplementedError

    async def cancel_subscription(self, subscription_id: str, immediately: bool) -> dict[str, Any]:
        raise NotImplementedError
