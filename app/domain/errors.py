"""Excepciones de dominio para el motor de reservas y confirmaciones."""


class DomainError(Exception):
    """Clase base para todos los errores de dominio."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === Errores de Validación ===


class InvalidInputError(DomainError):
    """Datos de entrada faltantes o malformados."""

    def __init__(self, field: str, message: str):
        super().__init__(message=f"Invalid '{field}': {message}", code="INVALID_INPUT")
        self.field = field


class InvalidItemDetailsError(DomainError):
    """El payload `details` de un item no tiene la forma esperada por su proveedor."""

    def __init__(self, item_type: str, message: str):
        super().__init__(
            message=f"Invalid {item_type} details: {message}",
            code="INVALID_ITEM_DETAILS",
        )
        self.item_type = item_type


# === Errores de Cotización / Reserva ===


class QuoteNotFoundError(DomainError):
    """La cotización no existe o no pertenece al agente."""

    def __init__(self, quote_id: int):
        super().__init__(message=f"Quote not found: {quote_id}", code="QUOTE_NOT_FOUND")
        self.quote_id = quote_id


class QuoteAlreadyConvertedError(DomainError):
    """La cotización ya fue convertida y no admite otra reserva."""

    def __init__(self, quote_id: int):
        super().__init__(
            message=f"Quote {quote_id} is already converted",
            code="QUOTE_ALREADY_CONVERTED",
        )
        self.quote_id = quote_id


class BookingNotFoundError(DomainError):
    """La reserva no existe o no pertenece al agente."""

    def __init__(self, booking_id: int):
        super().__init__(message=f"Booking not found: {booking_id}", code="BOOKING_NOT_FOUND")
        self.booking_id = booking_id


# === Errores de Proveedor ===


class ProviderError(DomainError):
    """El proveedor externo rechazó la reserva o no fue alcanzable."""

    def __init__(self, provider: str, message: str, http_status: int | None = None):
        super().__init__(message=message, code="PROVIDER_ERROR")
        self.provider = provider
        self.http_status = http_status


# === Errores de Persistencia ===


class PersistenceError(DomainError):
    """Falló una escritura o lectura en el almacén local."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message=message, code=code or "PERSISTENCE_ERROR")


class DuplicateConfirmationError(PersistenceError):
    """Ya existe una confirmación `confirmed` para el mismo item de la reserva."""

    def __init__(self, booking_id: int, quote_item_id: int):
        super().__init__(
            message=f"Booking {booking_id} already has a confirmed row for item {quote_item_id}",
            code="DUPLICATE_CONFIRMATION",
        )
        self.booking_id = booking_id
        self.quote_item_id = quote_item_id


class DuplicateBookingError(PersistenceError):
    """Ya existe una reserva para la combinación cotización/agente."""

    def __init__(self, quote_id: int, agent_id: str):
        super().__init__(
            message=f"A booking already exists for quote {quote_id}",
            code="DUPLICATE_BOOKING",
        )
        self.quote_id = quote_id
        self.agent_id = agent_id


# === Errores de Webhooks / Suscripciones ===


class InvalidSignatureError(DomainError):
    """La firma del webhook no es válida o falta el secreto compartido."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message=message, code="INVALID_SIGNATURE")


class WebhookProcessingError(DomainError):
    """Falló la aplicación de un evento ya registrado."""

    def __init__(self, event_id: str, message: str):
        super().__init__(
            message=f"Webhook event {event_id} failed: {message}",
            code="WEBHOOK_PROCESSING_FAILED",
        )
        self.event_id = event_id


class SubscriptionNotFoundError(DomainError):
    """El agente no tiene suscripción registrada."""

    def __init__(self, agent_id: str):
        super().__init__(
            message=f"Subscription not found for agent {agent_id}",
            code="SUBSCRIPTION_NOT_FOUND",
        )
        self.agent_id = agent_id
