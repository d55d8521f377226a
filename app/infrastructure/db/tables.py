from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

customers = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(150), nullable=False),
    Column("last_name", String(150), nullable=False),
    Column("email", String(255)),
    Column("phone", String(50)),
)

quotes = Table(
    "quotes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("agent_id", String(64), nullable=False, index=True),
    Column("customer_id", Integer),
    Column("status", String(16), nullable=False),
    Column("trip_start_date", Date),
    Column("trip_end_date", Date),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

quote_items = Table(
    "quote_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("quote_id", Integer, nullable=False, index=True),
    Column("item_type", String(32), nullable=False),
    Column("item_name", String(255), nullable=False),
    Column("cost", Numeric(12, 2), nullable=False),
    Column("quantity", Integer, nullable=False, default=1),
    Column("details", JSON),
)

bookings = Table(
    "bookings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("booking_reference", String(50), nullable=False, unique=True),
    Column("quote_id", Integer, nullable=False),
    Column("customer_id", Integer),
    Column("agent_id", String(64), nullable=False),
    Column("status", String(16), nullable=False),
    Column("total_price", Numeric(12, 2), nullable=False),
    Column("amount_paid", Numeric(12, 2), nullable=False, default=0),
    Column("payment_status", String(16), nullable=False),
    Column("payment_reference", String(255)),
    Column("travel_start_date", Date),
    Column("travel_end_date", Date),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
    UniqueConstraint("quote_id", "agent_id", name="uq_bookings_quote_agent"),
)

booking_items = Table(
    "booking_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("booking_id", Integer, nullable=False, index=True),
    Column("quote_item_id", Integer),
    Column("item_type", String(32), nullable=False),
    Column("item_name", String(255), nullable=False),
    Column("cost", Numeric(12, 2), nullable=False),
    Column("quantity", Integer, nullable=False, default=1),
    Column("details", JSON),
)

# `confirmed_key` is "<booking_id>:<quote_item_id>" only on confirmed rows and
# NULL otherwise; the unique constraint then allows any number of failed or
# pending attempts but a single confirmed row per item, on SQLite and MySQL.
booking_confirmations = Table(
    "booking_confirmations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("booking_id", Integer, nullable=False, index=True),
    Column("quote_item_id", Integer),
    Column("provider", String(32), nullable=False),
    Column("provider_booking_id", String(128)),
    Column("confirmation_number", String(128)),
    Column("booking_reference", String(128)),
    Column("status", String(16), nullable=False),
    Column("confirmed_key", String(64), unique=True),
    Column("raw_request", JSON),
    Column("raw_response", JSON),
    Column("error_details", JSON),
    Column("booking_details", JSON),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("currency", String(3), nullable=False),
    Column("hotel_reconfirmation_number", String(128)),
    Column("reconfirmation_received_at", DateTime),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

subscriptions = Table(
    "subscriptions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("agent_id", String(64), nullable=False, unique=True),
    Column("stripe_subscription_id", String(64), unique=True),
    Column("stripe_customer_id", String(64)),
    Column("tier", String(16), nullable=False),
    Column("status", String(32), nullable=False),
    Column("current_period_start", DateTime),
    Column("current_period_end", DateTime),
    Column("trial_start", DateTime),
    Column("trial_end", DateTime),
    Column("cancel_at", DateTime),
    Column("canceled_at", DateTime),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

customer_payments = Table(
    "customer_payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("booking_id", Integer, index=True),
    Column("customer_id", Integer),
    Column("agent_id", String(64)),
    Column("stripe_payment_intent_id", String(64), unique=True),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("currency", String(3), nullable=False),
    Column("status", String(16), nullable=False),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

payment_webhook_events = Table(
    "payment_webhook_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("stripe_event_id", String(64), nullable=False, unique=True),
    Column("event_type", String(64), nullable=False),
    Column("payload", JSON, nullable=False),
    Column("processed", Boolean, nullable=False, default=False),
    Column("error_message", Text),
    Column("created_at", DateTime),
    Column("processed_at", DateTime),
)

notifications = Table(
    "notifications",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=False, index=True),
    Column("message", Text, nullable=False),
    Column("is_read", Boolean, nullable=False, default=False),
    Column("source_event_id", String(128), unique=True),
    Column("created_at", DateTime),
)
