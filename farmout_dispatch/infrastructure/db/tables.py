from sqlalchemy import JSON, Column, DateTime, Index, Integer, MetaData, Numeric, String, Table, Text

metadata = MetaData()

reservations = Table(
    "reservations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("confirmation_number", String(50), nullable=False, unique=True),
    Column("pickup_location", String(500), nullable=False, default=""),
    Column("pickup_datetime", DateTime),
    Column("dropoff_location", String(500), nullable=False, default=""),
    Column("dropoff_datetime", DateTime),
    Column("vehicle_type", String(100)),
    Column("passenger_name", String(255), nullable=False, default=""),
    Column("passenger_count", Integer, nullable=False, default=1),
    Column("grand_total", Numeric(12, 2), nullable=False, default=0),
    Column("trip_notes", Text),
    Column("affiliate_id", Integer),
    Column("farmout_mode", String(16), nullable=False, default="farmout"),
    Column("farmout_status", String(32), nullable=False, default="searching"),
    Column("assigned_driver_id", Integer),
    Column("farmout_attempts", Integer, nullable=False, default=0),
    Column("declined_driver_ids", JSON, nullable=False, default=list),
    Column("lock_version", Integer, nullable=False, default=0),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
    Index("ix_reservations_farmout_status", "farmout_status"),
)

drivers = Table(
    "drivers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(150), nullable=False, default=""),
    Column("last_name", String(150), nullable=False, default=""),
    Column("display_name", String(255)),
    Column("phone", String(50)),
    Column("rating", Integer),
    Column("availability_status", String(16), nullable=False, default="available"),
    Column("service_areas", JSON, nullable=False, default=list),
    Column("preferred_vehicle_types", JSON, nullable=False, default=list),
    Column("affiliate_id", Integer),
    Column("last_offer_at", DateTime),
    Index("ix_drivers_phone", "phone"),
)

farmout_offers = Table(
    "farmout_offers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("reservation_id", Integer, nullable=False),
    Column("driver_id", Integer, nullable=False),
    Column("status", String(16), nullable=False, default="pending"),
    # Set only while pending; the unique index enforces one pending offer per reservation
    Column("pending_reservation_id", Integer, unique=True),
    Column("created_at", DateTime, nullable=False),
    Column("expires_at", DateTime, nullable=False),
    Column("responded_at", DateTime),
    Column("decline_reason", String(255)),
    Column("response_method", String(32)),
    Index("ix_farmout_offers_reservation", "reservation_id"),
    Index("ix_farmout_offers_driver_status", "driver_id", "status"),
    Index("ix_farmout_offers_status_expires", "status", "expires_at"),
)

activity_log = Table(
    "activity_log",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("action", String(64), nullable=False),
    Column("entity_type", String(32), nullable=False),
    Column("entity_id", Integer, nullable=False),
    Column("details", JSON),
    Column("created_at", DateTime, nullable=False),
)
