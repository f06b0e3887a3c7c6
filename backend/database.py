from datetime import datetime, timezone
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


DATABASE_URL = config.DATABASE_URL

connect_args = {'check_same_thread': False} if DATABASE_URL.startswith('sqlite') else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False

# (table, column, statement) for columns added after the first deployment.
COLUMN_MIGRATIONS = [
    ('users', 'meetings_blocked', 'ALTER TABLE users ADD COLUMN meetings_blocked BOOLEAN DEFAULT FALSE'),
    ('appointments', 'proposed_at', 'ALTER TABLE appointments ADD COLUMN proposed_at TIMESTAMP'),
    ('appointments', 'updated_at', 'ALTER TABLE appointments ADD COLUMN updated_at TIMESTAMP'),
    ('appointment_transitions', 'reason', 'ALTER TABLE appointment_transitions ADD COLUMN reason VARCHAR'),
]

INDEX_STATEMENTS = [
    'CREATE INDEX IF NOT EXISTS idx_appointments_owner_status ON appointments(owner_id, status)',
    'CREATE INDEX IF NOT EXISTS idx_appointments_requester_time ON appointments(requester_id, scheduled_at)',
    'CREATE INDEX IF NOT EXISTS idx_availability_listing_day ON availability_slots(listing_id, day_of_week)',
]


def ensure_scheduling_schema(bind=None) -> None:
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        bind = bind or engine
        inspector = inspect(bind)
        table_names = set(inspector.get_table_names())

        with bind.begin() as connection:
            for table_name, column_name, statement in COLUMN_MIGRATIONS:
                if table_name not in table_names:
                    continue
                existing_columns = {column['name'] for column in inspector.get_columns(table_name)}
                if column_name not in existing_columns:
                    connection.execute(text(statement))

            for statement in INDEX_STATEMENTS:
                table_name = statement.split(' ON ', 1)[1].split('(', 1)[0]
                if table_name in table_names:
                    connection.execute(text(statement))

        _scheduling_schema_checked = True


def utc_now() -> datetime:
    """Current UTC time as a naive value, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
