import logging
from typing import Iterator

from fastapi import FastAPI, HTTPException, Request, status
from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def _enable_sqlite_immediate_transactions(engine: Engine) -> None:
    # SQLite ignores FOR UPDATE; every transaction takes the write lock at BEGIN.
    @event.listens_for(engine, 'connect')
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, 'begin')
    def _begin_immediate(connection):
        connection.exec_driver_sql('BEGIN IMMEDIATE')


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    if not database_url.startswith('sqlite'):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    options: dict = {'connect_args': {'check_same_thread': False}}
    if database_url in {'sqlite://', 'sqlite:///:memory:'}:
        options['poolclass'] = StaticPool

    engine = create_engine(database_url, echo=echo, **options)
    _enable_sqlite_immediate_transactions(engine)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )


def ensure_appointment_schema(engine: Engine) -> None:
    """Bring an older appointments table up to date and add lookup indexes."""
    inspector = inspect(engine)

    if 'appointments' not in inspector.get_table_names():
        return

    existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
    migration_steps = [
        ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR'),
        ('created_at', 'ALTER TABLE appointments ADD COLUMN created_at TIMESTAMP'),
    ]

    with engine.begin() as connection:
        for column_name, statement in migration_steps:
            if column_name not in existing_columns:
                logger.info('Adding missing column appointments.%s', column_name)
                connection.execute(text(statement))
        connection.execute(
            text('CREATE INDEX IF NOT EXISTS idx_appointments_doctor_date ON appointments(doctor_id, date)')
        )
        connection.execute(
            text('CREATE INDEX IF NOT EXISTS idx_appointments_patient_date ON appointments(patient_id, date)')
        )


def init_database(app: FastAPI, database_url: str, echo: bool = False) -> Engine:
    engine = create_db_engine(database_url, echo=echo)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    return engine


def dispose_database(app: FastAPI) -> None:
    engine = getattr(app.state, 'engine', None)
    if engine is not None:
        engine.dispose()
    app.state.engine = None
    app.state.session_factory = None


def get_db(request: Request) -> Iterator[Session]:
    session_factory = getattr(request.app.state, 'session_factory', None)
    if session_factory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        )

    db = session_factory()
    try:
        yield db
    finally:
        db.close()
