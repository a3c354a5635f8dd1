import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from healthlife.core import config
from healthlife.database import Base, dispose_database, ensure_appointment_schema, init_database
from healthlife.models import allergy, appointment, availability, recipe, user  # noqa: F401
from healthlife.routes import (
    allergy_routes,
    appointment_routes,
    auth_routes,
    availability_routes,
    bmi_routes,
    recipe_routes,
)

logger = logging.getLogger(__name__)


def initialize_database(app: FastAPI, database_url: str) -> None:
    engine = init_database(app, database_url, echo=config.DATABASE_ECHO)
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema(engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


def create_app(database_url: str | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.configure_logging()
        config.validate_runtime_config()
        initialize_database(app, database_url or config.DATABASE_URL)
        try:
            yield
        finally:
            dispose_database(app)

    app = FastAPI(title='HealthLife API', lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    @app.get('/')
    def root():
        return {'status': 'HealthLife API Running'}

    app.include_router(auth_routes.router, prefix='/auth')
    app.include_router(availability_routes.router, prefix='/availability')
    app.include_router(appointment_routes.router, prefix='/appointments')
    app.include_router(bmi_routes.router, prefix='/bmi')
    app.include_router(allergy_routes.router, prefix='/allergies')
    app.include_router(recipe_routes.router, prefix='/recipes')

    return app


app = create_app()
