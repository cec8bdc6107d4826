"""
docgraph backend application.

FastAPI application serving the metadata-driven document store.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docgraph import __version__
from docgraph.config import Settings, get_settings
from docgraph.core.exceptions import DocGraphError
from docgraph.core.neo4j_client import Neo4jClient
from docgraph.graph.document_store import DocumentStore
from docgraph.schema.catalog import SchemaCatalog
from docgraph.schema.loader import CatalogLoader
from docgraph.schema.seed import seed_catalog
from docgraph.api.routes import (
    docs_router,
    doctypes_router,
    health_router,
    modules_router,
)


class ThirdPartyNoiseFilter(logging.Filter):
    """
    Drop chatty sub-WARNING records from the driver and the access log.

    The neo4j driver logs every pool acquire/release at DEBUG, and
    orchestrators poll the health probes every few seconds.
    """

    NOISE_PATTERNS = [
        # neo4j driver pool and bolt chatter
        "[#",
        "acquire",
        "release",
        "routing table",
        # health probe access lines
        "GET /health",
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.WARNING:
            return True
        message = record.getMessage()
        return not any(pattern in message for pattern in self.NOISE_PATTERNS)


def configure_logging(settings: Settings) -> None:
    """Debug: timestamped records with logger names. Otherwise bare messages at INFO."""
    if settings.debug:
        level = logging.DEBUG
        log_format = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    else:
        level = logging.INFO
        log_format = "%(message)s"

    logging.basicConfig(level=level, format=log_format)

    noise_filter = ThirdPartyNoiseFilter()
    for name in ("neo4j", "uvicorn.access"):
        logging.getLogger(name).addFilter(noise_filter)


logger = logging.getLogger(__name__)


async def seed_from_fixture(client: Neo4jClient, settings: Settings) -> dict[str, int]:
    """Load the configured fixture and write it into the store."""
    loader = CatalogLoader(settings.schemas_path)
    fixture = loader.load_fixture(settings.seed_fixture)
    return await seed_catalog(fixture, SchemaCatalog(client), DocumentStore(client))


def create_app(
    settings: Settings | None = None,
    client: Neo4jClient | None = None,
) -> FastAPI:
    """
    Build the application.

    The Neo4j client is owned by the lifespan: created (or taken from the
    caller) on startup, stored on ``app.state``, closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting docgraph backend...")

        neo4j_client = client or Neo4jClient(
            uri=settings.neo4j_uri,
            user=settings.neo4j_user,
            password=settings.neo4j_password,
            database=settings.neo4j_database,
            max_pool_size=settings.neo4j_max_pool_size,
            acquisition_timeout=settings.neo4j_acquisition_timeout,
        )
        app.state.neo4j_client = neo4j_client

        try:
            await neo4j_client.connect()
        except DocGraphError as e:
            logger.error(f"Failed to connect to Neo4j: {e}")
            logger.warning("Application starting without Neo4j connection")
        else:
            if settings.seed_on_startup:
                try:
                    await seed_from_fixture(neo4j_client, settings)
                except (DocGraphError, FileNotFoundError, ValueError) as e:
                    logger.error(f"Failed to seed catalog from {settings.seed_fixture!r}: {e}")
                    logger.warning("Application starting with the catalog as found")

        yield

        logger.info("Shutting down docgraph backend...")
        await neo4j_client.close()
        app.state.neo4j_client = None

    app = FastAPI(
        title="docgraph API",
        description="""
        Metadata-driven document manager on a property graph.

        - **Modules**: `/api/modules` lists DocTypes grouped by module
        - **Schema**: `/api/doctypes/{doctype}` returns the ordered fields
        - **Documents**: `/api/docs/{doctype}` paginated CRUD for any DocType
        """,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(modules_router)
    app.include_router(doctypes_router)
    app.include_router(docs_router)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "docgraph API",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "health": "/health",
                "modules": "/api/modules",
                "doctypes": "/api/doctypes",
                "docs": "/api/docs",
            },
        }

    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(
        "docgraph.main:create_app",
        factory=True,
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
