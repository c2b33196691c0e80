"""Main module for the FastAPI application."""
from contextlib import asynccontextmanager
import asyncpg
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from .config import settings
from .models import ErrorResponse, SearchResponse
from .errors import DataSourceError, ValidationError
from .search.search_service import SearchService
from .db.postgres_connector import PostgresConnector
from .db.data_source import PostgresDataSource
from .cache import cache_manager
from .logger import logger


# --- Initialisation des variables globales ---

# Connecteur de base de données (pool ouvert au démarrage)
db_connector: PostgresConnector = PostgresConnector(
    settings.DATABASE_URL, max_size=settings.DB_POOL_MAX_SIZE
)

# Service de recherche : source PostgreSQL, cache Redis si activé
search_service: SearchService = SearchService(
    data_source=PostgresDataSource(db_connector),
    cache=cache_manager if settings.CACHE_ENABLED else None,
)
# Alias `service` pour les tests qui patchent `main.service`
service = search_service


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Handle FastAPI startup and shutdown events."""
    logger.info("Starting up listings search API...")

    try:
        await db_connector.connect()
        logger.info("PostgreSQL connection pool established successfully.")
    except (OSError, asyncpg.PostgresError) as e:
        logger.error("Failed to connect to PostgreSQL: {error}", error=e)

    if settings.CACHE_ENABLED:
        try:
            await cache_manager.ping()
            logger.info("Redis cache connected successfully.")
        except RedisError as e:
            logger.error("Failed to connect to Redis: {error}", error=e)

    yield

    logger.info("Shutting down listings search API...")
    await db_connector.close()
    logger.info("PostgreSQL connection pool closed.")
    await cache_manager.close()
    logger.info("Redis connection closed.")


app = FastAPI(
    title="Listings Search API",
    lifespan=lifespan
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET"],
    allow_headers=["*"],
)


def get_service() -> SearchService:
    """Dépendance FastAPI pour obtenir l'instance du service de recherche."""
    return service


@app.get(
    "/search/businesses",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def search_businesses(request: Request, svc: SearchService = Depends(get_service)):
    """
    GET /search/businesses?q=botox&city=Phoenix&limit=5

    Les paramètres de la query string sont transmis tels quels au service,
    qui les normalise. Chaque clé arrive avec la liste de ses valeurs.
    """
    params = {key: request.query_params.getlist(key) for key in request.query_params}
    logger.info("Received search: {params}", params=params)
    try:
        return await svc.search(params)
    except ValidationError as e:
        logger.info("Rejected search: {error}", error=e)
        return JSONResponse(
            status_code=e.status_code,
            content=ErrorResponse(error=e.public_message).model_dump(),
        )
    except DataSourceError as e:
        headers = {"X-Correlation-ID": e.correlation_id} if e.correlation_id else None
        return JSONResponse(
            status_code=e.status_code,
            content=ErrorResponse(error=e.public_message).model_dump(),
            headers=headers,
        )


@app.get("/")
def root():
    """Root endpoint to check API status."""
    return {"status": "ok", "message": "Listings search API is running 🚀"}


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Monitoring"])
async def health_check():
    """
    Health check endpoint.

    Vérifie la base de données (et Redis si le cache est activé).
    Retourne 503 si un service est injoignable.
    """
    services_status = {"database": "ok"}
    try:
        await db_connector.execute_query("SELECT 1")
    except (OSError, asyncpg.PostgresError):
        services_status["database"] = "error"
        logger.error("Health check failed: Database connection error.")

    if settings.CACHE_ENABLED:
        services_status["redis"] = "ok"
        try:
            await cache_manager.ping()
        except RedisError:
            services_status["redis"] = "error"
            logger.error("Health check failed: Redis connection error.")

    if "error" in services_status.values():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=services_status)

    return services_status
