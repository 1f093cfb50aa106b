"""
FastAPI application for the estimator web interface.

JSON API consumed by the front-end (form, KPIs, table and map rendering
live in the browser). Production deployment configuration via
environment variables.
"""

import logging
import os
import threading
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core import (
    AddressGeocoder,
    AddressNotFound,
    DataFormatError,
    DatasetNotReady,
    DatasetStore,
    EstimationReport,
    EstimationRequest,
    EstimationService,
    LoadState,
    NoComparablesFound,
    ValidationError,
)
from utils.config import Config
from utils.formatting import (
    describe_criteria,
    format_euro,
    format_int,
    format_price_per_m2,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Environment Configuration
# =============================================================================

# Production mode detection
IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

# CORS configuration
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else []
if not ALLOWED_ORIGINS and not IS_PRODUCTION:
    # Development fallback only
    ALLOWED_ORIGINS = ["http://localhost:8000", "http://127.0.0.1:8000"]

# Debug mode - NEVER enabled in production
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true" and not IS_PRODUCTION

# User-facing hints
HINT_NOT_READY = "Les données sont en cours de chargement. Réessayez dans quelques secondes."
HINT_LOAD_FAILED = "Erreur de chargement des données."
HINT_INVALID = "Merci de remplir : adresse + code postal + ville + surface."
HINT_ADDRESS_NOT_FOUND = "Adresse introuvable. Vérifiez l'adresse, le code postal et la ville."
HINT_NO_COMPARABLES = (
    "Aucune vente comparable trouvée. Essayez d'augmenter le rayon "
    "ou d'élargir les pièces (ex : 2 + 3 + 4)."
)
HINT_UNEXPECTED = "Une erreur inattendue a empêché l'estimation."


# =============================================================================
# API Request/Response Models
# =============================================================================

class EstimateRequestBody(BaseModel):
    """Estimation form submitted by the front-end."""
    address: str = ""
    postal_code: str = ""
    city: str = ""
    property_type: str = ""
    living_area: Optional[float] = None
    radius_km: Optional[float] = None
    rooms: List[int] = []  # Empty = any; 6 = "6+"
    land_area: Optional[float] = None

    def to_request(self) -> EstimationRequest:
        return EstimationRequest(
            address=self.address,
            postal_code=self.postal_code,
            city=self.city,
            property_type=self.property_type,
            living_area=self.living_area,
            radius_km=self.radius_km,
            rooms=list(self.rooms),
            land_area=self.land_area,
        )


def build_estimate_response(report: EstimationReport) -> dict:
    """
    Report payload plus display-ready strings.
    """
    payload = report.to_dict()
    result = report.result

    payload["summary"] = describe_criteria(report)
    payload["kpis"] = {
        "count": format_int(result.count),
        "mean_price_per_area": format_price_per_m2(result.mean_price_per_area),
        "median_price_per_area": format_price_per_m2(result.median_price_per_area),
        "market_range": (
            f"{format_price_per_m2(result.p10_price_per_area)} → "
            f"{format_price_per_m2(result.p90_price_per_area)}"
        ),
        "low_estimate": format_euro(result.low_estimate),
        "mean_estimate": format_euro(result.mean_estimate),
        "median_estimate": format_euro(result.median_estimate),
        "high_estimate": format_euro(result.high_estimate),
    }
    payload["rows"] = [
        {
            "date": comp.record.raw_date or "-",
            "address": comp.record.address,
            "living_area": format_int(comp.living_area),
            "land_area": format_int(comp.record.land_area),
            "rooms": format_int(comp.room_count),
            "price": format_euro(comp.price),
            "price_per_area": format_price_per_m2(comp.price_per_area),
            "distance": f"{round(comp.distance_km * 1000)} m",
        }
        for comp in report.comparables
    ]
    payload["map"] = report.map_points()
    return payload


def _error(status_code: int, status: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": status, "message": message, **extra},
    )


# =============================================================================
# Dataset Loading
# =============================================================================

def load_dataset(store: DatasetStore, config: Config) -> None:
    """
    Load the configured dataset into the store.

    Failures are recorded on the store (state FAILED) and logged.
    """
    try:
        if config.dataset_url:
            store.load_from_url(config.dataset_url, timeout=config.request_timeout)
        else:
            store.load_from_path(config.dataset_path)
    except DataFormatError as e:
        # Store is now FAILED; estimation requests report the load failure
        logger.warning("Estimation disabled for this session: %s", e)


def start_dataset_loader(store: DatasetStore, config: Config) -> Optional[threading.Thread]:
    """Start the one-shot background load if the store is still pending."""
    if store.state is not LoadState.PENDING:
        return None
    thread = threading.Thread(
        target=load_dataset,
        args=(store, config),
        name="dataset-loader",
        daemon=True,
    )
    thread.start()
    return thread


def create_app(
    config: Config = None,
    store: DatasetStore = None,
    geocoder=None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()
    store = store or DatasetStore()
    geocoder = geocoder or AddressGeocoder(
        base_url=config.geocoder_url,
        timeout=config.request_timeout,
    )

    app = FastAPI(
        title="EstimImmo",
        description="Property value estimation from comparable sales",
        version="1.0.0",
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=DEBUG_MODE,
    )

    # ==========================================================================
    # Healthcheck endpoints are registered FIRST. They perform no IO and do
    # not depend on the dataset.
    # ==========================================================================
    @app.get("/", include_in_schema=False)
    def root():
        """Root healthcheck. No dependencies, no IO."""
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        """Secondary health endpoint. No dependencies, no IO."""
        return {"status": "healthy"}

    if ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    service = EstimationService(
        store=store,
        geocoder=geocoder,
        config=config.estimation_config(),
    )
    app.state.service = service
    app.state.store = store

    # ==========================================================================
    # Startup event: dataset load runs in the background so the healthcheck
    # answers immediately. Requests decline until the store is ready.
    # ==========================================================================
    @app.on_event("startup")
    def on_startup():
        """Start loading the dataset."""
        start_dataset_loader(store, config)
        logger.info("EstimImmo started (dataset: %s)", config.dataset_source)

    @app.get("/api/dataset")
    def dataset_status():
        """Dataset load status for the front-end data badge."""
        return store.status()

    @app.post("/api/estimate")
    def estimate(body: EstimateRequestBody):
        """
        Estimate a property from comparable sales.

        Returns:
            - 200 status "ok" with statistics, estimates, rows and map points
            - 200 status "no_comparables" with the search criteria
            - 404 address not found, 422 invalid inputs
            - 503 dataset loading or failed
        """
        try:
            report = service.estimate_request(body.to_request())
        except ValidationError as e:
            return _error(422, "invalid", HINT_INVALID, errors=e.errors)
        except DatasetNotReady as e:
            if store.state is LoadState.FAILED:
                return _error(503, "load_failed", HINT_LOAD_FAILED, detail=str(e))
            return _error(503, "loading", HINT_NOT_READY)
        except AddressNotFound as e:
            return _error(404, "address_not_found", HINT_ADDRESS_NOT_FOUND, query=e.query)
        except NoComparablesFound as e:
            return _error(200, "no_comparables", HINT_NO_COMPARABLES, criteria=e.criteria)
        except Exception:
            # Request boundary: the session and dataset stay usable
            logger.exception("Estimation failed")
            return _error(500, "error", HINT_UNEXPECTED)

        return build_estimate_response(report)

    return app


# Create default app instance
app = create_app()
