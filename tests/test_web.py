"""
Tests for the web API

Uses FastAPI's TestClient with a preloaded dataset and a fake geocoder.
"""

from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.geocoding import Coordinates
from core.ingestion import DatasetStore, LoadState
from utils.config import Config
from web.app import create_app, start_dataset_loader


DATASET = "\n".join([
    "date_mutation;valeur_fonciere;adresse_numero;adresse_nom_de_voie;code_postal;"
    "nom_commune;type_local;surface_reelle_bati;nombre_pieces_principales;"
    "surface_terrain;longitude;latitude",
    "2024-01-01;300000;12;RUE DES LILAS;75011;Paris;Maison;100;4;;2,3522;48,8576",
    "2024-03-01;330000;;RUE DES ROSES;75011;Paris;Maison;105;5;;2,3540;48,8580",
])

FORM = {
    "address": "12 rue des Lilas",
    "postal_code": "75011",
    "city": "Paris",
    "property_type": "Maison",
    "living_area": 100,
    "radius_km": 5,
    "rooms": [],
}


class FakeGeocoder:
    def __init__(self, coordinates=None):
        self.coordinates = coordinates

    def resolve(self, query):
        return self.coordinates


class BrokenGeocoder:
    def resolve(self, query):
        raise RuntimeError("boom")


PARIS = Coordinates(latitude=48.8566, longitude=2.3522, label="12 Rue des Lilas 75011 Paris")


@pytest.fixture
def config(tmp_path):
    return Config(dataset_path=str(tmp_path / "missing.csv"), dataset_url=None)


@pytest.fixture
def loaded_store():
    store = DatasetStore()
    store.load(DATASET)
    return store


@pytest.fixture
def client(config, loaded_store):
    app = create_app(config=config, store=loaded_store, geocoder=FakeGeocoder(PARIS))
    with TestClient(app) as client:
        yield client


class TestHealth:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_dataset_status(self, client):
        status = client.get("/api/dataset").json()

        assert status["state"] == "ready"
        assert status["count"] == 2


class TestEstimateEndpoint:
    """Tests for POST /api/estimate."""

    def test_success(self, client):
        response = client.post("/api/estimate", json=FORM)
        data = response.json()

        assert response.status_code == 200
        assert data["status"] == "ok"
        assert data["result"]["count"] == 2
        assert len(data["comparables"]) == 2
        assert len(data["rows"]) == 2
        assert data["map"][0]["kind"] == "subject"
        assert len(data["map"]) == 3
        assert data["kpis"]["count"] == "2"
        assert data["summary"].startswith("Maison • Rayon 5 km • Surface 85–115 m²")

    def test_rows_are_display_formatted(self, client):
        data = client.post("/api/estimate", json=FORM).json()
        row = data["rows"][0]

        assert row["price"] == "300 000 €"
        assert row["price_per_area"] == "3 000 €/m²"
        assert row["land_area"] == "-"
        assert row["distance"].endswith(" m")

    def test_invalid_inputs(self, client):
        response = client.post("/api/estimate", json={**FORM, "living_area": 0})

        assert response.status_code == 422
        assert response.json()["status"] == "invalid"
        assert response.json()["errors"] == ["living_area must be a positive number"]

    def test_no_comparables(self, client):
        response = client.post("/api/estimate", json={**FORM, "property_type": "Appartement"})
        data = response.json()

        assert response.status_code == 200
        assert data["status"] == "no_comparables"
        assert data["criteria"]["radius_km"] == 5

    def test_address_not_found(self, config, loaded_store):
        app = create_app(config=config, store=loaded_store, geocoder=FakeGeocoder(None))
        with TestClient(app) as client:
            response = client.post("/api/estimate", json=FORM)

        assert response.status_code == 404
        assert response.json()["status"] == "address_not_found"

    def test_dataset_loading(self, config):
        store = DatasetStore()
        app = create_app(config=config, store=store, geocoder=FakeGeocoder(PARIS))
        # No context manager: the startup loader does not run
        client = TestClient(app)

        response = client.post("/api/estimate", json=FORM)

        assert response.status_code == 503
        assert response.json()["status"] == "loading"

    def test_dataset_load_failed(self, config):
        store = DatasetStore()
        thread = start_dataset_loader(store, config)
        thread.join(timeout=5)
        app = create_app(config=config, store=store, geocoder=FakeGeocoder(PARIS))
        client = TestClient(app)

        response = client.post("/api/estimate", json=FORM)

        assert store.state is LoadState.FAILED
        assert response.status_code == 503
        assert response.json()["status"] == "load_failed"

    def test_unexpected_error_keeps_session_usable(self, config, loaded_store):
        app = create_app(config=config, store=loaded_store, geocoder=BrokenGeocoder())
        with TestClient(app) as client:
            failed = client.post("/api/estimate", json=FORM)
            health = client.get("/health")

        assert failed.status_code == 500
        assert failed.json()["status"] == "error"
        assert health.status_code == 200


class TestDatasetLoader:

    def test_loader_not_started_when_ready(self, config, loaded_store):
        assert start_dataset_loader(loaded_store, config) is None

    def test_loader_reads_configured_path(self, tmp_path):
        path = tmp_path / "dvf_light.csv"
        path.write_text(DATASET, encoding="utf-8")
        store = DatasetStore()

        thread = start_dataset_loader(store, Config(dataset_path=str(path), dataset_url=None))
        thread.join(timeout=5)

        assert store.is_ready
        assert store.count == 2
