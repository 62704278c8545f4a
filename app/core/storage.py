"""Record store lifecycle for the API process and the FastAPI dependency that exposes it."""

from fastapi import Request

from app.core.config import Settings
from app.services.bootstrap import run_bootstrap
from app.services.record_store import RecordStore, open_record_store


def init_store(settings: Settings) -> RecordStore:
    """Open the store under DATA_DIR and run the startup bootstrap. Call once per process."""
    store = open_record_store(settings.DATA_DIR)
    run_bootstrap(store, settings)
    return store


def get_store(request: Request) -> RecordStore:
    """Dependency that returns the store opened at startup (app.state.store)."""
    return request.app.state.store
