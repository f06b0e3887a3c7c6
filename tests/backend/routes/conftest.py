import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient

from backend.database import get_db
from backend.main import app
from backend.routes.common import get_scheduling_service
from backend.services.scheduling import SchedulingService


@pytest.fixture
def client(db, notifier):
    app.dependency_overrides[get_db] = lambda: db

    def _service(background_tasks: BackgroundTasks) -> SchedulingService:
        return SchedulingService(db, notifier=notifier, background_tasks=background_tasks)

    app.dependency_overrides[get_scheduling_service] = _service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
