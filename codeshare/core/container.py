from dataclasses import dataclass

from ..application.services.auth_service import AuthService
from ..application.services.maintenance_service import MaintenanceService
from ..application.services.query_service import SnippetQueryService
from ..application.services.snippet_service import SnippetService
from .config import Settings
from ..domain.ports.persistence import KeyValueStore
from ..infrastructure.persistence.database import DatabaseManager
from ..infrastructure.persistence.event_log import EventLog
from ..infrastructure.persistence.migrations import MigrationRunner


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    store: KeyValueStore
    database: DatabaseManager
    events: EventLog
    migrations: MigrationRunner
    auth_service: AuthService
    snippet_service: SnippetService
    query_service: SnippetQueryService
    maintenance_service: MaintenanceService
