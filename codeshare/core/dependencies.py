from fastapi import Depends, Request

from .container import ApplicationContainer


def get_container(request: Request) -> ApplicationContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Application container not initialised.")
    return container


def get_settings(container: ApplicationContainer = Depends(get_container)):
    return container.settings


def get_clock(container: ApplicationContainer = Depends(get_container)):
    return container.database.clock


def get_auth_service(container: ApplicationContainer = Depends(get_container)):
    return container.auth_service


def get_snippet_service(container: ApplicationContainer = Depends(get_container)):
    return container.snippet_service


def get_query_service(container: ApplicationContainer = Depends(get_container)):
    return container.query_service


def get_maintenance_service(container: ApplicationContainer = Depends(get_container)):
    return container.maintenance_service
