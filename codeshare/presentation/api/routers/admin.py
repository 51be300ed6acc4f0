from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from ....application.services.maintenance_service import MaintenanceService
from ....core.dependencies import get_maintenance_service
from ...api.dependencies import require_admin
from ...api.responses import envelope, error_response, respond

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stats")
def stats(maintenance: MaintenanceService = Depends(get_maintenance_service)) -> Dict[str, Any]:
    return envelope(maintenance.stats().to_dict())


@router.get("/info")
def info(maintenance: MaintenanceService = Depends(get_maintenance_service)) -> Dict[str, Any]:
    return envelope(maintenance.info())


@router.post("/backup")
def create_backup(maintenance: MaintenanceService = Depends(get_maintenance_service)) -> JSONResponse:
    return respond(maintenance.create_backup())


@router.post("/restore")
def restore_backup(maintenance: MaintenanceService = Depends(get_maintenance_service)) -> JSONResponse:
    result = maintenance.restore_from_backup()
    if not result.success:
        return respond(result)
    if not result.data:
        return error_response(status.HTTP_404_NOT_FOUND, "No backup found")
    return JSONResponse(content=envelope())


@router.get("/export")
def export_data(maintenance: MaintenanceService = Depends(get_maintenance_service)) -> Response:
    return Response(
        content=maintenance.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="codeshare-export.json"'},
    )


@router.post("/import")
def import_data(
    payload: Dict[str, Any] = Body(...),
    maintenance: MaintenanceService = Depends(get_maintenance_service),
) -> JSONResponse:
    result = maintenance.import_json(payload)
    if not result.success:
        return error_response(status.HTTP_400_BAD_REQUEST, result.error or "Import failed")
    return respond(result)


@router.post("/reset")
def reset_database(maintenance: MaintenanceService = Depends(get_maintenance_service)) -> JSONResponse:
    return respond(maintenance.reset())


@router.post("/cleanup")
def cleanup(maintenance: MaintenanceService = Depends(get_maintenance_service)) -> Dict[str, Any]:
    return envelope(maintenance.cleanup())


@router.get("/events")
def recent_events(
    limit: int = Query(default=10, ge=1, le=100),
    maintenance: MaintenanceService = Depends(get_maintenance_service),
) -> Dict[str, Any]:
    return envelope({"events": maintenance.recent_events(limit), "stats": maintenance.event_stats()})


@router.delete("/events")
def clear_events(maintenance: MaintenanceService = Depends(get_maintenance_service)) -> Dict[str, Any]:
    maintenance.clear_events()
    return envelope()


@router.get("/events/export")
def export_events(maintenance: MaintenanceService = Depends(get_maintenance_service)) -> Response:
    return Response(
        content=maintenance.export_events(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="codeshare-events.json"'},
    )
