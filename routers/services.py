from fastapi import APIRouter, Depends

from content import ServiceStore
from database import serialize_doc
from deps import admin_only, get_services
from errors import envelope
from schemas import ServicePayload, ServiceUpdate

router = APIRouter(prefix="/api/services", tags=["services"])


@router.get("")
def list_services(services: ServiceStore = Depends(get_services)):
    docs = services.active()
    return envelope([serialize_doc(s) for s in docs], count=len(docs))


@router.post("", status_code=201)
def create_service(
    payload: ServicePayload, services: ServiceStore = Depends(get_services), admin: dict = Depends(admin_only)
):
    return envelope(serialize_doc(services.create(payload)), message="Service created successfully")


@router.put("/{service_id}")
def update_service(
    service_id: str,
    payload: ServiceUpdate,
    services: ServiceStore = Depends(get_services),
    admin: dict = Depends(admin_only),
):
    return envelope(serialize_doc(services.update(service_id, payload)), message="Service updated successfully")


@router.delete("/{service_id}")
def delete_service(
    service_id: str, services: ServiceStore = Depends(get_services), admin: dict = Depends(admin_only)
):
    services.delete(service_id)
    return envelope(message="Service deleted successfully")
