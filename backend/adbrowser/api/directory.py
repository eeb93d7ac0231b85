"""Directory browsing API endpoints (read-only)"""
from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel
from typing import Optional, List

from adbrowser.models.directory import (
    Computer,
    Group,
    ManualDirectoryConfig,
    ObjectKind,
    ObjectSelection,
    ObjectSummary,
    OUNode,
    User,
)
from adbrowser.services.backends import create_connector
from adbrowser.services.connector import ConnectorErrorKind
from adbrowser.services.domain import DirectoryDomainService, LoadState

router = APIRouter(prefix="/api/directory", tags=["directory"])

_domain_service: Optional[DirectoryDomainService] = None


class DirectoryStatus(BaseModel):
    state: LoadState
    isLoading: bool
    errorMessage: Optional[str] = None
    needsManualConfiguration: bool
    selectedContainerId: Optional[str] = None


def get_domain_service() -> DirectoryDomainService:
    """Get the process-wide domain service, created from settings on first use."""
    global _domain_service
    if _domain_service is None:
        _domain_service = DirectoryDomainService(create_connector())
    return _domain_service


def _status(service: DirectoryDomainService) -> DirectoryStatus:
    return DirectoryStatus(
        state=service.state,
        isLoading=service.is_loading,
        errorMessage=service.error_message,
        needsManualConfiguration=service.needs_manual_configuration,
        selectedContainerId=service.selected_container_id,
    )


def _raise_if_failed(service: DirectoryDomainService) -> None:
    if service.state != LoadState.FAILED:
        return
    status_code = 501 if service.error_kind == ConnectorErrorKind.UNSUPPORTED_OPERATION else 502
    raise HTTPException(status_code=status_code, detail=service.error_message)


def _ensure_loaded(service: DirectoryDomainService) -> None:
    service.ensure_loaded()
    _raise_if_failed(service)


@router.get("/status", response_model=DirectoryStatus)
def get_status(service: DirectoryDomainService = Depends(get_domain_service)):
    """Get directory load state."""
    return _status(service)


@router.post("/reload", response_model=DirectoryStatus)
def reload_directory(
    refresh: bool = Query(False, description="Drop backend caches before loading"),
    service: DirectoryDomainService = Depends(get_domain_service),
):
    """Reload the full directory snapshot."""
    ran = service.refresh() if refresh else service.load_tree()
    if not ran:
        service.wait_for_load()
    _raise_if_failed(service)
    return _status(service)


@router.get("/tree", response_model=List[OUNode])
def get_tree(service: DirectoryDomainService = Depends(get_domain_service)):
    """Get the container tree."""
    _ensure_loaded(service)
    return service.root_tree


@router.get("/containers/{container_id}/objects", response_model=List[ObjectSummary])
def get_container_objects(
    container_id: str,
    service: DirectoryDomainService = Depends(get_domain_service),
):
    """Get users, groups and computers of one container."""
    _ensure_loaded(service)
    return service.select_container(container_id)


@router.get("/search", response_model=List[ObjectSummary])
def search_objects(
    q: str = Query("", description="Search text"),
    service: DirectoryDomainService = Depends(get_domain_service),
):
    """Search users, groups and computers."""
    _ensure_loaded(service)
    return service.search(q)


def _details(service: DirectoryDomainService, kind: ObjectKind, object_id: str):
    _ensure_loaded(service)
    entity = service.details(ObjectSelection(kind=kind, id=object_id))
    if entity is None:
        raise HTTPException(status_code=404, detail=f"{kind.value.capitalize()} not found")
    return entity


@router.get("/users/{user_id}", response_model=User)
def get_user(user_id: str, service: DirectoryDomainService = Depends(get_domain_service)):
    """Get user details."""
    return _details(service, ObjectKind.USER, user_id)


@router.get("/groups/{group_id}", response_model=Group)
def get_group(group_id: str, service: DirectoryDomainService = Depends(get_domain_service)):
    """Get group details."""
    return _details(service, ObjectKind.GROUP, group_id)


@router.get("/computers/{computer_id}", response_model=Computer)
def get_computer(computer_id: str, service: DirectoryDomainService = Depends(get_domain_service)):
    """Get computer details."""
    return _details(service, ObjectKind.COMPUTER, computer_id)


@router.post("/manual-config", response_model=DirectoryStatus)
def apply_manual_config(
    config: ManualDirectoryConfig,
    service: DirectoryDomainService = Depends(get_domain_service),
):
    """Supply directory connection settings when no domain was detected."""
    if not service.apply_manual_configuration(config):
        raise HTTPException(status_code=501, detail=service.error_message)
    _raise_if_failed(service)
    return _status(service)
