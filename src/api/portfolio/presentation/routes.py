"""HTTP routes for portfolio records.

Every route requires a resolved tenant. Errors raised by the services are
``TenancyError`` subclasses and are rendered by the application's
exception handler, so routes do not translate them.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from portfolio.application.record_service import RecordService
from portfolio.dependencies import get_record_service
from portfolio.domain.hierarchy import EntityType
from portfolio.domain.value_objects import format_etag, parse_etag
from portfolio.presentation.models import CreateRecordRequest, UpdateRecordRequest
from shared_kernel.errors import InvalidVersionToken
from shared_kernel.persistence import Record
from tenancy.dependencies import require_tenant_context

router = APIRouter(
    prefix="/records",
    tags=["records"],
    dependencies=[Depends(require_tenant_context)],
)


def _record_response(
    record: Record, status_code: int = status.HTTP_200_OK
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(record),
        headers={"ETag": format_etag(record["version"])},
    )


def _client_version(if_match: str | None, body_version: int | None) -> int | None:
    """Pick the version token, preferring the If-Match header.

    Raises:
        InvalidVersionToken: If the header is not of the form W/"v{n}"
    """
    if if_match is None:
        return body_version
    version = parse_etag(if_match)
    if version is None:
        raise InvalidVersionToken(
            message=f'If-Match must be of the form W/"v{{n}}", got: {if_match}'
        )
    return version


@router.post("/{entity_type}", status_code=status.HTTP_201_CREATED)
async def create_record(
    entity_type: EntityType,
    request: CreateRecordRequest,
    service: Annotated[RecordService, Depends(get_record_service)],
) -> JSONResponse:
    """Create a record below its parent.

    Returns:
        The created record with its ETag

    Raises:
        InvalidHierarchyReference: 400 if the parent is missing or invalid
    """
    record = await service.create(entity_type, request.to_payload())
    return _record_response(record, status.HTTP_201_CREATED)


@router.get("/{entity_type}")
async def list_records(
    entity_type: EntityType,
    service: Annotated[RecordService, Depends(get_record_service)],
    include_deleted: Annotated[bool, Query()] = False,
    customer_id: Annotated[str | None, Query()] = None,
    site_id: Annotated[str | None, Query()] = None,
    building_id: Annotated[str | None, Query()] = None,
    floor_id: Annotated[str | None, Query()] = None,
) -> list[dict[str, Any]]:
    """List records of a type in the bound tenant.

    Ancestor query parameters narrow the list to one branch.
    """
    references = {
        "customer_id": customer_id,
        "site_id": site_id,
        "building_id": building_id,
        "floor_id": floor_id,
    }
    filters = {key: value for key, value in references.items() if value is not None}
    records = await service.list_records(
        entity_type, filters, include_deleted=include_deleted
    )
    return jsonable_encoder(records)


@router.get("/{entity_type}/{entity_id}")
async def get_record(
    entity_type: EntityType,
    entity_id: str,
    service: Annotated[RecordService, Depends(get_record_service)],
    include_deleted: Annotated[bool, Query()] = False,
) -> JSONResponse:
    record = await service.get(entity_type, entity_id, include_deleted=include_deleted)
    return _record_response(record)


@router.patch("/{entity_type}/{entity_id}")
async def update_record(
    entity_type: EntityType,
    entity_id: str,
    request: UpdateRecordRequest,
    service: Annotated[RecordService, Depends(get_record_service)],
    if_match: Annotated[str | None, Header()] = None,
) -> JSONResponse:
    """Update a record if the client's version is still current.

    The version comes from ``If-Match: W/"v{n}"`` or, failing that, the
    body's ``version`` field.

    Raises:
        PreconditionRequired: 428 if no version was supplied
        InvalidVersionToken: 400 if the version is malformed
        VersionConflict: 409 if the record changed since it was read
    """
    client_version = _client_version(if_match, request.version)
    record = await service.update(
        entity_type, entity_id, client_version, request.changes
    )
    return _record_response(record)


@router.delete("/{entity_type}/{entity_id}")
async def delete_record(
    entity_type: EntityType,
    entity_id: str,
    service: Annotated[RecordService, Depends(get_record_service)],
) -> dict[str, Any]:
    """Cascade-delete a record and everything below it.

    Returns:
        The cascade report

    Raises:
        NotFound: 404 if the record does not exist in the bound tenant
        CascadeIncomplete: 500 with the partial report
    """
    report = await service.delete(entity_type, entity_id)
    return report.as_dict()
