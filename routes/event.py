import traceback
import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.log import logger
from core.responses import (
    BadRequest,
    Created,
    Forbidden,
    InternalServerError,
    NotFound,
    Ok,
    Unauthorized,
    common_response,
)
from core.security import check_permissions, get_current_user
from models import get_db_sync
from models.User import User
from repository import event as eventRepo
from repository import ticket as ticketRepo
from schemas.auth import AuthorizationStatusEnum
from schemas.common import (
    BadRequestResponse,
    ForbiddenResponse,
    InternalServerErrorResponse,
    NotFoundResponse,
    UnauthorizedResponse,
)
from schemas.event import (
    EventCreateRequest,
    EventDetailResponse,
    EventListResponse,
    EventQuery,
    EventResponseItem,
    EventUpdateRequest,
    event_response_item_from_model,
)
from schemas.ticket import ticket_response_item_from_model

router = APIRouter(prefix="/events", tags=["Events"])


def _admin_error(current_user: User | None):
    auth_status = check_permissions(current_user, admin_only=True, mutating=True)
    if auth_status == AuthorizationStatusEnum.UNAUTHORIZED:
        return common_response(Unauthorized(message="Unauthorized"))
    if auth_status != AuthorizationStatusEnum.PASSED:
        return common_response(Forbidden())
    return None


@router.get(
    "/",
    responses={
        "200": {"model": EventListResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
def get_events(
    query: EventQuery = Depends(),
    db: Session = Depends(get_db_sync),
):
    data = eventRepo.get_events_per_page(
        db=db,
        page=query.page,
        page_size=query.page_size,
        category=query.category,
        search=query.search,
        start_date=query.start_date,
        end_date=query.end_date,
    )
    available = eventRepo.count_available_tickets(
        db=db, event_ids=[event.id for event in data["results"]]
    )
    response = EventListResponse(
        page=data["page"],
        page_size=data["page_size"],
        count=data["count"],
        page_count=data["page_count"],
        results=[
            event_response_item_from_model(event, available.get(event.id, 0))
            for event in data["results"]
        ],
    )
    return common_response(Ok(data=response.model_dump()))


@router.get("/categories")
def get_categories(db: Session = Depends(get_db_sync)):
    return common_response(Ok(data={"results": eventRepo.get_categories(db=db)}))


@router.get(
    "/{event_id}",
    responses={
        "200": {"model": EventDetailResponse},
        "404": {"model": NotFoundResponse},
    },
)
def get_event(event_id: uuid.UUID, db: Session = Depends(get_db_sync)):
    event = eventRepo.get_event_by_id(db=db, id=event_id)
    if event is None:
        return common_response(NotFound(message="Event not found"))

    tickets = ticketRepo.get_available_tickets_by_event(db=db, event=event)
    response = EventDetailResponse(
        **event_response_item_from_model(event, len(tickets)).model_dump(),
        tickets=[
            ticket_response_item_from_model(ticket, with_event=False).model_dump()
            for ticket in tickets
        ],
    )
    return common_response(Ok(data=response.model_dump()))


@router.post(
    "/",
    responses={
        "201": {"model": EventResponseItem},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "500": {"model": InternalServerErrorResponse},
    },
)
def create_event(
    request: EventCreateRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user)
    if error is not None:
        return error

    try:
        event = eventRepo.insert_event(
            db=db,
            title=request.title,
            description=request.description,
            venue=request.venue,
            date=request.date,
            image=request.image,
            category=request.category,
            capacity=request.capacity,
        )
        logger.info(f"Event created: {event.id} {event.title}")
        return common_response(
            Created(data=event_response_item_from_model(event).model_dump())
        )
    except Exception as e:
        db.rollback()
        traceback.print_exc()
        logger.error(f"Failed to create event: {e}")
        return common_response(InternalServerError(error=str(e)))


@router.put(
    "/{event_id}",
    responses={
        "200": {"model": EventResponseItem},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
    },
)
def update_event(
    event_id: uuid.UUID,
    request: EventUpdateRequest,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user)
    if error is not None:
        return error

    event = eventRepo.get_event_by_id(db=db, id=event_id)
    if event is None:
        return common_response(NotFound(message="Event not found"))

    event = eventRepo.update_event(db=db, event=event, **request.model_dump())
    logger.info(f"Event updated: {event.id}")
    return common_response(Ok(data=event_response_item_from_model(event).model_dump()))


@router.delete(
    "/{event_id}",
    responses={
        "200": {"model": EventResponseItem},
        "400": {"model": BadRequestResponse},
        "401": {"model": UnauthorizedResponse},
        "403": {"model": ForbiddenResponse},
        "404": {"model": NotFoundResponse},
    },
)
def delete_event(
    event_id: uuid.UUID,
    db: Session = Depends(get_db_sync),
    current_user: User | None = Depends(get_current_user),
):
    error = _admin_error(current_user)
    if error is not None:
        return error

    event = eventRepo.get_event_by_id(db=db, id=event_id)
    if event is None:
        return common_response(NotFound(message="Event not found"))

    if eventRepo.count_tickets(db=db, event=event):
        return common_response(
            BadRequest(message="Cannot delete an event that has tickets listed")
        )

    eventRepo.delete_event(db=db, event=event)
    logger.info(f"Event deleted: {event_id}")
    return common_response(Ok(data={"message": "Event deleted successfully"}))
