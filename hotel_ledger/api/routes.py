"""HTTP routes over the reservation ledger and aggregator.

Handlers are plain functions so FastAPI runs them in its threadpool; the
ledger's room locks are thread locks.
"""

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request

from hotel_ledger.api.schemas import (
    BlockDatesRequest,
    CreateReservationRequest,
    GroupReservationRequest,
)
from hotel_ledger.models import (
    DateRange,
    ReservationFilters,
    ReservationPatch,
    ReservationStatus,
)
from hotel_ledger.services import OccupancyRevenueAggregator, ReservationLedger

router = APIRouter()


def get_ledger(request: Request) -> ReservationLedger:
    return request.app.state.ledger


def get_aggregator(request: Request) -> OccupancyRevenueAggregator:
    return request.app.state.aggregator


def ok(data: Any, **extra: Any) -> dict[str, Any]:
    return {"success": True, "data": data, **extra}


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# Reservations

@router.post("/reservations", status_code=201)
def create_reservation(
    body: CreateReservationRequest,
    ledger: ReservationLedger = Depends(get_ledger),
):
    reservation = ledger.create_reservation(
        body.property_id,
        body.room_id,
        body.check_in,
        body.check_out,
        body.to_guest(),
        body.adults + body.children,
        children=body.children,
        source=body.source,
        special_requests=body.special_requests,
        confirm=body.confirm,
    )
    return ok(reservation.to_api_dict(), message="Reservation created")


@router.post("/reservations/group", status_code=201)
def create_group_reservation(
    body: GroupReservationRequest,
    ledger: ReservationLedger = Depends(get_ledger),
):
    reservations = ledger.create_group_reservation(
        body.property_id,
        body.rooms,
        body.check_in,
        body.check_out,
        body.to_guest(),
        source=body.source,
        special_requests=body.special_requests,
        confirm=body.confirm,
    )
    return ok(
        [reservation.to_api_dict() for reservation in reservations],
        count=len(reservations),
        message="Group reservation created",
    )


@router.get("/reservations")
def list_reservations(
    property_id: str = Query(alias="propertyId"),
    status: Optional[ReservationStatus] = None,
    room_id: Optional[str] = Query(None, alias="roomId"),
    start: Optional[date] = None,
    end: Optional[date] = None,
    ledger: ReservationLedger = Depends(get_ledger),
):
    date_range = DateRange(start=start, end=end) if start and end else None
    filters = ReservationFilters(status=status, room_id=room_id, date_range=date_range)
    data = [reservation.to_api_dict() for reservation in ledger.list_reservations(property_id, filters)]
    return ok(data, count=len(data))


@router.get("/reservations/{reservation_id}")
def get_reservation(reservation_id: str, ledger: ReservationLedger = Depends(get_ledger)):
    return ok(ledger.get_reservation(reservation_id).to_api_dict())


@router.put("/reservations/{reservation_id}")
def update_reservation(
    reservation_id: str,
    patch: ReservationPatch,
    ledger: ReservationLedger = Depends(get_ledger),
):
    reservation = ledger.update_reservation(reservation_id, patch)
    return ok(reservation.to_api_dict(), message="Reservation updated")


@router.delete("/reservations/{reservation_id}")
def cancel_reservation(reservation_id: str, ledger: ReservationLedger = Depends(get_ledger)):
    reservation = ledger.cancel_reservation(reservation_id)
    return ok(reservation.to_api_dict(), message="Reservation cancelled")


@router.post("/reservations/{reservation_id}/confirm")
def confirm_reservation(reservation_id: str, ledger: ReservationLedger = Depends(get_ledger)):
    return ok(ledger.confirm_reservation(reservation_id).to_api_dict())


@router.post("/reservations/{reservation_id}/check-in")
def check_in(reservation_id: str, ledger: ReservationLedger = Depends(get_ledger)):
    return ok(ledger.check_in(reservation_id).to_api_dict())


@router.post("/reservations/{reservation_id}/check-out")
def check_out(reservation_id: str, ledger: ReservationLedger = Depends(get_ledger)):
    return ok(ledger.check_out(reservation_id).to_api_dict())


@router.post("/reservations/{reservation_id}/payment")
def record_payment(reservation_id: str, ledger: ReservationLedger = Depends(get_ledger)):
    return ok(ledger.record_payment(reservation_id).to_api_dict())


# Rooms and quotes

@router.get("/rooms/available")
def search_available_rooms(
    property_id: str = Query(alias="propertyId"),
    check_in: date = Query(alias="checkIn"),
    check_out: date = Query(alias="checkOut"),
    occupancy: int = Query(1, ge=1),
    ledger: ReservationLedger = Depends(get_ledger),
):
    offers = ledger.search_available_rooms(property_id, check_in, check_out, occupancy)
    data = [
        {
            "room": offer.room.model_dump(by_alias=True, mode="json"),
            "quote": offer.quote.to_api_dict(),
        }
        for offer in offers
    ]
    return ok(data, count=len(data))


@router.get("/rooms/{room_id}/calendar")
def room_calendar(
    room_id: str,
    start: date,
    end: date,
    ledger: ReservationLedger = Depends(get_ledger),
):
    days = ledger.room_calendar(room_id, start, end)
    return ok([day.model_dump(by_alias=True, mode="json") for day in days])


@router.post("/rooms/{room_id}/blocks", status_code=201)
def block_dates(
    room_id: str,
    body: BlockDatesRequest,
    ledger: ReservationLedger = Depends(get_ledger),
):
    days = ledger.block_dates(room_id, body.start, body.end, tag=body.tag, note=body.note)
    return ok([day.model_dump(by_alias=True, mode="json") for day in days])


@router.delete("/rooms/{room_id}/blocks")
def unblock_dates(
    room_id: str,
    start: date,
    end: date,
    ledger: ReservationLedger = Depends(get_ledger),
):
    return ok({"reopened": ledger.unblock_dates(room_id, start, end)})


@router.get("/quotes")
def quote(
    room_id: str = Query(alias="roomId"),
    check_in: date = Query(alias="checkIn"),
    check_out: date = Query(alias="checkOut"),
    occupancy: int = Query(1, ge=1),
    ledger: ReservationLedger = Depends(get_ledger),
):
    return ok(ledger.quote(room_id, check_in, check_out, occupancy).to_api_dict())


# Reports

@router.get("/reports/occupancy")
def occupancy_report(
    property_id: str = Query(alias="propertyId"),
    start: date = Query(...),
    end: date = Query(...),
    aggregator: OccupancyRevenueAggregator = Depends(get_aggregator),
):
    report = aggregator.occupancy(property_id, DateRange(start=start, end=end))
    return ok(report.model_dump(by_alias=True, mode="json"))


@router.get("/reports/revenue")
def revenue_report(
    property_id: str = Query(alias="propertyId"),
    start: date = Query(...),
    end: date = Query(...),
    status: Optional[list[ReservationStatus]] = Query(None),
    aggregator: OccupancyRevenueAggregator = Depends(get_aggregator),
):
    report = aggregator.revenue(property_id, DateRange(start=start, end=end), status)
    return ok(report.model_dump(by_alias=True, mode="json"))


@router.get("/reports/sources")
def source_report(
    property_id: str = Query(alias="propertyId"),
    start: date = Query(...),
    end: date = Query(...),
    aggregator: OccupancyRevenueAggregator = Depends(get_aggregator),
):
    report = aggregator.revenue_by_source(property_id, DateRange(start=start, end=end))
    return ok(report.model_dump(by_alias=True, mode="json"))
