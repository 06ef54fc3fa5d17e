from datetime import date
from typing import Literal

from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse
from sqlalchemy import select

from guardpost.api.deps import DB, CurrentProfile, ManagerProfile
from guardpost.models.breach import ContractorBreach
from guardpost.schemas.breach import BreachBoardRow, BreachCreate, BreachOut
from guardpost.services import violation_state as vs
from guardpost.services.csv_export import csv_response, to_csv
from guardpost.utils.dates import format_short_date, today_utc

router = APIRouter(prefix="/breaches", tags=["breaches"])

Ending = Literal["all", "today", "week"]


async def _board(db, q: str, ending: str, today: date) -> list[ContractorBreach]:
    """Active breaches not yet past their eligible return date, soonest first."""
    result = await db.execute(
        select(ContractorBreach)
        .where(
            ContractorBreach.status == vs.BREACH_ACTIVE,
            ContractorBreach.eligible_return_date >= today,
        )
        .order_by(ContractorBreach.eligible_return_date)
    )
    return [
        b for b in result.scalars().all()
        if vs.is_on_breach_board(b, today)
        and vs.matches_breach_search(b, q)
        and vs.matches_ending_filter(b, ending, today)
    ]


def _severity(days: int) -> str:
    if days == 0:
        return "today"
    return "soon" if days <= 2 else "later"


@router.get("", response_model=list[BreachBoardRow])
async def breach_board(current_profile: CurrentProfile, db: DB, q: str = "", ending: Ending = "all"):
    today = today_utc()
    rows = []
    for b in await _board(db, q, ending, today):
        days = vs.days_left(b.eligible_return_date, today)
        rows.append(BreachBoardRow(
            **BreachOut.model_validate(b).model_dump(),
            days_left=days,
            severity=_severity(days),
        ))
    return rows


@router.get("/export.csv")
async def export_breaches(current_profile: CurrentProfile, db: DB, q: str = "", ending: Ending = "all"):
    today = today_utc()
    headers = ["Contractor", "Violation", "Start", "End", "Eligible Return", "Days Left", "Reason"]
    body = [
        [
            b.contractor_name,
            b.violation_code or "",
            b.start_date.isoformat(),
            b.end_date.isoformat(),
            b.eligible_return_date.isoformat(),
            str(vs.days_left(b.eligible_return_date, today)),
            (b.reason or "").replace("\n", " "),
        ]
        for b in await _board(db, q, ending, today)
    ]
    return csv_response(to_csv(headers, body), f"active-breaches-{today.isoformat()}.csv")


@router.get("/quick-list", response_class=PlainTextResponse)
async def quick_list(current_profile: CurrentProfile, db: DB, q: str = "", ending: Ending = "all"):
    """Plain-text "do not schedule" list for pasting into messages."""
    lines = [
        f"• {b.contractor_name} (through {format_short_date(b.end_date)} | "
        f"eligible {format_short_date(b.eligible_return_date)})"
        for b in await _board(db, q, ending, today_utc())
    ]
    return "\n".join(["DO NOT SCHEDULE (ACTIVE BREACHES)", *lines])


@router.post("", response_model=BreachOut, status_code=status.HTTP_201_CREATED)
async def create_breach(payload: BreachCreate, current_profile: ManagerProfile, db: DB):
    breach = ContractorBreach(**payload.model_dump(), status=vs.BREACH_ACTIVE)
    db.add(breach)
    await db.commit()
    await db.refresh(breach)
    return breach
