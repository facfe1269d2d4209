"""
Bulk Importer

Turns an uploaded CSV of orders into `new` confirmation calls. Rows are
processed in order, best effort: a bad row is recorded and skipped, a
same-day duplicate phone is counted and skipped, and every admitted row is
assigned the next agent in round-robin order.
"""

import csv
import io
import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from dateutil import parser as date_parser
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import CallStatus, CallType, User
from db.repositories import calls as calls_repo
from errors import ImportRowError, ValidationError
from workflow.ledger import to_money
from workflow.timer import to_local_naive

logger = logging.getLogger(__name__)

# Normalized field -> accepted (lower-cased) CSV headers, first match wins
COLUMN_ALIASES: Dict[str, tuple] = {
    "date": ("date",),
    "customer_name": ("name", "customer_name", "customer"),
    "phone": ("phone", "phone_number"),
    "awb": ("awb",),
    "order_sku": ("order", "order_sku", "sku"),
    "quantity": ("qty", "quantity"),
    "current_price": ("price", "current_price"),
    "shipping_fee": ("sf", "shipping_fee", "shipping"),
    "address": ("address",),
}

REQUIRED_FIELDS = ("customer_name", "phone", "order_sku")


@dataclass
class ImportSummary:
    success: int = 0
    duplicates: int = 0
    errors: List[ImportRowError] = field(default_factory=list)
    next_cursor: int = 0

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "duplicates": self.duplicates,
            "errors": [asdict(e) for e in self.errors],
        }


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Parse CSV text into rows keyed by trimmed, lower-cased headers.

    Blank lines are skipped. Raises ValidationError when there is no header.
    """
    text = text.lstrip("\ufeff")
    reader = csv.DictReader(io.StringIO(text), skipinitialspace=True)
    if not reader.fieldnames:
        raise ValidationError("CSV file has no header row", ["file"])
    reader.fieldnames = [(h or "").strip().lower() for h in reader.fieldnames]

    rows = []
    try:
        for raw in reader:
            row = {k: (v or "").strip() for k, v in raw.items() if k}
            if any(row.values()):
                rows.append(row)
    except csv.Error as exc:
        raise ValidationError(f"CSV parsing error: {exc}", ["file"]) from exc
    return rows


def normalize_row(row: Dict[str, str]) -> Dict[str, str]:
    """Map a raw row onto normalized field names (header match is case-insensitive)."""
    lowered = {str(k).strip().lower(): (v or "").strip() for k, v in row.items() if k is not None}
    out = {}
    for name, aliases in COLUMN_ALIASES.items():
        out[name] = next((lowered[a] for a in aliases if lowered.get(a)), "")
    return out


def _parse_date(value: str, today: date) -> datetime:
    if not value:
        return datetime.combine(today, datetime.min.time())
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"Invalid date: {value!r}") from exc
    return to_local_naive(parsed)


def _parse_quantity(value: str) -> int:
    if not value:
        return 1
    try:
        qty = int(Decimal(value))
    except ArithmeticError as exc:
        raise ValueError(f"Invalid quantity: {value!r}") from exc
    if qty < 1:
        raise ValueError(f"Invalid quantity: {value!r}")
    return qty


def _parse_money(value: str, label: str) -> Decimal:
    if not value:
        return to_money(0)
    try:
        amount = to_money(value.replace(",", ""))
    except ValidationError as exc:
        raise ValueError(f"Invalid {label}: {value!r}") from exc
    if amount < 0:
        raise ValueError(f"Invalid {label}: {value!r}")
    return amount


def build_call_data(row: Dict[str, str], today: Optional[date] = None) -> dict:
    """Validate one normalized row and convert it to call column values.

    Raises ValueError with a row-level message.
    """
    missing = [f for f in REQUIRED_FIELDS if not row.get(f)]
    if missing:
        raise ValueError("Missing required fields (name, phone, order)")

    return {
        "date": _parse_date(row.get("date", ""), today or date.today()),
        "customer_name": row["customer_name"],
        "phone": row["phone"],
        "awb": row.get("awb") or None,
        "order_sku": row["order_sku"],
        "quantity": _parse_quantity(row.get("quantity", "")),
        "current_price": _parse_money(row.get("current_price", ""), "price"),
        "shipping_fee": _parse_money(row.get("shipping_fee", ""), "shipping fee"),
        "address": row.get("address") or None,
        "status": CallStatus.NEW.value,
        "call_type": CallType.CONFIRMATION.value,
    }


def pick_agent(agents: Sequence[User], cursor: int) -> Optional[User]:
    """Round-robin: agent `cursor mod N`, or None without agents."""
    if not agents:
        return None
    return agents[cursor % len(agents)]


async def import_rows(
    session: AsyncSession,
    rows: Iterable[Dict[str, str]],
    agents: Sequence[User],
    cursor: int = 0,
    today: Optional[date] = None,
) -> ImportSummary:
    """
    Create calls from parsed rows.

    `cursor` is the round-robin position of the first admitted row; the
    position after the last admitted row is returned as next_cursor.
    Duplicates and failed rows do not advance it. Each row runs in its own
    savepoint, so a failed insert rolls back only that row.
    """
    summary = ImportSummary(next_cursor=cursor)

    for index, raw in enumerate(rows, start=1):
        try:
            data = build_call_data(normalize_row(raw), today)
        except (ValueError, ArithmeticError) as exc:
            summary.errors.append(ImportRowError(row=index, message=str(exc), data=dict(raw)))
            continue

        try:
            async with session.begin_nested():
                duplicate = await calls_repo.check_duplicate(session, data["phone"], data["date"])
                if duplicate is not None:
                    summary.duplicates += 1
                    continue
                agent = pick_agent(agents, summary.next_cursor)
                data["agent_id"] = agent.id if agent is not None else None
                await calls_repo.create(session, data)
        except Exception as exc:
            logger.warning("Import row %d failed: %s", index, exc, exc_info=True)
            summary.errors.append(ImportRowError(row=index, message=str(exc), data=dict(raw)))
            continue

        summary.success += 1
        summary.next_cursor += 1

    logger.info(
        "Import finished: %d created, %d duplicates, %d errors",
        summary.success, summary.duplicates, len(summary.errors),
    )
    return summary


async def import_csv(
    session: AsyncSession,
    text: str,
    agents: Sequence[User],
    cursor: int = 0,
    today: Optional[date] = None,
) -> ImportSummary:
    """parse_csv + import_rows."""
    return await import_rows(session, parse_csv(text), agents, cursor=cursor, today=today)
