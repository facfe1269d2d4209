"""Tests for the CSV bulk importer."""
from datetime import date, datetime
from decimal import Decimal

import pytest

from db.repositories import calls as calls_repo
from errors import ValidationError
from workflow import importer

TODAY = date(2026, 3, 3)

CSV_TEXT = (
    "\ufeffName,Phone,Order,Qty,Price,SF,Address,AWB,Date\n"
    "Ana Cruz,0917001,SKU-1,1,100,50,Makati,AWB1,2026-03-03\n"
    "Ben Reyes,0917002,SKU-1,2,\"1,200.50\",,Pasig,,2026-03-03\n"
    "\n"
    "Cara Lim,0917003,SKU-3,1,250,,,,\n"
    "Ana Again,0917001,SKU-1,1,100,,,,2026-03-03 15:00\n"
    "No Phone,,SKU-1,1,100,,,,2026-03-03\n"
)


class TestParsing:
    def test_headers_are_lowercased_and_bom_stripped(self):
        rows = importer.parse_csv(CSV_TEXT)
        assert rows[0]["name"] == "Ana Cruz"
        assert "phone" in rows[0]

    def test_blank_lines_are_skipped(self):
        assert len(importer.parse_csv(CSV_TEXT)) == 5

    def test_no_header_is_validation_error(self):
        with pytest.raises(ValidationError):
            importer.parse_csv("")

    def test_build_call_data_defaults(self):
        row = importer.normalize_row({"Name": "Ana", "Phone": "1", "Order": "SKU-1"})
        data = importer.build_call_data(row, today=TODAY)
        assert data["date"] == datetime(2026, 3, 3)
        assert data["quantity"] == 1
        assert data["current_price"] == Decimal("0.00")
        assert data["status"] == "new"

    def test_missing_required_fields(self):
        row = importer.normalize_row({"name": "Ana", "phone": "", "order": "SKU-1"})
        with pytest.raises(ValueError, match="Missing required fields"):
            importer.build_call_data(row, today=TODAY)

    def test_bad_quantity(self):
        row = importer.normalize_row({"name": "Ana", "phone": "1", "order": "X", "qty": "0"})
        with pytest.raises(ValueError, match="quantity"):
            importer.build_call_data(row, today=TODAY)

    def test_pick_agent_wraps(self):
        assert importer.pick_agent([], 3) is None
        assert importer.pick_agent(["a", "b"], 3) == "b"


@pytest.mark.asyncio
async def test_import_summary_counts(session, agents):
    summary = await importer.import_csv(session, CSV_TEXT, agents, today=TODAY)

    assert summary.success == 3
    assert summary.duplicates == 1
    assert len(summary.errors) == 1
    assert summary.errors[0].row == 5
    assert "Missing required fields" in summary.errors[0].message
    assert summary.next_cursor == 3


@pytest.mark.asyncio
async def test_import_assigns_round_robin(session, agents):
    alice, bob = agents
    await importer.import_csv(session, CSV_TEXT, agents, today=TODAY)

    calls = await calls_repo.list_calls(session)
    by_phone = {c.phone: c for c in calls}
    assert by_phone["0917001"].agent_id == alice.id
    assert by_phone["0917002"].agent_id == bob.id
    assert by_phone["0917003"].agent_id == alice.id
    assert by_phone["0917002"].current_price == Decimal("1200.50")
    assert by_phone["0917002"].quantity == 2
    assert by_phone["0917003"].date == datetime(2026, 3, 3)
    assert all(c.status == "new" for c in calls)


@pytest.mark.asyncio
async def test_import_skips_rows_already_in_database(session, agents):
    await importer.import_csv(session, CSV_TEXT, agents, today=TODAY)
    again = await importer.import_csv(session, CSV_TEXT, agents, today=TODAY)
    assert again.success == 0
    assert again.duplicates == 4


@pytest.mark.asyncio
async def test_import_without_agents_leaves_calls_unassigned(session):
    summary = await importer.import_csv(session, CSV_TEXT, [], today=TODAY)
    assert summary.success == 3
    calls = await calls_repo.list_calls(session)
    assert all(c.agent_id is None for c in calls)


def test_summary_to_dict_shape():
    summary = importer.ImportSummary(success=1)
    assert summary.to_dict() == {"success": 1, "duplicates": 0, "errors": []}


@pytest.mark.asyncio
async def test_non_numeric_price_fails_only_that_row(session, agents):
    text = (
        "name,phone,order,price,sf\n"
        "Ana,1,SKU-1,100,\n"
        "Ben,2,SKU-1,nan,\n"
        "Cara,3,SKU-1,100,inf\n"
        "Dan,4,SKU-1,100,\n"
    )
    summary = await importer.import_csv(session, text, agents, today=TODAY)

    assert summary.success == 2
    assert [e.row for e in summary.errors] == [2, 3]
    assert "Invalid price" in summary.errors[0].message
    assert "Invalid shipping fee" in summary.errors[1].message


@pytest.mark.asyncio
async def test_same_phone_twice_in_one_batch(session, agents):
    text = (
        "name,phone,order,price,date\n"
        "Ana,0917,SKU-1,100,2026-03-03 09:00\n"
        "Ana,0917,SKU-3,250,2026-03-03 17:30\n"
        "Ana,0917,SKU-1,100,2026-03-04 09:00\n"
    )
    summary = await importer.import_csv(session, text, agents, today=TODAY)

    assert summary.success == 2
    assert summary.duplicates == 1
    assert summary.errors == []
    calls = await calls_repo.list_calls(session)
    assert sorted(c.date.day for c in calls) == [3, 4]
    assert {c.order_sku for c in calls} == {"SKU-1"}
