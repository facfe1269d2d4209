"""Dashboard KPI schemas."""
from datetime import date
from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, Field


class StatusCount(BaseModel):
    status: str
    count: int


class DayRevenue(BaseModel):
    date: date
    revenue: Decimal


class DashboardStats(BaseModel):
    day: date
    total_calls: int
    successful_upsells: int
    revenue: Decimal
    conversion_rate: Decimal  # percent, 2 decimals, ROUND_HALF_UP
    calls_by_status: List[StatusCount] = Field(default_factory=list)
    revenue_by_day: List[DayRevenue] = Field(default_factory=list)


class AgentSummary(BaseModel):
    id: UUID
    username: str
    role: str


class AgentPerformance(BaseModel):
    agent: AgentSummary
    calls_handled: int
    transactions: int
    upsells_closed: int
    conversion_rate: Decimal
    revenue: Decimal
    average_handling_time: Decimal  # minutes
