from .users import UserCreate, UserUpdate, LoginRequest, UserOut
from .products import ProductCreate, ProductUpdate, ProductOut
from .calls import (
    CallCreate,
    CallUpdate,
    TransactionCreate,
    AssignRequest,
    CallActionRequest,
    UpsellRequest,
    NoteRequest,
    CallOut,
    CallHistoryOut,
)
from .dashboard import StatusCount, DayRevenue, DashboardStats, AgentSummary, AgentPerformance
from .imports import ImportRowErrorOut, ImportSummaryOut

__all__ = [
    "UserCreate", "UserUpdate", "LoginRequest", "UserOut",
    "ProductCreate", "ProductUpdate", "ProductOut",
    "CallCreate", "CallUpdate", "TransactionCreate", "AssignRequest",
    "CallActionRequest", "UpsellRequest", "NoteRequest", "CallOut", "CallHistoryOut",
    "StatusCount", "DayRevenue", "DashboardStats", "AgentSummary", "AgentPerformance",
    "ImportRowErrorOut", "ImportSummaryOut",
]
