from app.models.account import Account, Product, Opportunity
from app.models.deposit import (
    Deposit,
    DepositLineItem,
    DepositLineMatch,
    DepositLineMatchStatus,
)
from app.models.revenue_schedule import (
    MATCHABLE_STATUSES,
    RevenueSchedule,
    RevenueScheduleStatus,
)
from app.models.system_setting import SystemSetting

__all__ = [
    "Account",
    "Product",
    "Opportunity",
    "Deposit",
    "DepositLineItem",
    "DepositLineMatch",
    "DepositLineMatchStatus",
    "MATCHABLE_STATUSES",
    "RevenueSchedule",
    "RevenueScheduleStatus",
    "SystemSetting",
]
