"""Aggregate model imports so `Base.metadata` sees every table."""

from drum_returns.models.account import AdminAccount, ClientAccount, UserRole  # noqa: F401
from drum_returns.models.company import Company  # noqa: F401
from drum_returns.models.drum import Drum  # noqa: F401
from drum_returns.models.return_period import ReturnPeriodOverride  # noqa: F401
from drum_returns.models.return_request import (  # noqa: F401
    RequestPriority,
    RequestStatus,
    ReturnRequest,
)
