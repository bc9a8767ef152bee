from pydantic import BaseModel

from drum_returns.schemas.drum import DrumSummaryOut


class ClientDashboardOut(BaseModel):
    company_tax_id: str
    drums: DrumSummaryOut
    pending_requests: int
    total_requests: int
    return_period_days: int


class AdminDashboardOut(BaseModel):
    companies: int
    drums: DrumSummaryOut
    requests_by_status: dict[str, int]
    high_priority_pending: int
