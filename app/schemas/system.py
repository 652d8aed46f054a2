from datetime import datetime
from typing import Optional

from app.schemas.common import CamelModel


class HealthCheckResponse(CamelModel):
    status: str
    now: datetime
    uptime_seconds: float
    db_ok: bool
    db_error: Optional[str] = None

    # middleware counters
    requests_count: int
    server_errors: int = 0
    avg_response_ms: Optional[float] = None
