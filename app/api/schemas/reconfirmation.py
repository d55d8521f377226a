from pydantic import BaseModel


class ReconfirmationStatusResponse(BaseModel):
    is_running: bool
    check_interval_seconds: float
    next_check_at: str | None = None
    last_run_at: str | None = None
    last_run_checked: int | None = None
    last_run_updated: int | None = None


class ReconfirmationRunResponse(BaseModel):
    checked: int
    updated: int
    failed: int = 0
    skipped: bool = False
    already_running: bool = False
