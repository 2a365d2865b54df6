"""
Job-related schemas.
"""

from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class JobSummary(BaseModel):
    """Background job as seen by operators."""
    job_id: str
    type: str
    status: str  # waiting, running, completed, failed, cancelled
    data: Dict[str, Any] = {}
    attempts: int = 0
    schedule: Optional[str] = None
    run_at: Optional[str] = None
    message: Optional[str] = None


class JobListResponse(BaseModel):
    """Response for list jobs."""
    items: List[JobSummary]
