"""Reference sync pipeline.

A run walks the fixed category plan in dependency order. For each category the
orchestrator asks the serving adapter for intermediate records, hands them to
the category's write step inside one unit of work and records the outcome in
the sync history.
"""

from __future__ import annotations

from .categories import CATEGORY_PLAN, CategorySpec, select_plan
from .orchestrator import (
    CategoryResult,
    SyncAlreadyRunningError,
    SyncOrchestrator,
    SyncRunResult,
    UnitOfWorkFactory,
)
from .steps import WRITE_STEPS, StepOutcome, WriteStep, fetch_context

__all__ = [
    "CATEGORY_PLAN",
    "WRITE_STEPS",
    "CategoryResult",
    "CategorySpec",
    "StepOutcome",
    "SyncAlreadyRunningError",
    "SyncOrchestrator",
    "SyncRunResult",
    "UnitOfWorkFactory",
    "WriteStep",
    "fetch_context",
    "select_plan",
]
