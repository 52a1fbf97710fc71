# errors.py — Phase routing error types with DUB-DOMAIN-NUMBER codes
from typing import Optional

# ============================================================
# ERROR CODE CATALOGUE
# DUB-{DOMAIN}-{NUMBER}
# Domains: TASK, ROUTE, PHASE
# ============================================================

ERROR_CATALOGUE = {
    "DUB-TASK-001": {"message": "Task not found", "http_status": 404},
    "DUB-TASK-002": {"message": "Task lane not found", "http_status": 404},
    "DUB-ROUTE-001": {"message": "No board configured for phase", "http_status": 404},
    "DUB-ROUTE-002": {"message": "Tasks belong to different pipelines", "http_status": 400},
    "DUB-PHASE-001": {"message": "Unknown phase", "http_status": 400},
}


class PhaseRoutingError(Exception):
    """Base class for failures that abort a task transition."""

    code = "DUB-ROUTE-000"
    http_status = 500

    def __init__(self, message: Optional[str] = None):
        if message is None:
            message = ERROR_CATALOGUE.get(self.code, {}).get("message", "Phase routing failed")
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class TaskNotFoundError(PhaseRoutingError):
    code = "DUB-TASK-001"
    http_status = 404

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class LaneNotFoundError(PhaseRoutingError):
    code = "DUB-TASK-002"
    http_status = 404

    def __init__(self, lane_id: str):
        super().__init__(f"Lane not found: {lane_id}")
        self.lane_id = lane_id


class BoardNotFoundError(PhaseRoutingError):
    """No non-HQ board in the workspace matches the prefix and phase."""

    code = "DUB-ROUTE-001"
    http_status = 404

    def __init__(self, phase: str, prefix: str):
        super().__init__(f"No board configured for phase: {phase} (prefix {prefix!r})")
        self.phase = phase
        self.prefix = prefix


class MixedPipelineBatchError(PhaseRoutingError):
    """A batch move spans boards of more than one pipeline family."""

    code = "DUB-ROUTE-002"
    http_status = 400

    def __init__(self, anchor_board: str, other_board: str):
        super().__init__(f"Cannot move tasks from {other_board} together with {anchor_board}")
        self.anchor_board = anchor_board
        self.other_board = other_board


class UnknownPhaseError(PhaseRoutingError):
    code = "DUB-PHASE-001"
    http_status = 400

    def __init__(self, label: str):
        super().__init__(f"Unknown phase: {label}")
        self.label = label
