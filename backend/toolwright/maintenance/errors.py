"""Error taxonomy for the schema maintenance engine."""

from __future__ import annotations


class MaintenanceError(RuntimeError):
    """Base error carrying a stable code and an HTTP status for routers."""

    code = "MAINTENANCE_ERROR"
    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ProposalNotFoundError(MaintenanceError):
    """Raised when a proposal id is unknown under the calling tenant."""

    code = "PROPOSAL_NOT_FOUND"
    status_code = 404

    def __init__(self, proposal_id: str) -> None:
        super().__init__(f"Maintenance proposal not found: {proposal_id}")
        self.proposal_id = proposal_id


class InvalidProposalTransitionError(MaintenanceError):
    """Raised when a status change is outside the transition table."""

    code = "INVALID_PROPOSAL_TRANSITION"
    status_code = 409

    def __init__(self, current_status: str, requested: str) -> None:
        super().__init__(f"Cannot transition proposal from '{current_status}' to '{requested}'")
        self.current_status = current_status
        self.requested = requested


class ProposalConflictError(MaintenanceError):
    """Raised when a pending proposal already exists for the action."""

    code = "PROPOSAL_CONFLICT"
    status_code = 409

    def __init__(self, action_id: str) -> None:
        super().__init__(f"A pending maintenance proposal already exists for action {action_id}")
        self.action_id = action_id


class SchemaApplicationError(MaintenanceError):
    """Raised when the approval transaction could not be committed."""

    code = "SCHEMA_APPLICATION_ERROR"
    status_code = 500

    def __init__(self, proposal_id: str, reason: str) -> None:
        super().__init__(f"Failed to apply schema changes for proposal {proposal_id}: {reason}")
        self.proposal_id = proposal_id


class RevertError(MaintenanceError):
    """Raised when the revert transaction could not be committed."""

    code = "REVERT_ERROR"
    status_code = 500

    def __init__(self, proposal_id: str, reason: str) -> None:
        super().__init__(f"Failed to revert proposal {proposal_id}: {reason}")
        self.proposal_id = proposal_id


class InvalidMaintenanceInputError(MaintenanceError):
    """Raised for malformed queries, decisions, or configuration payloads."""

    code = "INVALID_INPUT"
    status_code = 400
