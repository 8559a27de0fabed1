"""Exceptions raised by the screening pipeline.

Each carries the HTTP status the blueprint answers with, so routes can let
them propagate to the registered error handler.
"""


class TalentPoolError(Exception):
    status_code = 500
    code = "talent_pool_error"

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def to_dict(self):
        return {"error": self.code, "message": self.message}


class IntakeError(TalentPoolError):
    """Upload rejected before any batch was created."""
    status_code = 400
    code = "invalid_upload"


class NotFound(TalentPoolError):
    status_code = 404
    code = "not_found"

    def __init__(self, kind, ident):
        super().__init__(f"{kind} {ident} not found")
        self.kind = kind
        self.ident = ident


class ReconciliationError(TalentPoolError):
    status_code = 409
    code = "reconciliation_conflict"


class InvalidTransition(ReconciliationError):
    code = "invalid_transition"


class DispatchError(TalentPoolError):
    """Transport failure while shipping a chunk to the scoring worker."""
    status_code = 502
    code = "dispatch_failed"
