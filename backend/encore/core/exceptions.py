"""Exception hierarchy for the pipeline and review flow."""


class EncoreError(Exception):
    """Base class for all pipeline errors."""


class StoreError(EncoreError):
    """The backing store rejected or failed an operation."""


class ConfigurationError(EncoreError):
    """A data source's scraper configuration is missing or malformed."""


class ScrapeCancelled(EncoreError):
    """Raised when a run's cancellation token fires before a fetch."""

    def __init__(self, message: str = "Scraping run cancelled"):
        super().__init__(message)


class RunNotFoundError(EncoreError):
    def __init__(self, run_id):
        super().__init__(f"Scraping run not found: {run_id}")
        self.run_id = run_id


class RunStateError(EncoreError):
    """A run was asked to move out of a terminal state."""


class RunConflictError(EncoreError):
    """Another run is already active."""

    def __init__(self, active_run_id):
        super().__init__(f"Another scraping run is already active: {active_run_id}")
        self.active_run_id = active_run_id


class RunFailedError(EncoreError):
    """A run reached the failed state. Carries the captured message."""

    def __init__(self, run_id, message: str):
        super().__init__(message)
        self.run_id = run_id
        self.message = message


class ReviewError(EncoreError):
    """Review/promotion failure with a machine-readable code.

    Codes: invalid_parameters, unauthorized, not_found, store_error,
    promotion_failed.
    """

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message
