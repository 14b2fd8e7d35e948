class BackendError(Exception):
    """Raised when a call to the hosted backend fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
