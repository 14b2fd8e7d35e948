class PublishError(Exception):
    """Base for failures that abort a listing submission."""


class PublishValidationError(PublishError):
    """Raised before any network call when the form is incomplete or invalid."""

    def __init__(self, problems: list[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


class ImageUploadError(PublishError):
    """Raised when at least one image upload fails; no listing is created."""


class ListingPersistError(PublishError):
    """Raised when the listing record could not be created."""
