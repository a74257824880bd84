from __future__ import annotations


class PosterError(Exception):
    """Base class for everything the poster pipeline raises on purpose."""


class ImageLoadFailure(PosterError):
    """A cover or scan-code image could not be fetched or decoded."""

    def __init__(self, source: str, cause: BaseException | str | None = None) -> None:
        self.source = source
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"could not load image {source!r}{detail}")


class EmptySampleSet(PosterError):
    """Clustering was asked to run on zero samples."""


class MalformedDescription(PosterError):
    """The poster description is missing required fields or has the wrong shape."""


class CatalogError(PosterError):
    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)
