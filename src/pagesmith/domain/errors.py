class PagesmithError(Exception):
    """Base error for the site pipeline."""


class PreambleError(PagesmithError):
    """A source document's preamble could not be resolved."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


class StructuralParseFailure(PreambleError):
    pass


class DecodeFailure(PreambleError):
    pass


class MissingModule(PreambleError):
    pass


class ReservedFieldCollision(PreambleError):
    pass


class SiblingKeysForbidden(PreambleError):
    pass


class ReferenceNotFound(PreambleError):
    def __init__(self, message: str, *, source: str | None = None, target: str | None = None) -> None:
        self.target = target
        super().__init__(message, source=source)


class RenderError(PagesmithError):
    pass
