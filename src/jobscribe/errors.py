from __future__ import annotations


class JobscribeError(Exception):
    """Base class for errors raised by jobscribe."""


class ExtractionError(JobscribeError):
    """An uploaded blob could not be turned into text."""


class NotFoundError(JobscribeError):
    pass


class UnknownCollectionError(JobscribeError):
    pass


class VersionConflictError(JobscribeError):
    """The store was opened at a version lower than the one on disk.

    The handle that raised this stays closed. Callers either reopen with the
    current version or call ``DocumentStore.recreate()``, which deletes every
    collection and rebuilds the schema from scratch.
    """

    def __init__(self, requested: int, existing: int):
        super().__init__(
            f"store opened at version {requested} but database is at version {existing}"
        )
        self.requested = requested
        self.existing = existing


class DeliveryError(JobscribeError):
    """A message had nobody to receive it."""


class GenerationInputError(JobscribeError):
    pass


class ProviderError(JobscribeError):
    def __init__(self, message: str, *, http_status: int | None = None):
        super().__init__(message)
        self.http_status = http_status
        self.message = message

    @property
    def is_authorization_failure(self) -> bool:
        return self.http_status in {401, 403}
