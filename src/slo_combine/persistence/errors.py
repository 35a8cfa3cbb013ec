"""Persistence error taxonomy."""


class PersistenceError(Exception):
    """Base class for selection persistence failures."""


class StoreUnavailable(PersistenceError):
    """The document store could not be opened."""


class LoadFailure(PersistenceError):
    """Reading the persisted selection failed."""


class SaveFailure(PersistenceError):
    """Writing the selection failed; nothing was persisted."""
