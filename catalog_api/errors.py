# catalog_api/errors.py


class CatalogError(Exception):
    """Base class for errors raised by the catalog service."""


class InvalidQueryParameter(CatalogError):
    """A request parameter could not be turned into a valid query."""

    def __init__(self, param: str, message: str):
        super().__init__(message)
        self.param = param
        self.message = message
