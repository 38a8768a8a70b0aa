import typing

from graphql import GraphQLError


class ConfigurationError(Exception):
    """Raised while building the application, never per request."""


class SchemaConfigError(ConfigurationError):
    pass


class OperationError(Exception):
    """Request could not be turned into an executable operation.

    Served as a transport level failure (HTTP 400) with ``errors`` and no ``data``.
    """

    def __init__(self, errors: typing.List[GraphQLError]) -> None:
        self.errors = errors
        super().__init__('; '.join(error.message for error in errors))
