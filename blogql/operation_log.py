import json
import logging
import typing
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class IncomingOperation:
    query: str
    operation_name: typing.Optional[str] = None
    variables: typing.Optional[typing.Dict[str, typing.Any]] = None
    method: str = 'POST'


class OperationLogger(Protocol):
    def record_operation(self, operation: IncomingOperation) -> None:
        ...


class NullOperationLogger:
    def record_operation(self, operation: IncomingOperation) -> None:
        return None


class LoggingOperationLogger:
    """Record incoming operations on a standard library logger.

    One INFO line per operation. With ``verbose`` the query text and variables
    follow as DEBUG lines.
    """

    def __init__(self, logger: logging.Logger = None, verbose: bool = False) -> None:
        self.logger = logger or logging.getLogger('blogql.operations')
        self.verbose = verbose

    def record_operation(self, operation: IncomingOperation) -> None:
        self.logger.info(
            'Incoming GraphQL %s operation=%s variables=%s',
            operation.method,
            operation.operation_name or '<anonymous>',
            sorted(operation.variables) if operation.variables else [],
        )
        if not self.verbose:
            return
        self.logger.debug('Query: %s', operation.query)
        if operation.variables:
            self.logger.debug('Variables: %s', json.dumps(operation.variables, default=str))
