import typing
from inspect import isawaitable

from gql.resolver import default_field_resolver
from graphql import (
    ExecutionResult,
    GraphQLError,
    GraphQLSchema,
    Middleware,
    execute,
    get_operation_ast,
    parse,
    validate,
)
from graphql.execution.values import get_variable_values

from .exceptions import OperationError


async def run_operation(
    schema: GraphQLSchema,
    source: str,
    variables: typing.Optional[typing.Dict[str, typing.Any]] = None,
    operation_name: typing.Optional[str] = None,
    context_value: typing.Any = None,
    middleware: Middleware = None,
) -> ExecutionResult:
    """Execute one GraphQL operation.

    Raises OperationError when the request itself is malformed (syntax error,
    unknown operation, bad variables). Validation and field errors are returned in
    the ExecutionResult.
    """
    if not isinstance(source, str) or not source.strip():
        raise OperationError([GraphQLError('Must provide query string.')])

    try:
        document = parse(source)
    except GraphQLError as error:
        raise OperationError([error]) from error

    validation_errors = validate(schema, document)
    if validation_errors:
        return ExecutionResult(data=None, errors=validation_errors)

    operation = get_operation_ast(document, operation_name)
    if operation is None:
        if operation_name:
            message = f"Unknown operation named '{operation_name}'."
        else:
            message = 'Must provide operation name if query contains multiple operations.'
        raise OperationError([GraphQLError(message)])

    if variables is None:
        variables = {}
    elif not isinstance(variables, dict):
        raise OperationError([GraphQLError('Variables must be provided as an object.')])

    coerced = get_variable_values(schema, operation.variable_definitions or [], variables)
    if isinstance(coerced, list):
        raise OperationError(coerced)

    result = execute(
        schema,
        document,
        context_value=context_value,
        variable_values=variables,
        operation_name=operation_name,
        field_resolver=default_field_resolver,
        middleware=middleware,
    )
    if isawaitable(result):
        result = await result
    return result
