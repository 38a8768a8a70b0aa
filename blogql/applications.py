import json
import logging
import traceback
import typing

from graphql import GraphQLError, GraphQLSchema, Middleware
from starlette import status
from starlette.applications import Starlette
from starlette.background import BackgroundTasks
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import BaseRoute, Route
from starlette.types import Receive, Scope, Send

from .config import Settings
from .exceptions import OperationError
from .execution import run_operation
from .federation import SchemaRegistry
from .operation_log import (
    IncomingOperation,
    LoggingOperationLogger,
    NullOperationLogger,
    OperationLogger,
)
from .resolvers import bind_resolvers, build_resolver_map
from .store import DataStore, load_store

logger = logging.getLogger(__name__)

ERROR_FORMATER = typing.Callable[[GraphQLError], typing.Dict[str, typing.Any]]


class GraphQL(Starlette):
    def __init__(
        self,
        schema: GraphQLSchema,
        *,
        debug: bool = False,
        routes: typing.List[BaseRoute] = None,
        path: str = '/graphql',
        error_formater: ERROR_FORMATER = None,
        graphql_middleware: Middleware = None,
        context_builder: typing.Callable = None,
        operation_logger: OperationLogger = None,
        **kwargs,
    ):
        routes = routes or []
        self.schema = schema

        routes.extend(
            [
                Route(
                    path,
                    ASGIApp(
                        self.schema,
                        debug=debug,
                        error_formater=error_formater,
                        graphql_middleware=graphql_middleware,
                        context_builder=context_builder,
                        operation_logger=operation_logger,
                    ),
                ),
                Route('/health', health, methods=['GET']),
            ]
        )
        super().__init__(debug=debug, routes=routes, **kwargs)


async def health(request: Request) -> Response:
    return JSONResponse({'status': 'ok'})


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> Response:
    return JSONResponse({'errors': [{'message': message}]}, status_code=status_code)


class ASGIApp:
    def __init__(
        self,
        schema: GraphQLSchema,
        debug: bool = False,
        error_formater: ERROR_FORMATER = None,
        graphql_middleware: Middleware = None,
        context_builder: typing.Callable = None,
        operation_logger: OperationLogger = None,
    ) -> None:
        self.schema = schema
        self.error_formater = error_formater or self.format_error
        self.debug = debug
        self.middleware = graphql_middleware
        self.context_builder = context_builder
        self.operation_logger = operation_logger or NullOperationLogger()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive=receive, send=send)
        response = await self.handle_graphql(request)
        await response(scope, receive, send)

    def format_error(self, error: GraphQLError) -> typing.Dict[str, typing.Any]:
        if not error:
            raise ValueError("Received null or undefined error.")
        formatted = dict(
            message=error.message or "An unknown error occurred.",
            locations=[location._asdict() for location in error.locations] if error.locations else None,
            path=error.path,
        )
        if self.debug and error.original_error:
            original_error = error.original_error
            extensions = dict(error.extensions or {})
            exception = dict(extensions.get('exception', {}))
            exception['traceback'] = traceback.format_exception(
                type(original_error), original_error, original_error.__traceback__
            )
            extensions['exception'] = exception
            formatted.update(extensions=extensions)
        elif error.extensions:
            formatted.update(extensions=error.extensions)
        return formatted

    def format_errors(self, errors: typing.List[GraphQLError]) -> typing.List[typing.Dict[str, typing.Any]]:
        return [self.error_formater(error) for error in errors]

    def read_query_params(self, request: Request) -> typing.Union[typing.Dict[str, typing.Any], Response]:
        data: typing.Dict[str, typing.Any] = dict(request.query_params)
        if isinstance(data.get('variables'), str):
            try:
                data['variables'] = json.loads(data['variables'])
            except ValueError:
                return error_response('Variables are invalid JSON.')
        return data

    async def read_operation(self, request: Request) -> typing.Union[typing.Mapping[str, typing.Any], Response]:
        if request.method in ('GET', 'HEAD'):
            return self.read_query_params(request)

        content_type = request.headers.get('Content-Type', '')
        if 'application/json' in content_type:
            try:
                data = await request.json()
            except ValueError:
                return error_response('POST body sent invalid JSON.')
            if not isinstance(data, dict):
                return error_response('POST body must be a JSON object.')
            return data
        if 'application/graphql' in content_type:
            body = await request.body()
            return {'query': body.decode()}
        if 'query' in request.query_params:
            return self.read_query_params(request)

        return PlainTextResponse(
            'Unsupported Media Type', status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        )

    async def handle_graphql(self, request: Request) -> Response:
        if request.method not in ('GET', 'HEAD', 'POST'):
            return PlainTextResponse(
                'Method Not Allowed', status_code=status.HTTP_405_METHOD_NOT_ALLOWED
            )

        data = await self.read_operation(request)
        if isinstance(data, Response):
            return data

        try:
            query = data['query']
            variables = data.get('variables')
            operation_name = data.get('operationName')
        except KeyError:
            return error_response('No GraphQL query found in the request')

        if variables is not None and not isinstance(variables, dict):
            return error_response('Variables must be provided as an object.')

        self.operation_logger.record_operation(
            IncomingOperation(
                query=query,
                operation_name=operation_name,
                variables=variables,
                method=request.method,
            )
        )

        background = BackgroundTasks()
        context = self.context_builder() if self.context_builder else {}
        context.update(request=request, background=background)

        try:
            result = await run_operation(
                self.schema,
                query,
                variables=variables,
                operation_name=operation_name,
                context_value=context,
                middleware=self.middleware,
            )
        except OperationError as exc:
            return JSONResponse(
                {'errors': self.format_errors(exc.errors)}, status_code=status.HTTP_400_BAD_REQUEST
            )

        response_data: typing.Dict[str, typing.Any] = {'data': result.data}
        if result.errors:
            response_data['errors'] = self.format_errors(result.errors)
            logger.debug('Operation %s finished with %d error(s)', operation_name, len(result.errors))
        return JSONResponse(response_data, status_code=status.HTTP_200_OK, background=background)


def make_operation_logger(settings: Settings) -> OperationLogger:
    if not settings.log_operations:
        return NullOperationLogger()
    return LoggingOperationLogger(verbose=settings.log_operations_verbose)


def create_app(
    settings: Settings = None,
    operation_logger: OperationLogger = None,
    store: DataStore = None,
    context_builder: typing.Callable = None,
    graphql_middleware: Middleware = None,
) -> GraphQL:
    """Configuration problems raise here, before any request is served."""
    settings = settings or Settings()
    registry = SchemaRegistry.from_file(settings.schema_file)
    store = store if store is not None else load_store(settings.data_file)
    schema = bind_resolvers(registry.build_schema(), registry, build_resolver_map(store, registry))
    for name, entity in sorted(registry.entities.items()):
        logger.info(
            'Entity %s is %s here, key (%s)', name, entity.ownership.value, ', '.join(entity.key_fields)
        )

    return GraphQL(
        schema,
        debug=settings.debug,
        path=settings.path,
        context_builder=context_builder,
        graphql_middleware=graphql_middleware,
        operation_logger=operation_logger or make_operation_logger(settings),
    )

