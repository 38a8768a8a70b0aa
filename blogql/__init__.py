from .applications import GraphQL, create_app  # noqa
from .config import Settings, load_settings  # noqa
from .exceptions import ConfigurationError, OperationError, SchemaConfigError  # noqa
from .federation import EntityDeclaration, Ownership, SchemaRegistry  # noqa
from .operation_log import IncomingOperation, LoggingOperationLogger, OperationLogger  # noqa
from .resolvers import ResolverMap, bind_resolvers, build_resolver_map, reference_stub  # noqa
from .store import DataStore, load_store  # noqa

__version__ = '0.1.0'
