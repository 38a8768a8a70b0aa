import os
import typing
from dataclasses import dataclass

from starlette.config import Config

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_SCHEMA_FILE = os.path.join(PACKAGE_DIR, 'schema.graphql')
EXTENDED_SCHEMA_FILE = os.path.join(PACKAGE_DIR, 'schema_extended.graphql')
DEFAULT_DATA_FILE = os.path.join(PACKAGE_DIR, 'data.json')


@dataclass(frozen=True)
class Settings:
    host: str = '127.0.0.1'
    port: int = 4001
    path: str = '/graphql'
    schema_file: str = DEFAULT_SCHEMA_FILE
    data_file: str = DEFAULT_DATA_FILE
    debug: bool = False
    log_level: str = 'INFO'
    log_operations: bool = True
    log_operations_verbose: bool = False


def load_settings(
    env_file: typing.Optional[str] = None, environ: typing.Optional[typing.Mapping[str, str]] = None
) -> Settings:
    """Read settings from the environment, falling back to ``env_file``."""
    if environ is None:
        config = Config(env_file)
    else:
        config = Config(env_file, environ=environ)

    return Settings(
        host=config('HOST', default=Settings.host),
        port=config('PORT', cast=int, default=Settings.port),
        path=config('GRAPHQL_PATH', default=Settings.path),
        schema_file=config('SCHEMA_FILE', default=DEFAULT_SCHEMA_FILE),
        data_file=config('DATA_FILE', default=DEFAULT_DATA_FILE),
        debug=config('DEBUG', cast=bool, default=False),
        log_level=config('LOG_LEVEL', default=Settings.log_level).upper(),
        log_operations=config('LOG_OPERATIONS', cast=bool, default=True),
        log_operations_verbose=config('LOG_OPERATIONS_VERBOSE', cast=bool, default=False),
    )
