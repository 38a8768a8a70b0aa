from blogql.config import DEFAULT_DATA_FILE, DEFAULT_SCHEMA_FILE, Settings, load_settings


def test_defaults():
    settings = load_settings(environ={})
    assert settings == Settings()
    assert settings.port == 4001
    assert settings.path == '/graphql'
    assert settings.schema_file == DEFAULT_SCHEMA_FILE
    assert settings.data_file == DEFAULT_DATA_FILE


def test_reads_environment():
    settings = load_settings(
        environ={
            'PORT': '8080',
            'GRAPHQL_PATH': '/',
            'DEBUG': 'true',
            'LOG_LEVEL': 'debug',
            'LOG_OPERATIONS': 'false',
            'LOG_OPERATIONS_VERBOSE': '1',
            'SCHEMA_FILE': '/srv/schema.graphql',
        }
    )
    assert settings.port == 8080
    assert settings.path == '/'
    assert settings.debug is True
    assert settings.log_level == 'DEBUG'
    assert settings.log_operations is False
    assert settings.log_operations_verbose is True
    assert settings.schema_file == '/srv/schema.graphql'


def test_reads_env_file(tmp_path):
    env_file = tmp_path / '.env'
    env_file.write_text('PORT=5005\nHOST=0.0.0.0\n')
    settings = load_settings(str(env_file), environ={'PORT': '6006'})
    assert settings.port == 6006
    assert settings.host == '0.0.0.0'
