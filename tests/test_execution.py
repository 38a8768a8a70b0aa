import asyncio

import pytest
from graphql import build_schema

from blogql.exceptions import OperationError
from blogql.execution import run_operation


@pytest.fixture
def schema():
    schema = build_schema(
        """
        type Query {
          shelf: Shelf
          greeting(name: String!): String
          count: Int
        }

        type Shelf {
          label: String
          book: Book
        }

        type Book {
          title: String!
        }
        """
    )

    def broken_title(*_):
        raise ValueError('title unavailable')

    query_fields = schema.query_type.fields
    query_fields['shelf'].resolve = lambda *_: {'label': 'classics', 'book': {}}
    query_fields['greeting'].resolve = lambda _, info, name: f'Hello, {name}'
    query_fields['count'].resolve = lambda *_: 3
    schema.get_type('Book').fields['title'].resolve = broken_title
    return schema


def run(schema, source, **kwargs):
    return asyncio.run(run_operation(schema, source, **kwargs))


def test_executes_operation(schema):
    result = run(schema, 'query($name: String!) { greeting(name: $name) }', variables={'name': 'Ada'})
    assert result.errors is None
    assert result.data == {'greeting': 'Hello, Ada'}


def test_error_nulls_nearest_nullable_ancestor(schema):
    result = run(schema, '{ count shelf { label book { title } } }')
    assert result.data == {'count': 3, 'shelf': {'label': 'classics', 'book': None}}
    assert len(result.errors) == 1
    assert result.errors[0].message == 'title unavailable'
    assert result.errors[0].path == ['shelf', 'book', 'title']


def test_syntax_error_raises(schema):
    with pytest.raises(OperationError) as exc_info:
        run(schema, '{ count ')
    assert exc_info.value.errors[0].message.startswith('Syntax Error')


def test_empty_query_raises(schema):
    with pytest.raises(OperationError, match='Must provide query string'):
        run(schema, '   ')


def test_validation_errors_are_returned(schema):
    result = run(schema, '{ count notAField }')
    assert result.data is None
    assert "Cannot query field 'notAField' on type 'Query'." in result.errors[0].message


def test_missing_variable_raises(schema):
    with pytest.raises(OperationError) as exc_info:
        run(schema, 'query($name: String!) { greeting(name: $name) }')
    assert "'$name'" in exc_info.value.errors[0].message


def test_ill_typed_variable_raises(schema):
    with pytest.raises(OperationError):
        run(schema, 'query($name: String!) { greeting(name: $name) }', variables={'name': {'first': 'Ada'}})


def test_multiple_operations_need_a_name(schema):
    with pytest.raises(OperationError, match='Must provide operation name'):
        run(schema, 'query A { count } query B { shelf { label } }')


def test_unknown_operation_name(schema):
    with pytest.raises(OperationError, match="Unknown operation named 'C'"):
        run(schema, 'query A { count } query B { shelf { label } }', operation_name='C')
