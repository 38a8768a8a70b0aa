import json

import pytest

from blogql.exceptions import ConfigurationError
from blogql.store import DataStore, load_store


def test_loads_packaged_snapshot(store):
    assert [author['id'] for author in store.authors] == ['101', '102', '103', '104']
    assert len(store.blogs) == 5
    assert store.get_blog('4')['authorId'] == '102'


def test_lookups_return_none_when_missing(store):
    assert store.get_blog('999') is None
    assert store.get_author('999') is None
    assert store.get_author_blogs('999') == []


def test_records_are_read_only(store):
    with pytest.raises(TypeError):
        store.get_author('101')['name'] = 'Someone else'


def test_first_record_wins_for_duplicated_id():
    store = DataStore(
        authors=[{'id': '1', 'name': 'First'}, {'id': '1', 'name': 'Second'}],
        blogs=[],
    )
    assert store.get_author('1')['name'] == 'First'
    assert len(store.authors) == 2


def test_author_blogs_follow_snapshot_order():
    store = DataStore(
        authors=[{'id': 'a'}],
        blogs=[
            {'id': '3', 'authorId': 'a'},
            {'id': '1', 'authorId': 'b'},
            {'id': '2', 'authorId': 'a'},
            {'id': '4'},
        ],
    )
    assert [blog['id'] for blog in store.get_author_blogs('a')] == ['3', '2']


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match='Cannot read data file'):
        load_store(str(tmp_path / 'data.json'))


def test_invalid_json(tmp_path):
    path = tmp_path / 'data.json'
    path.write_text('{"authors": [')
    with pytest.raises(ConfigurationError, match='not valid JSON'):
        load_store(str(path))


def test_missing_collection(tmp_path):
    path = tmp_path / 'data.json'
    path.write_text(json.dumps({'authors': []}))
    with pytest.raises(ConfigurationError, match='expected a list named "blogs"'):
        load_store(str(path))


def test_record_without_id(tmp_path):
    path = tmp_path / 'data.json'
    path.write_text(json.dumps({'authors': [{'name': 'Anonymous'}], 'blogs': []}))
    with pytest.raises(ConfigurationError, match=r'authors\[0\]'):
        load_store(str(path))
