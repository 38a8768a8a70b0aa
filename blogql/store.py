import json
import logging
import typing
from collections import defaultdict
from types import MappingProxyType

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

Record = typing.Mapping[str, typing.Any]


def index_by(records: typing.Sequence[Record], key: str) -> typing.Mapping[str, Record]:
    """Index records by ``key``, keeping the first record for a duplicated value."""
    index: typing.Dict[str, Record] = {}
    for record in records:
        index.setdefault(record[key], record)
    return MappingProxyType(index)


def group_by(records: typing.Sequence[Record], key: str) -> typing.Mapping[str, typing.Tuple[Record, ...]]:
    groups: typing.Dict[str, typing.List[Record]] = defaultdict(list)
    for record in records:
        value = record.get(key)
        if value is not None:
            groups[value].append(record)
    return MappingProxyType({value: tuple(items) for value, items in groups.items()})


class DataStore:
    """Read-only snapshot of authors and blogs.

    Collections keep snapshot order. Records are exposed as read-only mappings.
    """

    authors: typing.Tuple[Record, ...]
    blogs: typing.Tuple[Record, ...]

    def __init__(
        self, authors: typing.Iterable[Record], blogs: typing.Iterable[Record]
    ) -> None:
        self.authors = tuple(MappingProxyType(dict(author)) for author in authors)
        self.blogs = tuple(MappingProxyType(dict(blog)) for blog in blogs)
        self._authors_by_id = index_by(self.authors, 'id')
        self._blogs_by_id = index_by(self.blogs, 'id')
        self._blogs_by_author = group_by(self.blogs, 'authorId')

    def get_author(self, author_id: str) -> typing.Optional[Record]:
        return self._authors_by_id.get(author_id)

    def get_blog(self, blog_id: str) -> typing.Optional[Record]:
        return self._blogs_by_id.get(blog_id)

    def get_author_blogs(self, author_id: str) -> typing.List[Record]:
        return list(self._blogs_by_author.get(author_id, ()))


def _read_collection(data: typing.Mapping[str, typing.Any], name: str, source: str) -> list:
    records = data.get(name)
    if not isinstance(records, list):
        raise ConfigurationError(f'{source}: expected a list named "{name}"')
    for position, record in enumerate(records):
        if not isinstance(record, dict) or 'id' not in record:
            raise ConfigurationError(f'{source}: {name}[{position}] must be an object with an "id"')
    return records


def load_store(path: str) -> DataStore:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as exc:
        raise ConfigurationError(f'Cannot read data file {path}: {exc}') from exc
    except ValueError as exc:
        raise ConfigurationError(f'Data file {path} is not valid JSON: {exc}') from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f'{path}: expected an object with "authors" and "blogs"')

    store = DataStore(
        authors=_read_collection(data, 'authors', path), blogs=_read_collection(data, 'blogs', path)
    )
    logger.info('Loaded %d authors and %d blogs from %s', len(store.authors), len(store.blogs), path)
    return store
