import logging
import typing

from graphql import (
    GraphQLError,
    GraphQLObjectType,
    GraphQLResolveInfo,
    GraphQLSchema,
    get_named_type,
    is_leaf_type,
)

from .exceptions import SchemaConfigError
from .federation import EntityDeclaration, SchemaRegistry
from .store import DataStore, Record, index_by

logger = logging.getLogger(__name__)

FieldResolver = typing.Callable[..., typing.Any]
ReferenceResolver = typing.Callable[[typing.Mapping[str, typing.Any], GraphQLResolveInfo], typing.Any]

FEDERATION_QUERY_FIELDS = ('_service', '_entities')


class ResolverMap:
    fields: typing.Dict[typing.Tuple[str, str], FieldResolver]
    references: typing.Dict[str, ReferenceResolver]

    def __init__(self) -> None:
        self.fields = {}
        self.references = {}

    def set_field(self, type_name: str, field_name: str, resolver: FieldResolver) -> None:
        key = (type_name, field_name)
        if key in self.fields:
            raise SchemaConfigError(
                f'{type_name}.{field_name} is already registered by {self.fields[key].__qualname__}'
            )
        self.fields[key] = resolver

    def set_reference(self, type_name: str, resolver: ReferenceResolver) -> None:
        if type_name in self.references:
            raise SchemaConfigError(
                f'{type_name} reference is already registered by '
                f'{self.references[type_name].__qualname__}'
            )
        self.references[type_name] = resolver

    def field(self, type_name: str, field_name: str = None):
        def wrap(func: FieldResolver) -> FieldResolver:
            self.set_field(type_name, field_name or func.__name__, func)
            return func

        return wrap

    def query(self, field_name: str = None):
        return self.field('Query', field_name)

    def reference(self, type_name: str):
        def wrap(func: ReferenceResolver) -> ReferenceResolver:
            self.set_reference(type_name, func)
            return func

        return wrap


def with_typename(record: typing.Mapping[str, typing.Any], typename: str) -> dict:
    return {**record, '__typename': typename}


def reference_stub(
    entity: EntityDeclaration, key_values: typing.Mapping[str, typing.Any]
) -> typing.Optional[dict]:
    """Reference to an entity owned elsewhere, None when a key value is missing."""
    stub = {'__typename': entity.type_name}
    for name in entity.key_fields:
        value = key_values[name]
        if value is None:
            return None
        stub[name] = value
    return stub


def key_of(entity: EntityDeclaration, representation: typing.Mapping[str, typing.Any]) -> tuple:
    missing = [name for name in entity.key_fields if name not in representation]
    if missing:
        raise GraphQLError(
            f'Representation of {entity.type_name} is missing key field(s): {", ".join(missing)}'
        )
    return tuple(representation[name] for name in entity.key_fields)


def make_reference_resolver(
    entity: EntityDeclaration, records: typing.Sequence[Record]
) -> ReferenceResolver:
    """Resolve a representation of ``entity`` by exact match on all key fields."""
    if len(entity.key_fields) == 1:
        index = index_by(records, entity.key_fields[0])

        def find(key: tuple) -> typing.Optional[Record]:
            return index.get(key[0])

    else:

        def find(key: tuple) -> typing.Optional[Record]:
            for record in records:
                if tuple(record.get(name) for name in entity.key_fields) == key:
                    return record
            return None

    def resolve_reference(representation, info):
        record = find(key_of(entity, representation))
        return with_typename(record, entity.type_name) if record is not None else None

    resolve_reference.__qualname__ = f'resolve_{entity.type_name.lower()}_reference'
    return resolve_reference


def make_entities_resolver(registry: SchemaRegistry, resolver_map: ResolverMap) -> FieldResolver:
    def resolve_entities(_, info: GraphQLResolveInfo, representations: list) -> list:
        result = []
        for representation in representations:
            if not isinstance(representation, typing.Mapping):
                raise GraphQLError('Entity representations must be objects.')
            typename = representation.get('__typename')
            entity = registry.get_entity(typename)
            if entity is None:
                raise GraphQLError(
                    f'The `_entities` resolver tried to load an entity for type "{typename}",'
                    ' but no entity of that name was found in the schema'
                )

            resolve_reference = resolver_map.references.get(typename)
            if resolve_reference is None:
                # Extended here: the representation is all we know.
                key_of(entity, representation)
                result.append(with_typename(representation, typename))
            else:
                result.append(resolve_reference(representation, info))
        return result

    return resolve_entities


def check_resolvers(
    schema: GraphQLSchema, registry: SchemaRegistry, resolver_map: ResolverMap
) -> typing.List[str]:
    problems = []
    for type_name, field_name in resolver_map.fields:
        type_ = schema.get_type(type_name)
        if not isinstance(type_, GraphQLObjectType) or field_name not in type_.fields:
            problems.append(f'{type_name}.{field_name} has a resolver but is not in the schema')

    for type_name in resolver_map.references:
        entity = registry.get_entity(type_name)
        if entity is None:
            problems.append(f'{type_name} has a reference resolver but is not an entity')
        elif entity.is_extended:
            problems.append(f'{type_name} is extended here, only its owner resolves references')

    query_type = schema.query_type
    for type_name, type_ in schema.type_map.items():
        if type_name.startswith('__') or not isinstance(type_, GraphQLObjectType):
            continue
        entity = registry.get_entity(type_name)
        for field_name, field in type_.fields.items():
            has_resolver = (type_name, field_name) in resolver_map.fields
            if entity and entity.is_extended and field_name in entity.key_fields:
                if has_resolver:
                    problems.append(
                        f'{type_name}.{field_name} is a key of an extended entity and must not be resolved locally'
                    )
                continue
            if has_resolver or field.resolve is not None:
                continue
            if entity and entity.is_external(field_name):
                continue
            if type_ is query_type:
                problems.append(f'{type_name}.{field_name} has no resolver')
            elif entity and entity.is_extended:
                problems.append(
                    f'{type_name}.{field_name} is contributed to an extended entity and needs a resolver'
                )
            elif not is_leaf_type(get_named_type(field.type)):
                problems.append(f'{type_name}.{field_name} returns an object type and needs a resolver')
    return problems


def bind_resolvers(schema: GraphQLSchema, registry: SchemaRegistry, resolver_map: ResolverMap) -> GraphQLSchema:
    query_type = schema.query_type
    if query_type and '_entities' in query_type.fields:
        query_type.fields['_entities'].resolve = make_entities_resolver(registry, resolver_map)

    problems = check_resolvers(schema, registry, resolver_map)
    if problems:
        raise SchemaConfigError('Unresolvable schema:\n  ' + '\n  '.join(problems))

    for (type_name, field_name), resolver in resolver_map.fields.items():
        typing.cast(GraphQLObjectType, schema.get_type(type_name)).fields[field_name].resolve = resolver
    logger.debug(
        'Bound %d field resolvers and %d reference resolvers',
        len(resolver_map.fields),
        len(resolver_map.references),
    )
    return schema


def build_resolver_map(store: DataStore, registry: SchemaRegistry) -> ResolverMap:
    """Resolvers of the blogs subgraph for the posture declared in ``registry``."""
    resolvers = ResolverMap()
    author_entity = registry.get_entity('Author')
    author_extended = bool(author_entity and author_entity.is_extended)

    @resolvers.query('blogs')
    def list_blogs(_, info):
        return list(store.blogs)

    @resolvers.query('blog')
    def get_blog(_, info, id: str):
        return store.get_blog(id)

    @resolvers.field('Author', 'blogs')
    def author_blogs(author, info):
        return store.get_author_blogs(author['id'])

    if author_extended:

        @resolvers.field('Blog', 'author')
        def blog_author_reference(blog, info):
            return reference_stub(author_entity, {'id': blog.get('authorId')})

    else:

        @resolvers.query('authors')
        def list_authors(_, info):
            return list(store.authors)

        @resolvers.query('author')
        def get_author(_, info, id: str):
            return store.get_author(id)

        @resolvers.field('Blog', 'author')
        def blog_author(blog, info):
            author_id = blog.get('authorId')
            return store.get_author(author_id) if author_id is not None else None

    collections = {'Author': store.authors, 'Blog': store.blogs}
    for type_name, entity in registry.entities.items():
        if not entity.is_extended and type_name in collections:
            resolvers.set_reference(type_name, make_reference_resolver(entity, collections[type_name]))
    return resolvers
