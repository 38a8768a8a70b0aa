import enum
import logging
import re
import typing
from dataclasses import dataclass, field

from gql import make_schema
from gql.federation import purge_schema_directives
from graphql import (
    DirectiveNode,
    DocumentNode,
    GraphQLError,
    GraphQLSchema,
    GraphQLUnionType,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    StringValueNode,
    assert_valid_schema,
    parse,
)

from .exceptions import SchemaConfigError

logger = logging.getLogger(__name__)

_r_field_name = re.compile(r'^[_A-Za-z][_0-9A-Za-z]*$')


class Ownership(enum.Enum):
    OWNED = 'owned'
    EXTENDED = 'extended'


@dataclass(frozen=True)
class EntityDeclaration:
    type_name: str
    key_fields: typing.Tuple[str, ...]
    ownership: Ownership
    external_fields: typing.FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_extended(self) -> bool:
        return self.ownership is Ownership.EXTENDED

    def is_external(self, field_name: str) -> bool:
        return field_name in self.external_fields


def parse_key_fields(type_name: str, fields: str) -> typing.Tuple[str, ...]:
    names = tuple(fields.split())
    if not names:
        raise SchemaConfigError(f'{type_name}: @key(fields:) must name at least one field')
    for name in names:
        if not _r_field_name.match(name):
            raise SchemaConfigError(
                f'{type_name}: unsupported key selection "{fields}", only flat field names are allowed'
            )
    return names


def _directive(
    directives: typing.Sequence[DirectiveNode], name: str
) -> typing.Optional[DirectiveNode]:
    for directive in directives or ():
        if directive.name.value == name:
            return directive
    return None


def _directive_argument(directive: DirectiveNode, name: str) -> typing.Optional[str]:
    for argument in directive.arguments or ():
        if argument.name.value == name and isinstance(argument.value, StringValueNode):
            return argument.value.value
    return None


class SchemaRegistry:
    type_defs: str
    document: DocumentNode
    entities: typing.Dict[str, EntityDeclaration]

    def __init__(self, type_defs: str) -> None:
        try:
            self.document = parse(type_defs)
        except GraphQLError as exc:
            raise SchemaConfigError(f'Invalid type definitions: {exc.message}') from exc
        self.type_defs = type_defs
        self.entities = {}
        self._object_fields = self._collect_object_fields()

    @classmethod
    def from_type_defs(cls, type_defs: str) -> 'SchemaRegistry':
        registry = cls(type_defs)
        for type_name, nodes in registry._object_nodes().items():
            directives = [d for node in nodes for d in node.directives or ()]
            key = _directive(directives, 'key')
            if not key:
                continue
            if len([d for d in directives if d.name.value == 'key']) > 1:
                raise SchemaConfigError(f'{type_name}: only one @key per type is supported')
            fields = _directive_argument(key, 'fields')
            if fields is None:
                raise SchemaConfigError(f'{type_name}: @key requires a "fields" string')

            extended = _directive(directives, 'extends') is not None or any(
                isinstance(node, ObjectTypeExtensionNode) for node in nodes
            )
            external = [
                field_node.name.value
                for node in nodes
                for field_node in node.fields or ()
                if _directive(field_node.directives, 'external')
            ]
            registry.declare_entity(
                type_name,
                parse_key_fields(type_name, fields),
                Ownership.EXTENDED if extended else Ownership.OWNED,
                external_fields=external,
            )
        return registry

    @classmethod
    def from_file(cls, path: str) -> 'SchemaRegistry':
        try:
            with open(path, 'r', encoding='utf-8') as f:
                type_defs = f.read()
        except OSError as exc:
            raise SchemaConfigError(f'Cannot read schema file {path}: {exc}') from exc
        return cls.from_type_defs(type_defs)

    def _object_nodes(
        self,
    ) -> typing.Dict[str, typing.List[typing.Union[ObjectTypeDefinitionNode, ObjectTypeExtensionNode]]]:
        nodes: typing.Dict[str, list] = {}
        for definition in self.document.definitions:
            if isinstance(definition, (ObjectTypeDefinitionNode, ObjectTypeExtensionNode)):
                nodes.setdefault(definition.name.value, []).append(definition)
        return nodes

    def _collect_object_fields(self) -> typing.Dict[str, typing.Tuple[str, ...]]:
        return {
            type_name: tuple(
                field_node.name.value for node in nodes for field_node in node.fields or ()
            )
            for type_name, nodes in self._object_nodes().items()
        }

    def declare_entity(
        self,
        type_name: str,
        key_fields: typing.Sequence[str],
        ownership: Ownership,
        external_fields: typing.Iterable[str] = (),
    ) -> EntityDeclaration:
        if type_name not in self._object_fields:
            raise SchemaConfigError(f'Cannot declare entity "{type_name}": no such object type')
        if type_name in self.entities:
            raise SchemaConfigError(f'Entity "{type_name}" is already declared')

        key_fields = tuple(key_fields)
        if not key_fields:
            raise SchemaConfigError(f'Entity "{type_name}" needs at least one key field')
        if len(set(key_fields)) != len(key_fields):
            raise SchemaConfigError(f'Entity "{type_name}" repeats a key field: {key_fields}')

        fields = self._object_fields[type_name]
        external_fields = frozenset(external_fields)
        for name in key_fields + tuple(external_fields):
            if name not in fields:
                raise SchemaConfigError(f'Entity "{type_name}" has no field "{name}"')

        if ownership is Ownership.EXTENDED:
            local_keys = [name for name in key_fields if name not in external_fields]
            if local_keys:
                raise SchemaConfigError(
                    f'Extended entity "{type_name}" must mark key fields as @external: '
                    f'{", ".join(local_keys)}'
                )
        elif external_fields:
            raise SchemaConfigError(
                f'Owned entity "{type_name}" cannot have @external fields: '
                f'{", ".join(sorted(external_fields))}'
            )

        declaration = EntityDeclaration(type_name, key_fields, ownership, external_fields)
        self.entities[type_name] = declaration
        logger.debug(
            'Declared %s entity %s with key (%s)', ownership.value, type_name, ', '.join(key_fields)
        )
        return declaration

    def get_entity(self, type_name: str) -> typing.Optional[EntityDeclaration]:
        return self.entities.get(type_name)

    def is_external(self, type_name: str, field_name: str) -> bool:
        entity = self.entities.get(type_name)
        return bool(entity and entity.is_external(field_name))

    def local_fields(self, type_name: str) -> typing.Tuple[str, ...]:
        return tuple(
            name
            for name in self._object_fields.get(type_name, ())
            if not self.is_external(type_name, name)
        )

    @property
    def sdl(self) -> str:
        return purge_schema_directives(self.type_defs)

    def build_schema(self) -> GraphQLSchema:
        try:
            schema = make_schema(self.type_defs, federation=True)
            entity_type = schema.get_type('_Entity')
            if isinstance(entity_type, GraphQLUnionType):
                # make_schema collects the members before extending the schema
                entity_type.types = [schema.get_type(name) for name in self.entities]
                entity_type.resolve_type = resolve_entity_type
            assert_valid_schema(schema)
        except (GraphQLError, TypeError) as exc:
            raise SchemaConfigError(f'Cannot build schema: {exc}') from exc
        return schema


def resolve_entity_type(value: typing.Any, *_: typing.Any) -> typing.Optional[str]:
    if isinstance(value, typing.Mapping):
        return value.get('__typename')
    return getattr(value, '__typename', None)
