import warnings
from typing import TYPE_CHECKING, List, Optional, Tuple

from oplex.mat.context import EvaluationContext
from oplex.mat.errors import KeyArityMismatchError, NoMatchError, NotFoundError, SchemaNotFoundError, \
    TupleSetNotFoundError
from oplex.mat.scalar import ScalarValue, scalars_match
from oplex.mat.tuples import TupleInstance, TupleSchema, TupleSet

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


# Key Lookup
# ----------------------------------------------------------------------------------------------------------------------

def resolve_item(manager: "ModelManager",
                 set_name: str,
                 key_values: List[ScalarValue]) -> TupleInstance:
    """
    Locate the instance of a tuple set whose key fields match the supplied key values. Key values are compared
    positionally with the key fields of the schema, in declaration order. The first matching instance wins.
    :param manager: symbol environment
    :param set_name: name of the tuple set
    :param key_values: key component values
    :return: matching tuple instance
    """

    tuple_set = manager.get_tuple_set(set_name)
    if tuple_set is None:
        raise TupleSetNotFoundError(set_name)

    schema = manager.get_tuple_schema(tuple_set.schema_name)
    if schema is None:
        raise SchemaNotFoundError(tuple_set.schema_name)

    key_fields = list(schema.key_fields)

    if len(key_fields) == 0:
        raise KeyArityMismatchError("Tuple schema '{0}' has no key fields defined".format(schema.name))

    if len(key_values) != len(key_fields):
        raise KeyArityMismatchError("Key has {0} values but schema '{1}' has {2} key fields: {3}".format(
            len(key_values), schema.name, len(key_fields), ", ".join(key_fields)))

    for instance in tuple_set.instances:
        if all([scalars_match(v, instance.get_value(f)) for v, f in zip(key_values, key_fields)]):
            return instance

    raise NoMatchError("No tuple found in '{0}' matching key: {1}".format(set_name, format_key(key_values)))


def get_key_values(schema: TupleSchema, instance: TupleInstance) -> List[ScalarValue]:
    return [instance.get_value(f) for f in schema.key_fields]


def format_key(key_values: List[ScalarValue]) -> str:
    if len(key_values) == 1:
        return key_values[0].to_literal()
    return '<' + ", ".join([v.to_literal() for v in key_values]) + '>'


# Positional Lookup
# ----------------------------------------------------------------------------------------------------------------------

def resolve_position(manager: "ModelManager", set_name: str, position: int) -> TupleInstance:
    tuple_set = manager.require_tuple_set(set_name)
    return tuple_set.get_at(position)


def resolve_iterator_position(manager: "ModelManager", tuple_set: TupleSet, value: int) -> TupleInstance:
    """
    Locate the instance of a tuple set addressed by an iterator value. The value is mapped through the backing index
    set when the tuple set is indexed, and is otherwise used as a 1-based position.
    """
    return tuple_set.get_at(get_iterator_position(manager, tuple_set, value))


def get_iterator_position(manager: "ModelManager", tuple_set: TupleSet, value: int) -> int:
    if tuple_set.is_indexed():
        idx_set = manager.require_index_set(tuple_set.index_set_name)
        return idx_set.get_position(value) + 1
    return value


# Dynamic Lookup
# ----------------------------------------------------------------------------------------------------------------------

def resolve_dynamic(manager: "ModelManager",
                    ctx: Optional[EvaluationContext],
                    name: str,
                    field_name: str) -> TupleInstance:
    """
    Resolve the tuple referenced by the name of a field access 'p.field'.

    The name is first looked up among the iterators bound in the context. An iterator that walks through a tuple set
    addresses the instance at its position. Any other bound iterator is treated as a 1-based position into the first
    declared tuple set whose schema has the accessed field and which holds enough instances. Names that are not bound
    are looked up among the tuple-valued parameters.

    :param manager: symbol environment
    :param ctx: evaluation context
    :param name: referenced name
    :param field_name: accessed field
    :return: tuple instance
    """

    location = locate_dynamic(manager, ctx, name, field_name)
    if location is not None:
        set_name, position = location
        return resolve_position(manager, set_name, position)

    instance = manager.get_tuple_parameter(name)
    if instance is not None:
        return instance

    raise NotFoundError("'{0}' is neither a bound iterator nor a tuple parameter".format(name))


def locate_dynamic(manager: "ModelManager",
                   ctx: Optional[EvaluationContext],
                   name: str,
                   field_name: str) -> Optional[Tuple[str, int]]:
    """
    Locate the tuple set and the 1-based position addressed by a bound iterator.
    :return: pair of tuple set name and position, or None if the name is not bound
    """

    binding = ctx.get_binding(name) if ctx is not None else None
    if binding is None:
        return None

    if binding.tuple_set_name is not None:
        tuple_set = manager.require_tuple_set(binding.tuple_set_name)
        return tuple_set.name, get_iterator_position(manager, tuple_set, binding.value)

    return find_positional_set(manager, name, binding.value, field_name).name, binding.value


def find_positional_set(manager: "ModelManager",
                        name: str,
                        position: int,
                        field_name: str) -> TupleSet:

    candidates = []
    for tuple_set in manager.get_tuple_sets():
        schema = manager.get_tuple_schema(tuple_set.schema_name)
        if schema is not None and schema.has_field(field_name) and 1 <= position <= len(tuple_set):
            candidates.append(tuple_set)

    if len(candidates) == 0:
        raise NoMatchError("Iterator '{0}' with value {1} does not address any tuple set with field '{2}'".format(
            name, position, field_name))

    if len(candidates) > 1:
        warnings.warn("Iterator '{0}' is used as a position into a tuple set and matches several tuple sets ({1});"
                      " tuple set '{2}' is used".format(name,
                                                        ", ".join([s.name for s in candidates]),
                                                        candidates[0].name))

    return candidates[0]
