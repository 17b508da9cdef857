from ordered_set import OrderedSet
from typing import Dict, Iterable, List, Optional, Union

import oplex.constants as const
from oplex.mat.errors import IndexOutOfRangeError, NotFoundError, StructuralError
from oplex.mat.scalar import ScalarValue, coerce_scalar


class TupleSchema:
    """
    Named record type. Field order is the declaration order; the key fields define the component order of composite
    keys used by item() lookups.
    """

    def __init__(self,
                 name: str,
                 fields: Dict[str, str] = None,
                 key_fields: Iterable[str] = None):
        self.name: str = name
        self.fields: Dict[str, str] = dict(fields) if fields is not None else {}
        self.key_fields: OrderedSet = OrderedSet(key_fields) if key_fields is not None else OrderedSet()

    def __str__(self):
        field_literals = []
        for field_name, field_type in self.fields.items():
            prefix = "key " if field_name in self.key_fields else ""
            field_literals.append("{0}{1} {2};".format(prefix, field_type, field_name))
        return "tuple {0} {{ {1} }}".format(self.name, ' '.join(field_literals))

    def add_field(self, name: str, field_type: str, is_key: bool = False):
        if name in self.fields:
            raise StructuralError("Field '{0}' is declared more than once in tuple schema '{1}'".format(name,
                                                                                                      self.name))
        if field_type not in const.FIELD_TYPES:
            raise StructuralError("Unsupported type '{0}' for field '{1}' of tuple schema '{2}'".format(field_type,
                                                                                                       name,
                                                                                                       self.name))
        self.fields[name] = field_type
        if is_key:
            self.key_fields.add(name)

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def get_field_type(self, name: str) -> str:
        if name not in self.fields:
            raise NotFoundError("Field '{0}' not found in tuple schema '{1}'".format(name, self.name))
        return self.fields[name]

    def get_field_names(self) -> List[str]:
        return list(self.fields.keys())


class TupleInstance:

    def __init__(self, schema_name: str, values: Dict[str, ScalarValue] = None):
        self.schema_name: str = schema_name
        self.values: Dict[str, ScalarValue] = dict(values) if values is not None else {}

    def __str__(self):
        return "<{0}>".format(", ".join([self.__literal(v) for v in self.values.values()]))

    @staticmethod
    def __literal(value: ScalarValue) -> str:
        if value.kind == ScalarValue.STR:
            return '"{0}"'.format(value.value)
        return value.to_literal()

    @staticmethod
    def build(schema: TupleSchema, raw_values: List[Union[int, float, str, bool, ScalarValue]]) -> "TupleInstance":
        """
        Build an instance from positional values listed in field declaration order.
        :param schema: tuple schema of the instance
        :param raw_values: field values in declaration order
        :return: tuple instance
        """
        if len(raw_values) != len(schema.fields):
            raise StructuralError("Tuple of schema '{0}' expects {1} values but {2} were given".format(
                schema.name, len(schema.fields), len(raw_values)))
        instance = TupleInstance(schema.name)
        for (field_name, field_type), raw_value in zip(schema.fields.items(), raw_values):
            instance.values[field_name] = coerce_scalar(raw_value, field_type)
        return instance

    def has_field(self, field_name: str) -> bool:
        return field_name in self.values

    def get_value(self, field_name: str) -> ScalarValue:
        if field_name not in self.values:
            raise NotFoundError("Field '{0}' not found in tuple of schema '{1}'".format(field_name,
                                                                                     self.schema_name))
        return self.values[field_name]

    def set_value(self, field_name: str, value: Union[int, float, str, bool, ScalarValue], field_type: str = None):
        if field_type is not None:
            self.values[field_name] = coerce_scalar(value, field_type)
        else:
            self.values[field_name] = ScalarValue.of(value)


class TupleSet:
    """
    Ordered collection of tuple instances of one schema. Instances are addressed either by a 1-based position or, if
    the set is indexed by an index set, through the position mapping of that index set.
    """

    def __init__(self,
                 name: str,
                 schema_name: str,
                 instances: List[TupleInstance] = None,
                 index_set_name: str = None,
                 is_external: bool = False):
        self.name: str = name
        self.schema_name: str = schema_name
        self.instances: List[TupleInstance] = list(instances) if instances is not None else []
        self.index_set_name: Optional[str] = index_set_name
        self.is_external: bool = is_external

    def __str__(self):
        literal = "{{{0}}} {1}".format(self.schema_name, self.name)
        if self.index_set_name is not None:
            literal += "[{0}]".format(self.index_set_name)
        return "{0} = {{{1}}}".format(literal, ", ".join([str(i) for i in self.instances]))

    def __len__(self):
        return len(self.instances)

    def is_indexed(self) -> bool:
        return self.index_set_name is not None

    def has_values(self) -> bool:
        return not self.is_external or len(self.instances) > 0

    def add_instance(self, instance: TupleInstance):
        if instance.schema_name != self.schema_name:
            raise StructuralError("Tuple of schema '{0}' cannot be added to tuple set '{1}' of schema '{2}'".format(
                instance.schema_name, self.name, self.schema_name))
        self.instances.append(instance)

    def get_at(self, position: int) -> TupleInstance:
        """
        Retrieve an instance by its 1-based position.
        """
        if position < 1 or position > len(self.instances):
            raise IndexOutOfRangeError("Index {0} is out of range for tuple set {1} of size {2}".format(
                position, self.name, len(self.instances)))
        return self.instances[position - 1]
