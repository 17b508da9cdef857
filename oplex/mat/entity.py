import numpy as np
from typing import Dict, Iterable, List, Optional, Tuple, Union

import oplex.constants as const
from oplex.mat.errors import MissingValueError, StructuralError
from oplex.mat.scalar import ScalarValue, coerce_scalar
from oplex.mat.util import cartesian_product


Index = Tuple[int, ...]


class Entity:

    def __init__(self, name: str, idx_set_names: List[Optional[str]] = None):
        self.name: str = name
        self.idx_set_names: List[str] = [s for s in idx_set_names if s is not None] \
            if idx_set_names is not None else []

    def get_dim(self) -> int:
        return len(self.idx_set_names)

    def is_scalar(self) -> bool:
        return self.get_dim() == 0

    def is_indexed(self) -> bool:
        return self.get_dim() > 0

    def is_two_dimensional(self) -> bool:
        return self.get_dim() == 2

    def get_index_literal(self) -> str:
        if self.is_scalar():
            return ""
        return "[{0}]".format(','.join(self.idx_set_names))


# Parameter
# ----------------------------------------------------------------------------------------------------------------------

class Parameter(Entity):

    def __init__(self,
                 name: str,
                 type: str = const.FLOAT_TYPE,
                 value: Union[int, float, str, ScalarValue] = None,
                 idx_set_names: List[Optional[str]] = None,
                 is_external: bool = False):

        super().__init__(name, idx_set_names)

        if type not in const.PARAM_TYPES:
            raise StructuralError("Unsupported type '{0}' for parameter '{1}'".format(type, name))

        self.type: str = type
        self.value: Optional[ScalarValue] = None
        self.indexed_values: Dict[Index, ScalarValue] = {}
        self.is_external: bool = is_external

        if value is not None:
            self.set_value(value)

    def __str__(self):
        literal = "{0} {1}{2}".format(self.type, self.name, self.get_index_literal())
        if self.is_scalar():
            if self.value is not None:
                return "{0} = {1}".format(literal, self.value.to_literal())
        elif len(self.indexed_values) > 0:
            return "{0} = {1} values".format(literal, len(self.indexed_values))
        if self.is_external:
            return "{0} = ...".format(literal)
        return literal

    def has_value(self) -> bool:
        if self.is_scalar():
            return self.value is not None
        return len(self.indexed_values) > 0

    def is_numeric(self) -> bool:
        return self.type in const.NUMERIC_TYPES

    def set_value(self, value: Union[int, float, str, ScalarValue], indices: Index = None):
        value = coerce_scalar(value, self.type)
        if indices is None or len(indices) == 0:
            if self.is_indexed():
                raise StructuralError("Parameter '{0}' is indexed and requires an index".format(self.name))
            self.value = value
        else:
            if len(indices) != self.get_dim():
                raise StructuralError("Parameter '{0}' expects {1} indices but {2} were given".format(
                    self.name, self.get_dim(), len(indices)))
            self.indexed_values[tuple(indices)] = value

    def set_values(self, values: Union[list, np.ndarray], domains: List[Iterable[int]]):
        """
        Assign a vector or matrix of values. Values are mapped onto the members of the index set domains in order.
        :param values: one- or two-dimensional list of values
        :param domains: ordered index values of each dimension
        :return: None
        """
        domains = [list(d) for d in domains]
        array = np.array(values, dtype=object)
        expected_shape = tuple([len(d) for d in domains])
        if array.ndim != self.get_dim() or array.shape != expected_shape:
            raise StructuralError("Parameter '{0}' expects data of shape {1} but the data has shape {2}".format(
                self.name, list(expected_shape), list(array.shape)))
        for position in np.ndindex(*array.shape):
            indices = tuple([d[p] for d, p in zip(domains, position)])
            self.set_value(array[position], indices)

    def get_value(self, indices: Index = None) -> ScalarValue:
        if indices is None or len(indices) == 0:
            if self.is_indexed():
                raise StructuralError("Parameter '{0}' is indexed and requires an index".format(self.name))
            if self.value is None:
                raise MissingValueError("Parameter '{0}' has no value".format(self.name))
            return self.value
        indices = tuple(indices)
        if indices not in self.indexed_values:
            raise MissingValueError("Parameter '{0}' has no value at index [{1}]".format(
                self.name, ','.join([str(i) for i in indices])))
        return self.indexed_values[indices]


# Variable
# ----------------------------------------------------------------------------------------------------------------------

class IndexedVariable(Entity):

    def __init__(self,
                 name: str,
                 type: str = const.FLOAT_TYPE,
                 idx_set_names: List[Optional[str]] = None,
                 lb: float = None,
                 ub: float = None):

        super().__init__(name, idx_set_names)

        if type not in const.VAR_TYPES:
            raise StructuralError("Unsupported type '{0}' for variable '{1}'".format(type, name))

        self.type: str = type

        if type == const.BOOL_TYPE:
            self.lb: float = 0 if lb is None else lb
            self.ub: float = 1 if ub is None else ub
        else:
            self.lb: float = -np.inf if lb is None else lb
            self.ub: float = np.inf if ub is None else ub

        self.lb_node = None
        self.ub_node = None

    def __str__(self):
        literal = "var {0} {1}{2}".format(self.type, self.name, self.get_index_literal())
        if self.has_bounds():
            literal += " in {0}..{1}".format(self.__bound_literal(self.lb), self.__bound_literal(self.ub))
        return literal

    @staticmethod
    def __bound_literal(bound: float) -> str:
        if bound == np.inf:
            return "Infinity"
        elif bound == -np.inf:
            return "-Infinity"
        elif float(bound).is_integer():
            return str(int(bound))
        return str(bound)

    def has_bounds(self) -> bool:
        return self.lb != -np.inf or self.ub != np.inf

    def set_bound_nodes(self, lb_node=None, ub_node=None):
        """
        Declare bounds as expressions that depend on data which is not loaded yet. They are evaluated by
        resolve_bounds().
        """
        self.lb_node = lb_node
        self.ub_node = ub_node

    def resolve_bounds(self, manager):
        if self.lb_node is not None:
            self.lb = self.lb_node.evaluate(manager)
            self.lb_node = None
        if self.ub_node is not None:
            self.ub = self.ub_node.evaluate(manager)
            self.ub_node = None

    def is_integer(self) -> bool:
        return self.type in (const.INT_TYPE, const.BOOL_TYPE)

    def get_flat_name(self, indices: Index = None) -> str:
        """
        Build the name of one scalar member of the variable: 'x' for scalars, 'x1' for x[1], and 'x1_2' for x[1,2].
        :param indices: index values of the member
        :return: flat variable name
        """
        if indices is None or len(indices) == 0:
            return self.name
        return "{0}{1}".format(self.name, '_'.join([str(i) for i in indices]))

    def enumerate_flat_names(self, manager) -> List[str]:
        """
        Enumerate the names of all scalar members of the variable over the domains of its index sets.
        """
        domains = [manager.get_domain(s) for s in self.idx_set_names]
        return [self.get_flat_name(indices) for indices in cartesian_product(domains)]


# Decision Expression
# ----------------------------------------------------------------------------------------------------------------------

class DecisionExpression(Entity):
    """
    Named linear expression over decision variables, e.g. 'dexpr float cost = sum(i in I) c[i] * x[i];'. Indexed
    decision expressions bind one iterator, e.g. 'dexpr float load[i in I] = ...;'.
    """

    def __init__(self,
                 name: str,
                 expression_node,
                 type: str = const.FLOAT_TYPE,
                 idx_set_name: str = None,
                 dummy_symbol: str = None):
        super().__init__(name, [idx_set_name])
        self.expression_node = expression_node
        self.type: str = type
        self.dummy_symbol: Optional[str] = dummy_symbol

    def __str__(self):
        if self.is_indexed():
            return "dexpr {0} {1}[{2} in {3}] = {4}".format(self.type, self.name, self.dummy_symbol,
                                                          self.idx_set_names[0], self.expression_node)
        return "dexpr {0} {1} = {2}".format(self.type, self.name, self.expression_node)


# Assertion
# ----------------------------------------------------------------------------------------------------------------------

class Assertion:
    """
    Condition checked once the data is loaded, e.g. 'assert forall(i in I) cost[i] >= 0;'.
    """

    def __init__(self, condition_node, message: str = None, line: int = 0, iterators: list = None):
        self.condition_node = condition_node
        self.message: Optional[str] = message
        self.line: int = line
        self.iterators: list = list(iterators) if iterators is not None else []

    def __str__(self):
        literal = str(self.condition_node)
        if len(self.iterators) > 0:
            literal = "forall({0}) {1}".format(", ".join([str(it) for it in self.iterators]), literal)
        if self.message is not None:
            return 'assert "{0}": {1}'.format(self.message, literal)
        return "assert {0}".format(literal)
