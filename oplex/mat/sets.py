from ordered_set import OrderedSet
from typing import Iterable, Union

import oplex.constants as const
from oplex.mat.errors import IndexOutOfRangeError
from oplex.mat.util import get_element_literal


class IndexSet:
    """
    Named, inclusive integer range. Declared with the 'range' keyword, e.g. 'range I = 1..5;'.
    """

    def __init__(self, name: str, start: int, end: int):
        self.name: str = name
        self.start: int = start
        self.end: int = end

    def __str__(self):
        return "{0} = {1}..{2}".format(self.name, self.start, self.end)

    def __len__(self):
        return max(0, self.end - self.start + 1)

    def contains(self, value: int) -> bool:
        return self.start <= value <= self.end

    def get_indices(self) -> OrderedSet:
        return OrderedSet(range(self.start, self.end + 1))

    def get_position(self, value: int) -> int:
        """
        Map an index value to the zero-based position of the corresponding instance of a tuple set indexed by this set.
        :param value: index value
        :return: zero-based position
        """
        if not self.contains(value):
            raise IndexOutOfRangeError("Index {0} is out of range for index set {1}".format(value, self.name))
        return value - self.start


class PrimitiveSet:
    """
    Named, ordered set of int, float or string values, e.g. '{int} S = {1, 3, 5};'.
    """

    def __init__(self,
                 name: str,
                 element_type: str = const.INT_TYPE,
                 values: Iterable[Union[int, float, str]] = None,
                 is_external: bool = False):
        self.name: str = name
        self.element_type: str = element_type
        self.values: OrderedSet = OrderedSet(values) if values is not None else OrderedSet()
        self.is_external: bool = is_external

    def __str__(self):
        return "{{{0}}} {1} = {{{2}}}".format(self.element_type,
                                             self.name,
                                             ", ".join([get_element_literal(v) for v in self.values]))

    def __len__(self):
        return len(self.values)

    def has_values(self) -> bool:
        return not self.is_external or len(self.values) > 0

    def add(self, value: Union[int, float, str]):
        self.values.add(value)

    def set_values(self, values: Iterable[Union[int, float, str]]):
        self.values = OrderedSet(values)

    def contains(self, value: Union[int, float, str]) -> bool:
        return value in self.values

    def is_integral(self) -> bool:
        return self.element_type == const.INT_TYPE

    def get_at(self, position: int) -> Union[int, float, str]:
        """
        Retrieve an element by its 1-based position.
        """
        if position < 1 or position > len(self.values):
            raise IndexOutOfRangeError("Position {0} is out of range for set {1} of size {2}".format(position,
                                                                                                  self.name,
                                                                                                  len(self.values)))
        return self.values[position - 1]

    def get_indices(self) -> OrderedSet:
        return OrderedSet(self.values)
