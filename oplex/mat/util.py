import itertools
from ordered_set import OrderedSet
from typing import Iterable, List, Tuple, Union

from oplex.constants import EPSILON
from oplex.mat.errors import ValueResolutionError


# Types
# ----------------------------------------------------------------------------------------------------------------------
Element = Tuple[Union[int, float, str, bool], ...]
Domain = OrderedSet  # ordered set of integer index values

# Operators
# ----------------------------------------------------------------------------------------------------------------------

# Unary Arithmetic
UNARY_POSITIVE_OPERATOR = 1
UNARY_NEGATION_OPERATOR = 2

# Binary Arithmetic
ADDITION_OPERATOR = 11
SUBTRACTION_OPERATOR = 12
MULTIPLICATION_OPERATOR = 13
DIVISION_OPERATOR = 14

# Unary Logical
UNARY_INVERSION_OPERATOR = 101

# Binary Logical
CONJUNCTION_OPERATOR = 111
DISJUNCTION_OPERATOR = 112

# Relational
EQUALITY_OPERATOR = 121
STRICT_INEQUALITY_OPERATOR = 122
LESS_INEQUALITY_OPERATOR = 123
LESS_EQUAL_INEQUALITY_OPERATOR = 124
GREATER_INEQUALITY_OPERATOR = 125
GREATER_EQUAL_INEQUALITY_OPERATOR = 126

# Symbols
OPL_OPERATOR_SYMBOLS = {

    UNARY_POSITIVE_OPERATOR: '+',
    UNARY_NEGATION_OPERATOR: '-',

    ADDITION_OPERATOR: '+',
    SUBTRACTION_OPERATOR: '-',
    MULTIPLICATION_OPERATOR: '*',
    DIVISION_OPERATOR: '/',

    UNARY_INVERSION_OPERATOR: '!',

    CONJUNCTION_OPERATOR: '&&',
    DISJUNCTION_OPERATOR: '||',

    EQUALITY_OPERATOR: '==',
    STRICT_INEQUALITY_OPERATOR: '!=',
    LESS_INEQUALITY_OPERATOR: '<',
    LESS_EQUAL_INEQUALITY_OPERATOR: '<=',
    GREATER_INEQUALITY_OPERATOR: '>',
    GREATER_EQUAL_INEQUALITY_OPERATOR: '>=',

}

# operators accepted between the two sides of a constraint
CONSTRAINT_OPERATORS = [EQUALITY_OPERATOR,
                        LESS_EQUAL_INEQUALITY_OPERATOR,
                        GREATER_EQUAL_INEQUALITY_OPERATOR,
                        LESS_INEQUALITY_OPERATOR,
                        GREATER_INEQUALITY_OPERATOR]

# symbols used in equation listings
EQUATION_OPERATOR_SYMBOLS = {
    EQUALITY_OPERATOR: '=',
    LESS_INEQUALITY_OPERATOR: '<',
    GREATER_INEQUALITY_OPERATOR: '>',
    LESS_EQUAL_INEQUALITY_OPERATOR: '<=',
    GREATER_EQUAL_INEQUALITY_OPERATOR: '>=',
}


def get_operator_code(symbol: str, codes: Iterable[int] = None) -> int:
    """
    Retrieve the operator code of an operator symbol.
    :param symbol: operator symbol
    :param codes: candidate operator codes; all operators are considered if None
    :return: operator code
    """
    if codes is None:
        codes = OPL_OPERATOR_SYMBOLS.keys()
    for code in codes:
        if OPL_OPERATOR_SYMBOLS[code] == symbol:
            return code
    raise ValueError("Unable to resolve symbol '{0}' as an operator".format(symbol))


# Element Operations
# ----------------------------------------------------------------------------------------------------------------------

def get_element_literal(element: Union[int, float, str, bool]):
    """
    Transform an element into a string literal. Delimiters are added to string elements, whereas numeric elements are
    converted to strings. Integral floats are rendered without a fractional part.
    :param element: a scalar element
    :return: element string literal
    """
    if isinstance(element, str):
        return '"{0}"'.format(element)
    elif isinstance(element, bool):
        return "true" if element else "false"
    elif isinstance(element, float):
        if element.is_integer():
            element = int(element)
    return str(element)


def is_zero(value: float) -> bool:
    return abs(value) < EPSILON


def to_index(value: float) -> int:
    """
    Convert an evaluated index value to an integer.
    :param value: evaluated index value
    :return: integral index
    """
    if abs(value - round(value)) > EPSILON:
        raise ValueResolutionError("Index value {0} is not an integer".format(get_element_literal(value)))
    return int(round(value))


# Set Operations
# ----------------------------------------------------------------------------------------------------------------------

def cartesian_product(sets: List[OrderedSet]) -> OrderedSet:
    """
    Evaluate the cartesian product of two or more sets. Each element of the combined set is a unique combination of 1
    element from each of the constituent sets, ordered with the first set varying slowest.
    :param sets: list of constituent ordered sets
    :return: ordered set of elements comprising the combined set
    """

    if len(sets) == 0:
        return OrderedSet([()])

    else:
        sets = [s for s in sets if s is not None]
        combined_elements = itertools.product(*sets)
        flattened_elements = [flatten_element(e) for e in combined_elements]
        return OrderedSet(flattened_elements)


def flatten_element(element: Tuple[Union[int, float, str, Element], ...]) -> Element:

    flattened_element = []

    for sub_element in element:

        if isinstance(sub_element, tuple):
            flattened_element.extend(sub_element)

        else:
            flattened_element.append(sub_element)

    return tuple(flattened_element)
