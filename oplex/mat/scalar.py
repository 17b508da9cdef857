from typing import Optional, Union

from oplex.constants import EPSILON
from oplex.mat.errors import MalformedKeyError, TypeMismatchError
from oplex.mat.util import get_element_literal


# Scalar Value
# ----------------------------------------------------------------------------------------------------------------------

class ScalarValue:
    """
    Tagged scalar value. Keys of tuple instances may be supplied as integers, floats, strings or booleans depending on
    the syntax they originate from; every comparison between such values goes through this type.
    """

    INT = 1
    FLOAT = 2
    STR = 3
    BOOL = 4

    KIND_NAMES = {INT: "int", FLOAT: "float", STR: "string", BOOL: "bool"}

    def __init__(self, kind: int, value: Union[int, float, str, bool]):
        self.kind: int = kind
        self.value: Union[int, float, str, bool] = value

    def __str__(self):
        return self.to_literal()

    def __repr__(self):
        return "ScalarValue({0}, {1})".format(self.KIND_NAMES[self.kind], repr(self.value))

    def __eq__(self, other):
        if not isinstance(other, ScalarValue):
            return False
        return self.kind == other.kind and self.value == other.value

    def __hash__(self):
        return hash((self.kind, self.value))

    @staticmethod
    def of(raw: Union[int, float, str, bool, "ScalarValue"]) -> "ScalarValue":
        if isinstance(raw, ScalarValue):
            return raw
        elif isinstance(raw, bool):  # bool must be checked before int
            return ScalarValue(ScalarValue.BOOL, raw)
        elif isinstance(raw, int):
            return ScalarValue(ScalarValue.INT, raw)
        elif isinstance(raw, float):
            return ScalarValue(ScalarValue.FLOAT, raw)
        elif isinstance(raw, str):
            return ScalarValue(ScalarValue.STR, raw)
        else:
            # numpy scalars and other numeric types
            return ScalarValue(ScalarValue.FLOAT, float(raw))

    def is_numeric(self) -> bool:
        return self.kind in (ScalarValue.INT, ScalarValue.FLOAT)

    def to_float(self) -> float:
        if self.kind == ScalarValue.INT or self.kind == ScalarValue.FLOAT:
            return float(self.value)
        elif self.kind == ScalarValue.BOOL:
            return 1.0 if self.value else 0.0
        else:
            raise TypeMismatchError("Value {0} is a string and cannot be used as a number".format(self.to_literal()))

    def try_to_float(self) -> Optional[float]:
        if self.kind == ScalarValue.STR:
            try:
                return float(self.value)
            except ValueError:
                return None
        return self.to_float()

    def to_literal(self) -> str:
        """
        Canonical string representation. Integral floats lose their fractional part and booleans are lower case.
        """
        if self.kind == ScalarValue.STR:
            return self.value
        return get_element_literal(self.value)


# Comparison
# ----------------------------------------------------------------------------------------------------------------------

def scalars_match(supplied: ScalarValue, candidate: ScalarValue) -> bool:
    """
    Compare a supplied key value with the field value of a candidate tuple instance. Values match if they are equal,
    if their string representations are equal ignoring case, or if both are numeric and differ by less than the
    tolerance.
    :param supplied: key value supplied by a lookup
    :param candidate: field value of a tuple instance
    :return: True if the values match
    """

    # tier 1: value equality
    if supplied.kind == candidate.kind or (supplied.is_numeric() and candidate.is_numeric()):
        if supplied.value == candidate.value:
            return True

    # tier 2: case-insensitive string representation
    if supplied.to_literal().lower() == candidate.to_literal().lower():
        return True

    # tier 3: numeric comparison within tolerance
    x_supplied = supplied.try_to_float()
    x_candidate = candidate.try_to_float()
    if x_supplied is not None and x_candidate is not None:
        return abs(x_supplied - x_candidate) < EPSILON

    return False


# Literal Parsing
# ----------------------------------------------------------------------------------------------------------------------

def parse_key_literal(literal: str) -> ScalarValue:
    """
    Parse a key value written in an item() lookup.
    :param literal: quoted string, boolean, integer, or floating-point literal
    :return: scalar value
    """

    literal = literal.strip()

    if len(literal) >= 2 and literal[0] == '"' and literal[-1] == '"':
        return ScalarValue(ScalarValue.STR, literal[1:-1])

    if literal.lower() in ("true", "false"):
        return ScalarValue(ScalarValue.BOOL, literal.lower() == "true")

    try:
        return ScalarValue(ScalarValue.INT, int(literal))
    except ValueError:
        pass

    try:
        return ScalarValue(ScalarValue.FLOAT, float(literal))
    except ValueError:
        raise MalformedKeyError("Cannot parse key value: '{0}'".format(literal))


def coerce_scalar(raw: Union[int, float, str, bool, ScalarValue], type_name: str) -> ScalarValue:
    """
    Coerce a raw value to a declared field or parameter type.
    :param raw: raw value
    :param type_name: declared type name ('int', 'float', 'string' or 'bool')
    :return: scalar value of the declared type
    """

    value = ScalarValue.of(raw)

    if type_name == "string":
        if value.kind != ScalarValue.STR:
            raise TypeMismatchError("Expected a string value but got {0}".format(value.to_literal()))
        return value

    elif type_name == "bool":
        if value.kind == ScalarValue.BOOL:
            return value
        x = value.try_to_float()
        if x is None or (abs(x) > EPSILON and abs(x - 1) > EPSILON):
            raise TypeMismatchError("Expected a boolean value but got {0}".format(value.to_literal()))
        return ScalarValue(ScalarValue.BOOL, abs(x - 1) < EPSILON)

    x = value.try_to_float() if value.kind != ScalarValue.BOOL else None
    if x is None:
        raise TypeMismatchError("Expected a numeric value but got {0}".format(value.to_literal()))

    if type_name == "int":
        if abs(x - round(x)) > EPSILON:
            raise TypeMismatchError("Expected an integer value but got {0}".format(value.to_literal()))
        return ScalarValue(ScalarValue.INT, int(round(x)))

    return ScalarValue(ScalarValue.FLOAT, x)
