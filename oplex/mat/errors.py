class ModelError(ValueError):
    pass


# Structural Errors
# ----------------------------------------------------------------------------------------------------------------------

class StructuralError(ModelError):
    """
    Undeclared symbol, malformed key or construct. Fatal to the statement or template that contains it.
    """
    pass


class NotFoundError(StructuralError):
    pass


class TupleSetNotFoundError(NotFoundError):

    def __init__(self, set_name: str):
        super().__init__("Tuple set '{0}' not found".format(set_name))
        self.set_name: str = set_name


class SchemaNotFoundError(NotFoundError):

    def __init__(self, schema_name: str):
        super().__init__("Tuple schema '{0}' not found".format(schema_name))
        self.schema_name: str = schema_name


class KeyArityMismatchError(StructuralError):
    pass


class MalformedKeyError(StructuralError):
    pass


class TokenizationError(StructuralError):
    pass


class ModelSyntaxError(StructuralError):
    pass


class NonLinearExpressionError(StructuralError):
    pass


# Value Resolution Errors
# ----------------------------------------------------------------------------------------------------------------------

class ValueResolutionError(ModelError):
    """
    A well-formed reference that cannot be resolved for the current index values. Fatal to a single expansion
    combination only.
    """
    pass


class NoMatchError(ValueResolutionError):
    pass


class MissingValueError(ValueResolutionError):
    pass


class IndexOutOfRangeError(ValueResolutionError):
    pass


# Numeric Type Errors
# ----------------------------------------------------------------------------------------------------------------------

class NumericTypeError(ModelError):
    pass


class NotNumericError(NumericTypeError):
    pass


class TypeMismatchError(NumericTypeError):
    pass
