from typing import Dict, List

from oplex.mat.aexprn import NumericNode
from oplex.mat.aopn import BinaryArithmeticOperationNode, UnaryArithmeticOperationNode
from oplex.mat.exprn import ExpressionNode
from oplex.mat.util import is_zero


class LinearTerms:
    """
    Linear form 'sum of coefficient * variable + constant'. Coefficients and the constant are expression nodes so that
    they can be evaluated after expansion. Variables are identified by their flat names and kept in order of first
    appearance.
    """

    def __init__(self,
                 coefficients: Dict[str, ExpressionNode] = None,
                 constant: ExpressionNode = None):
        self.coefficients: Dict[str, ExpressionNode] = dict(coefficients) if coefficients is not None else {}
        self.constant: ExpressionNode = constant if constant is not None else NumericNode(0)

    def __str__(self):
        terms = ["{0}*{1}".format(c, v) for v, c in self.coefficients.items()]
        terms.append(str(self.constant))
        return " + ".join(terms)

    @staticmethod
    def of_constant(constant: ExpressionNode) -> "LinearTerms":
        return LinearTerms(constant=constant)

    @staticmethod
    def of_variable(var_name: str, coefficient: ExpressionNode = None) -> "LinearTerms":
        if coefficient is None:
            coefficient = NumericNode(1)
        return LinearTerms(coefficients={var_name: coefficient})

    def is_constant(self) -> bool:
        return len(self.coefficients) == 0

    def get_variable_names(self) -> List[str]:
        return list(self.coefficients.keys())

    def add(self, other: "LinearTerms") -> "LinearTerms":
        coefficients = dict(self.coefficients)
        for var_name, coefficient in other.coefficients.items():
            if var_name in coefficients:
                coefficients[var_name] = combine(coefficients[var_name], coefficient)
            else:
                coefficients[var_name] = coefficient
        return LinearTerms(coefficients, combine(self.constant, other.constant))

    def subtract(self, other: "LinearTerms") -> "LinearTerms":
        return self.add(other.negate())

    def scale(self, factor: ExpressionNode) -> "LinearTerms":
        coefficients = {v: scale(c, factor) for v, c in self.coefficients.items()}
        return LinearTerms(coefficients, scale(self.constant, factor))

    def divide(self, divisor: ExpressionNode) -> "LinearTerms":
        coefficients = {v: divide(c, divisor) for v, c in self.coefficients.items()}
        return LinearTerms(coefficients, divide(self.constant, divisor))

    def negate(self) -> "LinearTerms":
        coefficients = {v: negate(c) for v, c in self.coefficients.items()}
        return LinearTerms(coefficients, negate(self.constant))

    def compact(self) -> "LinearTerms":
        """
        Drop the terms whose coefficient is a literal below the tolerance in absolute value.
        """
        coefficients = {v: c for v, c in self.coefficients.items()
                        if not (isinstance(c, NumericNode) and is_zero(c.value))}
        return LinearTerms(coefficients, self.constant)

    @staticmethod
    def merge(terms: List["LinearTerms"]) -> "LinearTerms":
        merged = LinearTerms()
        for t in terms:
            merged = merged.add(t)
        return merged


# Coefficient Arithmetic
# ----------------------------------------------------------------------------------------------------------------------

def combine(lhs: ExpressionNode, rhs: ExpressionNode) -> ExpressionNode:
    if isinstance(lhs, NumericNode) and isinstance(rhs, NumericNode):
        return NumericNode(lhs.value + rhs.value)
    return BinaryArithmeticOperationNode.add(lhs, rhs).simplify()


def scale(node: ExpressionNode, factor: ExpressionNode) -> ExpressionNode:
    if isinstance(node, NumericNode) and isinstance(factor, NumericNode):
        return NumericNode(node.value * factor.value)
    return BinaryArithmeticOperationNode.multiply(factor, node).simplify()


def negate(node: ExpressionNode) -> ExpressionNode:
    if isinstance(node, NumericNode):
        return NumericNode(-node.value)
    return UnaryArithmeticOperationNode.negate(node).simplify()


def divide(node: ExpressionNode, divisor: ExpressionNode) -> ExpressionNode:
    return BinaryArithmeticOperationNode.divide(node, divisor).simplify()
