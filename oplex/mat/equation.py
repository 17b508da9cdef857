from typing import TYPE_CHECKING, Dict, List, Optional

import oplex.constants as const
from oplex.mat.aexprn import NumericNode
from oplex.mat.domain import IndexingIterator
from oplex.mat.errors import ModelError
from oplex.mat.exprn import ExpressionNode
from oplex.mat.util import EQUATION_OPERATOR_SYMBOLS, EQUALITY_OPERATOR, get_element_literal

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


def get_terms_literal(coefficients: Dict[str, ExpressionNode]) -> str:
    terms = []
    for var_name, coefficient in coefficients.items():
        if isinstance(coefficient, NumericNode) and coefficient.value == 1:
            term = var_name
        elif isinstance(coefficient, NumericNode) and coefficient.value == -1:
            term = '-' + var_name
        else:
            term = "{0}*{1}".format(coefficient, var_name)
        if len(terms) > 0:
            if term[0] == '-':
                term = "- " + term[1:]
            else:
                term = "+ " + term
        terms.append(term)
    if len(terms) == 0:
        return '0'
    return ' '.join(terms)


def evaluate_coefficients(coefficients: Dict[str, ExpressionNode],
                          manager: "ModelManager") -> Dict[str, float]:
    return {var_name: c.evaluate(manager) for var_name, c in coefficients.items()}


# Linear Equation
# ----------------------------------------------------------------------------------------------------------------------

class LinearEquation:
    """
    Concrete linear constraint 'sum of coefficient * variable op constant'. Coefficients and the constant are kept as
    expression nodes and are evaluated by the consumer.
    """

    def __init__(self,
                 operator: int = EQUALITY_OPERATOR,
                 coefficients: Dict[str, ExpressionNode] = None,
                 constant: ExpressionNode = None,
                 label: str = None,
                 base_name: str = None,
                 index: int = None,
                 second_index: int = None,
                 line: int = 0):
        self.operator: int = operator
        self.coefficients: Dict[str, ExpressionNode] = dict(coefficients) if coefficients is not None else {}
        self.constant: ExpressionNode = constant if constant is not None else NumericNode(0)
        self.label: Optional[str] = label
        self.base_name: Optional[str] = base_name
        self.index: Optional[int] = index
        self.second_index: Optional[int] = second_index
        self.line: int = line

    def __str__(self):
        literal = "{0} {1} {2}".format(get_terms_literal(self.coefficients),
                                       self.get_operator_symbol(),
                                       self.constant)
        identifier = self.get_full_identifier()
        if identifier is not None:
            literal = "[{0}] {1}".format(identifier, literal)
        return literal

    def get_operator_symbol(self) -> str:
        return EQUATION_OPERATOR_SYMBOLS[self.operator]

    def is_inequality(self) -> bool:
        return self.operator != EQUALITY_OPERATOR

    def is_indexed(self) -> bool:
        return self.index is not None

    def get_full_identifier(self) -> Optional[str]:
        if self.label is not None:
            return self.label
        if self.base_name is not None and self.index is not None:
            return build_indexed_label(self.base_name, self.index, self.second_index)
        return None

    def get_variable_names(self) -> List[str]:
        return list(self.coefficients.keys())

    def get_coefficient(self, var_name: str) -> Optional[ExpressionNode]:
        return self.coefficients.get(var_name, None)

    def evaluate_coefficients(self, manager: "ModelManager") -> Dict[str, float]:
        return evaluate_coefficients(self.coefficients, manager)

    def evaluate_constant(self, manager: "ModelManager") -> float:
        return self.constant.evaluate(manager)


def build_indexed_label(base_name: str, index: int, second_index: int = None) -> str:
    if second_index is None:
        return "{0}[{1}]".format(base_name, get_element_literal(index))
    return "{0}[{1},{2}]".format(base_name, get_element_literal(index), get_element_literal(second_index))


# Objective
# ----------------------------------------------------------------------------------------------------------------------

class Objective:

    def __init__(self,
                 sense: str,
                 expression_node: ExpressionNode,
                 name: str = None,
                 line: int = 0):
        self.sense: str = sense
        self.name: str = name if name is not None else const.DEFAULT_OBJECTIVE_NAME
        self.expression_node: ExpressionNode = expression_node
        self.coefficients: Dict[str, ExpressionNode] = {}
        self.constant: ExpressionNode = NumericNode(0)
        self.line: int = line
        self.is_expanded: bool = False

    def __str__(self):
        if not self.is_expanded:
            return "{0}: {1} {2}".format(self.name, self.sense, self.expression_node)
        literal = get_terms_literal(self.coefficients)
        if not (isinstance(self.constant, NumericNode) and self.constant.value == 0):
            literal += " + {0}".format(self.constant)
        return "{0}: {1} {2}".format(self.name, self.sense, literal)

    def is_minimization(self) -> bool:
        return self.sense == const.MINIMIZE_SENSE

    def evaluate_coefficients(self, manager: "ModelManager") -> Dict[str, float]:
        return evaluate_coefficients(self.coefficients, manager)

    def evaluate_constant(self, manager: "ModelManager") -> float:
        return self.constant.evaluate(manager)


# Equation Template
# ----------------------------------------------------------------------------------------------------------------------

class IndexedEquationTemplate:
    """
    Constraint containing free iterators, expanded into one linear equation per combination of iterator values.
    Constraints without iterators are templates with an empty iterator list that expand into a single equation.
    """

    UNEXPANDED = 0
    EXPANDING = 1
    EXPANDED = 2
    FAILED = 3

    STATE_NAMES = {UNEXPANDED: "unexpanded", EXPANDING: "expanding", EXPANDED: "expanded", FAILED: "failed"}

    def __init__(self,
                 base_name: str,
                 operator: int,
                 lhs_operand: ExpressionNode,
                 rhs_operand: ExpressionNode,
                 iterators: List[IndexingIterator] = None,
                 condition: ExpressionNode = None,
                 label: str = None,
                 line: int = 0):
        self.base_name: str = base_name
        self.operator: int = operator
        self.lhs_operand: ExpressionNode = lhs_operand
        self.rhs_operand: ExpressionNode = rhs_operand
        self.iterators: List[IndexingIterator] = list(iterators) if iterators is not None else []
        self.condition: Optional[ExpressionNode] = condition
        self.label: Optional[str] = label
        self.line: int = line
        self.state: int = IndexedEquationTemplate.UNEXPANDED
        self.error: Optional[ModelError] = None

    def __str__(self):
        literal = "{0} {1} {2}".format(self.lhs_operand,
                                       EQUATION_OPERATOR_SYMBOLS[self.operator],
                                       self.rhs_operand)
        if self.is_indexed():
            iterator_literal = ", ".join([str(it) for it in self.iterators])
            if self.condition is not None:
                iterator_literal += ": {0}".format(self.condition)
            literal = "forall({0}) {1}".format(iterator_literal, literal)
        return "{0}: {1} ({2})".format(self.base_name, literal, self.STATE_NAMES[self.state])

    def is_indexed(self) -> bool:
        return len(self.iterators) > 0

    def is_two_dimensional(self) -> bool:
        return len(self.iterators) == 2

    def is_expanded(self) -> bool:
        return self.state == IndexedEquationTemplate.EXPANDED

    def is_failed(self) -> bool:
        return self.state == IndexedEquationTemplate.FAILED

    def is_pending(self) -> bool:
        return self.state in (IndexedEquationTemplate.UNEXPANDED, IndexedEquationTemplate.EXPANDING)

    def get_symbols(self) -> List[str]:
        return [it.symbol for it in self.iterators]

    def build_label(self, indices: List[int]) -> Optional[str]:
        """
        Build the label of the equation expanded for a combination of iterator values.
        """
        if len(indices) == 0:
            return self.label
        if len(indices) <= 2:
            return build_indexed_label(self.base_name, *indices)
        return "{0}[{1}]".format(self.base_name, ','.join([get_element_literal(i) for i in indices]))
