from typing import TYPE_CHECKING, List, Optional

from oplex.mat.aexprn import NumericNode
from oplex.mat.context import EvaluationContext
from oplex.mat.errors import ValueResolutionError
from oplex.mat.exprn import ArithmeticExpressionNode, ExpressionNode
from oplex.mat.util import *

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


OPERATOR_PRECEDENCE = {
    ADDITION_OPERATOR: 1,
    SUBTRACTION_OPERATOR: 1,
    MULTIPLICATION_OPERATOR: 2,
    DIVISION_OPERATOR: 2,
    UNARY_POSITIVE_OPERATOR: 3,
    UNARY_NEGATION_OPERATOR: 3,
}


def is_numeric_value(node: ExpressionNode, value: float) -> bool:
    return isinstance(node, NumericNode) and node.value == value


class UnaryArithmeticOperationNode(ArithmeticExpressionNode):

    def __init__(self,
                 operator: int,
                 operand: ExpressionNode = None,
                 id: int = 0):
        super().__init__(id)
        self.operator: int = operator
        self.operand: Optional[ExpressionNode] = operand

    @staticmethod
    def negate(operand: ExpressionNode):
        return UnaryArithmeticOperationNode(operator=UNARY_NEGATION_OPERATOR, operand=operand)

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        x = self.operand.evaluate(manager, ctx)
        if self.operator == UNARY_NEGATION_OPERATOR:
            return -x
        elif self.operator == UNARY_POSITIVE_OPERATOR:
            return x
        else:
            raise ValueError("Unable to resolve operator '{0}' as a unary arithmetic operator".format(self.operator))

    def simplify(self, manager: "ModelManager" = None) -> ExpressionNode:
        operand = self.operand.simplify(manager)

        if self.operator == UNARY_POSITIVE_OPERATOR:
            return operand

        if isinstance(operand, NumericNode):
            return NumericNode(-operand.value)

        # double negation
        if isinstance(operand, UnaryArithmeticOperationNode) and operand.operator == UNARY_NEGATION_OPERATOR:
            return operand.operand

        return self._rebuild([self.operand], [operand])

    def get_children(self) -> List[ExpressionNode]:
        return [self.operand]

    def set_children(self, operands: list):
        if len(operands) > 0:
            self.operand = operands[0]

    def get_literal(self) -> str:
        operand_literal = str(self.operand)
        if isinstance(self.operand, (BinaryArithmeticOperationNode, UnaryArithmeticOperationNode)) \
                and not self.operand.is_prioritized:
            operand_literal = '(' + operand_literal + ')'
        literal = OPL_OPERATOR_SYMBOLS[self.operator] + operand_literal
        return self._prioritize(literal)


class BinaryArithmeticOperationNode(ArithmeticExpressionNode):

    def __init__(self,
                 operator: int,
                 lhs_operand: ExpressionNode = None,
                 rhs_operand: ExpressionNode = None,
                 id: int = 0):
        super().__init__(id)
        self.operator: int = operator
        self.lhs_operand: Optional[ExpressionNode] = lhs_operand
        self.rhs_operand: Optional[ExpressionNode] = rhs_operand

    @staticmethod
    def add(lhs_operand: ExpressionNode, rhs_operand: ExpressionNode):
        return BinaryArithmeticOperationNode(operator=ADDITION_OPERATOR,
                                             lhs_operand=lhs_operand,
                                             rhs_operand=rhs_operand)

    @staticmethod
    def subtract(lhs_operand: ExpressionNode, rhs_operand: ExpressionNode):
        return BinaryArithmeticOperationNode(operator=SUBTRACTION_OPERATOR,
                                             lhs_operand=lhs_operand,
                                             rhs_operand=rhs_operand)

    @staticmethod
    def multiply(lhs_operand: ExpressionNode, rhs_operand: ExpressionNode):
        return BinaryArithmeticOperationNode(operator=MULTIPLICATION_OPERATOR,
                                             lhs_operand=lhs_operand,
                                             rhs_operand=rhs_operand)

    @staticmethod
    def divide(lhs_operand: ExpressionNode, rhs_operand: ExpressionNode):
        return BinaryArithmeticOperationNode(operator=DIVISION_OPERATOR,
                                             lhs_operand=lhs_operand,
                                             rhs_operand=rhs_operand)

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:

        x_lhs = self.lhs_operand.evaluate(manager, ctx)
        x_rhs = self.rhs_operand.evaluate(manager, ctx)

        if self.operator == ADDITION_OPERATOR:
            return x_lhs + x_rhs

        elif self.operator == SUBTRACTION_OPERATOR:
            return x_lhs - x_rhs

        elif self.operator == MULTIPLICATION_OPERATOR:
            return x_lhs * x_rhs

        elif self.operator == DIVISION_OPERATOR:
            if x_rhs == 0:
                raise ValueResolutionError("Division by zero in '{0}'".format(self))
            return x_lhs / x_rhs

        else:
            raise ValueError("Unable to resolve operator '{0}' as a binary arithmetic operator".format(self.operator))

    def simplify(self, manager: "ModelManager" = None) -> ExpressionNode:

        lhs = self.lhs_operand.simplify(manager)
        rhs = self.rhs_operand.simplify(manager)

        # constant folding
        if isinstance(lhs, NumericNode) and isinstance(rhs, NumericNode):
            if not (self.operator == DIVISION_OPERATOR and rhs.value == 0):
                folded = BinaryArithmeticOperationNode(self.operator, lhs, rhs)
                return NumericNode(folded.evaluate(manager))

        if self.operator == ADDITION_OPERATOR:
            if is_numeric_value(lhs, 0):
                return rhs
            if is_numeric_value(rhs, 0):
                return lhs

        elif self.operator == SUBTRACTION_OPERATOR:
            if is_numeric_value(rhs, 0):
                return lhs

        elif self.operator == MULTIPLICATION_OPERATOR:
            if is_numeric_value(lhs, 0) or is_numeric_value(rhs, 0):
                return NumericNode(0)
            if is_numeric_value(lhs, 1):
                return rhs
            if is_numeric_value(rhs, 1):
                return lhs

        elif self.operator == DIVISION_OPERATOR:
            if is_numeric_value(rhs, 1):
                return lhs

        return self._rebuild([self.lhs_operand, self.rhs_operand], [lhs, rhs])

    def get_children(self) -> List[ExpressionNode]:
        return [self.lhs_operand, self.rhs_operand]

    def set_children(self, operands: list):
        if len(operands) > 0:
            self.lhs_operand = operands[0]
        if len(operands) > 1:
            self.rhs_operand = operands[1]

    def get_literal(self) -> str:
        literal = "{0} {1} {2}".format(self.__get_operand_literal(self.lhs_operand, is_rhs=False),
                                       OPL_OPERATOR_SYMBOLS[self.operator],
                                       self.__get_operand_literal(self.rhs_operand, is_rhs=True))
        return self._prioritize(literal)

    def __get_operand_literal(self, operand: ExpressionNode, is_rhs: bool) -> str:
        literal = str(operand)
        if isinstance(operand, BinaryArithmeticOperationNode) and not operand.is_prioritized:
            precedence = OPERATOR_PRECEDENCE[self.operator]
            operand_precedence = OPERATOR_PRECEDENCE[operand.operator]
            if operand_precedence < precedence \
                    or (is_rhs and operand_precedence == precedence
                        and self.operator in (SUBTRACTION_OPERATOR, DIVISION_OPERATOR)):
                literal = '(' + literal + ')'
        return literal
