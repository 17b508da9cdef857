from typing import TYPE_CHECKING, List, Optional

from oplex.constants import EPSILON
from oplex.mat.aexprn import NumericNode
from oplex.mat.context import EvaluationContext
from oplex.mat.exprn import ExpressionNode, LogicalExpressionNode
from oplex.mat.util import *

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


class LogicalOperationNode(LogicalExpressionNode):

    def __init__(self,
                 operator: int,
                 operands: List[ExpressionNode] = None,
                 id: int = 0):

        super().__init__(id)

        self.operator: int = operator
        self.operands: Optional[List[ExpressionNode]] = operands

        if self.operands is None:
            self.operands = []

    @staticmethod
    def invert(operand: ExpressionNode):
        return LogicalOperationNode(operator=UNARY_INVERSION_OPERATOR, operands=[operand])

    @staticmethod
    def conjunction(lhs_operand: ExpressionNode, rhs_operand: ExpressionNode):
        return LogicalOperationNode(operator=CONJUNCTION_OPERATOR, operands=[lhs_operand, rhs_operand])

    @staticmethod
    def disjunction(lhs_operand: ExpressionNode, rhs_operand: ExpressionNode):
        return LogicalOperationNode(operator=DISJUNCTION_OPERATOR, operands=[lhs_operand, rhs_operand])

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        return 1.0 if self.holds(manager, ctx) else 0.0

    def holds(self,
              manager: "ModelManager",
              ctx: EvaluationContext = None) -> bool:

        # logical inversion
        if self.operator == UNARY_INVERSION_OPERATOR:
            return not self.__is_true(self.operands[0], manager, ctx)

        # n-ary operations short-circuit from left to right
        elif self.operator == CONJUNCTION_OPERATOR:
            return all(self.__is_true(o, manager, ctx) for o in self.operands)

        elif self.operator == DISJUNCTION_OPERATOR:
            return any(self.__is_true(o, manager, ctx) for o in self.operands)

        else:
            raise ValueError("Unable to resolve symbol '{0}'".format(self.operator)
                             + " as a logical operator")

    @staticmethod
    def __is_true(operand: ExpressionNode,
                  manager: "ModelManager",
                  ctx: EvaluationContext) -> bool:
        return abs(operand.evaluate(manager, ctx)) > EPSILON

    def simplify(self, manager: "ModelManager" = None) -> ExpressionNode:
        operands = [o.simplify(manager) for o in self.operands]
        if all([isinstance(o, NumericNode) for o in operands]):
            folded = LogicalOperationNode(self.operator, operands)
            return NumericNode(folded.evaluate(manager))
        return self._rebuild(self.operands, operands)

    def get_children(self) -> List[ExpressionNode]:
        return list(self.operands)

    def set_children(self, operands: list):
        self.operands = list(operands)

    def get_literal(self) -> str:
        if self.operator == UNARY_INVERSION_OPERATOR:
            literal = OPL_OPERATOR_SYMBOLS[self.operator] + str(self.operands[0])
        else:
            delimiter = ' ' + OPL_OPERATOR_SYMBOLS[self.operator] + ' '
            literal = delimiter.join([str(o) for o in self.operands])
        return self._prioritize(literal)
