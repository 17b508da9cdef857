from typing import TYPE_CHECKING, List, Optional

from oplex.constants import EPSILON
from oplex.mat.aexprn import NumericNode, StringNode
from oplex.mat.context import EvaluationContext
from oplex.mat.exprn import ExpressionNode, LogicalExpressionNode
from oplex.mat.scalar import ScalarValue, scalars_match
from oplex.mat.util import *

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


class RelationalOperationNode(LogicalExpressionNode):
    """
    Comparison of two scalar operands. Evaluates to 1.0 when the relation holds and to 0.0 otherwise. Numeric
    equality is tested within the tolerance; string operands are compared with the key matching rules.
    """

    def __init__(self,
                 operator: int,
                 lhs_operand: ExpressionNode = None,
                 rhs_operand: ExpressionNode = None,
                 id: int = 0):
        super().__init__(id)
        self.operator: int = operator
        self.lhs_operand: Optional[ExpressionNode] = lhs_operand
        self.rhs_operand: Optional[ExpressionNode] = rhs_operand

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        return 1.0 if self.holds(manager, ctx) else 0.0

    def holds(self,
              manager: "ModelManager",
              ctx: EvaluationContext = None) -> bool:

        x_lhs = self.lhs_operand.evaluate_scalar(manager, ctx)
        x_rhs = self.rhs_operand.evaluate_scalar(manager, ctx)

        if x_lhs.kind == ScalarValue.STR or x_rhs.kind == ScalarValue.STR:
            return self.__compare_strings(x_lhs, x_rhs)

        return self.__compare_numbers(x_lhs.to_float(), x_rhs.to_float())

    def __compare_numbers(self, x_lhs: float, x_rhs: float) -> bool:

        # equality
        if self.operator == EQUALITY_OPERATOR:
            return abs(x_lhs - x_rhs) < EPSILON

        # strict inequality
        elif self.operator == STRICT_INEQUALITY_OPERATOR:
            return abs(x_lhs - x_rhs) >= EPSILON

        # greater than
        elif self.operator == GREATER_INEQUALITY_OPERATOR:
            return x_lhs > x_rhs

        # greater than or equal to
        elif self.operator == GREATER_EQUAL_INEQUALITY_OPERATOR:
            return x_lhs >= x_rhs

        # less than
        elif self.operator == LESS_INEQUALITY_OPERATOR:
            return x_lhs < x_rhs

        # less than or equal to
        elif self.operator == LESS_EQUAL_INEQUALITY_OPERATOR:
            return x_lhs <= x_rhs

        else:
            raise ValueError("Unable to resolve operator '{0}' as a relational operator".format(self.operator))

    def __compare_strings(self, x_lhs: ScalarValue, x_rhs: ScalarValue) -> bool:

        if self.operator == EQUALITY_OPERATOR:
            return scalars_match(x_lhs, x_rhs)

        elif self.operator == STRICT_INEQUALITY_OPERATOR:
            return not scalars_match(x_lhs, x_rhs)

        lhs_literal = x_lhs.to_literal()
        rhs_literal = x_rhs.to_literal()

        if self.operator == GREATER_INEQUALITY_OPERATOR:
            return lhs_literal > rhs_literal
        elif self.operator == GREATER_EQUAL_INEQUALITY_OPERATOR:
            return lhs_literal >= rhs_literal
        elif self.operator == LESS_INEQUALITY_OPERATOR:
            return lhs_literal < rhs_literal
        elif self.operator == LESS_EQUAL_INEQUALITY_OPERATOR:
            return lhs_literal <= rhs_literal
        else:
            raise ValueError("Unable to resolve operator '{0}' as a relational operator".format(self.operator))

    def simplify(self, manager: "ModelManager" = None) -> ExpressionNode:
        lhs = self.lhs_operand.simplify(manager)
        rhs = self.rhs_operand.simplify(manager)
        constant_types = (NumericNode, StringNode)
        if isinstance(lhs, constant_types) and isinstance(rhs, constant_types):
            folded = RelationalOperationNode(self.operator, lhs, rhs)
            return NumericNode(folded.evaluate(manager))
        return self._rebuild([self.lhs_operand, self.rhs_operand], [lhs, rhs])

    def get_children(self) -> List[ExpressionNode]:
        return [self.lhs_operand, self.rhs_operand]

    def set_children(self, operands: list):
        if len(operands) > 0:
            self.lhs_operand = operands[0]
        if len(operands) > 1:
            self.rhs_operand = operands[1]

    def get_literal(self) -> str:
        literal = "{0} {1} {2}".format(self.lhs_operand, OPL_OPERATOR_SYMBOLS[self.operator], self.rhs_operand)
        return self._prioritize(literal)
