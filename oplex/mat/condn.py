from typing import TYPE_CHECKING, List

from oplex.constants import EPSILON
from oplex.mat.aexprn import NumericNode
from oplex.mat.context import EvaluationContext
from oplex.mat.exprn import ArithmeticExpressionNode, ExpressionNode
from oplex.mat.scalar import ScalarValue

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


class ConditionalNode(ArithmeticExpressionNode):
    """
    Ternary expression 'condition ? true_branch : false_branch'. Any condition value further than the tolerance from
    zero is true.
    """

    def __init__(self,
                 condition: ExpressionNode,
                 true_operand: ExpressionNode,
                 false_operand: ExpressionNode,
                 id: int = 0):
        super().__init__(id)
        self.condition: ExpressionNode = condition
        self.true_operand: ExpressionNode = true_operand
        self.false_operand: ExpressionNode = false_operand

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        return self.select_branch(manager, ctx).evaluate(manager, ctx)

    def evaluate_scalar(self,
                        manager: "ModelManager",
                        ctx: EvaluationContext = None) -> ScalarValue:
        return self.select_branch(manager, ctx).evaluate_scalar(manager, ctx)

    def select_branch(self,
                      manager: "ModelManager",
                      ctx: EvaluationContext = None) -> ExpressionNode:
        if abs(self.condition.evaluate(manager, ctx)) > EPSILON:
            return self.true_operand
        return self.false_operand

    def simplify(self, manager: "ModelManager" = None) -> ExpressionNode:

        condition = self.condition.simplify(manager)

        if isinstance(condition, NumericNode) and manager is not None:
            if abs(condition.evaluate(manager)) > EPSILON:
                return self.true_operand.simplify(manager)
            return self.false_operand.simplify(manager)

        true_operand = self.true_operand.simplify(manager)
        false_operand = self.false_operand.simplify(manager)
        return self._rebuild(self.get_children(), [condition, true_operand, false_operand])

    def get_children(self) -> List[ExpressionNode]:
        return [self.condition, self.true_operand, self.false_operand]

    def set_children(self, operands: list):
        self.condition = operands[0]
        self.true_operand = operands[1]
        self.false_operand = operands[2]

    def get_literal(self) -> str:
        literal = "({0}) ? {1} : {2}".format(self.condition, self.true_operand, self.false_operand)
        return self._prioritize(literal)
