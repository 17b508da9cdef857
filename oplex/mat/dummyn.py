from typing import TYPE_CHECKING, Set

from oplex.mat.aexprn import NumericNode
from oplex.mat.context import EvaluationContext
from oplex.mat.errors import StructuralError
from oplex.mat.exprn import ArithmeticExpressionNode, ExpressionNode
from oplex.mat.scalar import ScalarValue

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


class DummyNode(ArithmeticExpressionNode):
    """
    Reference to an iterator introduced by a summation, a forall statement or an indexed constraint label.
    """

    def __init__(self, symbol: str, id: int = 0):
        super().__init__(id)
        self.symbol: str = symbol

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        return float(self.__get_value(ctx))

    def evaluate_scalar(self,
                        manager: "ModelManager",
                        ctx: EvaluationContext = None) -> ScalarValue:
        return ScalarValue(ScalarValue.INT, self.__get_value(ctx))

    def __get_value(self, ctx: EvaluationContext) -> int:
        value = ctx.get_value(self.symbol) if ctx is not None else None
        if value is None:
            raise StructuralError("Iterator '{0}' is not bound".format(self.symbol))
        return value

    def collect_dummy_symbols(self) -> Set[str]:
        return {self.symbol}

    def substitute(self,
                   manager: "ModelManager",
                   ctx: EvaluationContext) -> ExpressionNode:
        value = ctx.get_value(self.symbol)
        if value is not None:
            return NumericNode(value)
        return self

    def get_children(self) -> list:
        return []

    def set_children(self, children: list):
        pass

    def get_literal(self) -> str:
        return self.symbol
