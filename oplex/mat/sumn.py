from typing import TYPE_CHECKING, Callable, List, Optional, Set, TypeVar, Union

from oplex.constants import EPSILON
from oplex.mat.aexprn import NumericNode
from oplex.mat.context import EvaluationContext
from oplex.mat.domain import IndexingIterator, iterate_combinations
from oplex.mat.errors import ValueResolutionError
from oplex.mat.exprn import ArithmeticExpressionNode, ExpressionNode

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


T = TypeVar("T")


class SkippedTerm:
    """
    Outcome of a summation term that does not contribute to the sum, either because the filter rejected the
    combination or because a value could not be resolved for it.
    """

    def __init__(self, ctx: EvaluationContext, error: ValueResolutionError = None):
        self.ctx: EvaluationContext = ctx
        self.error: Optional[ValueResolutionError] = error

    def __str__(self):
        if self.error is None:
            return "{0}: filtered".format(self.ctx)
        return "{0}: {1}".format(self.ctx, self.error)

    def is_filtered(self) -> bool:
        return self.error is None


def evaluate_filter(condition: ExpressionNode,
                    manager: "ModelManager",
                    ctx: EvaluationContext = None) -> bool:
    return abs(condition.evaluate(manager, ctx)) > EPSILON


def try_evaluate(func: Callable[[EvaluationContext], T],
                 ctx: EvaluationContext) -> Union[T, SkippedTerm]:
    """
    Apply a function to an evaluation context. Value resolution failures are returned as a skipped term; any other
    error propagates.
    """
    try:
        return func(ctx)
    except ValueResolutionError as e:
        return SkippedTerm(ctx, e)


class FilteredSummationNode(ArithmeticExpressionNode):
    """
    Summation 'sum(i in I, j in J: filter) body'.
    """

    def __init__(self,
                 iterators: List[IndexingIterator],
                 operand: ExpressionNode,
                 condition: ExpressionNode = None,
                 id: int = 0):
        super().__init__(id)
        self.iterators: List[IndexingIterator] = list(iterators)
        self.operand: ExpressionNode = operand
        self.condition: Optional[ExpressionNode] = condition

    def get_symbols(self) -> List[str]:
        return [it.symbol for it in self.iterators]

    def collect_terms(self,
                      manager: "ModelManager",
                      ctx: EvaluationContext,
                      func: Callable[[EvaluationContext], T]) -> List[Union[T, SkippedTerm]]:
        """
        Apply a function to every combination of the summation iterators. Combinations rejected by the filter and
        combinations for which the filter or the function fail to resolve a value yield a skipped term.
        :param manager: symbol environment
        :param ctx: enclosing evaluation context
        :param func: term function
        :return: list of term outcomes in iteration order
        """

        terms = []

        for combination_ctx in iterate_combinations(manager, self.iterators, ctx):

            if self.condition is not None:
                is_included = try_evaluate(lambda c: evaluate_filter(self.condition, manager, c), combination_ctx)
                if isinstance(is_included, SkippedTerm):
                    terms.append(is_included)
                    continue
                if not is_included:
                    terms.append(SkippedTerm(combination_ctx))
                    continue

            terms.append(try_evaluate(func, combination_ctx))

        return terms

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        terms = self.collect_terms(manager, ctx, lambda c: self.operand.evaluate(manager, c))
        return float(sum([t for t in terms if not isinstance(t, SkippedTerm)]))

    def collect_dummy_symbols(self) -> Set[str]:
        symbols = set()
        for child in self.get_children():
            symbols.update(child.collect_dummy_symbols())
        symbols.difference_update(self.get_symbols())
        for it in self.iterators:
            symbols.update(it.collect_dummy_symbols())
        return symbols

    def simplify(self, manager: "ModelManager" = None) -> ExpressionNode:
        node = super().simplify(manager)
        if manager is not None and node.is_constant():
            return NumericNode(node.evaluate(manager))
        return node

    def substitute(self,
                   manager: "ModelManager",
                   ctx: EvaluationContext) -> ExpressionNode:
        iterators = [it.substitute(manager, ctx) for it in self.iterators]
        inner_ctx = ctx.without(self.get_symbols())
        operand = self.operand.substitute(manager, inner_ctx)
        condition = self.condition.substitute(manager, inner_ctx) if self.condition is not None else None
        return FilteredSummationNode(iterators, operand, condition, id=self.id)

    def get_children(self) -> List[ExpressionNode]:
        if self.condition is not None:
            return [self.condition, self.operand]
        return [self.operand]

    def set_children(self, operands: list):
        if self.condition is not None:
            self.condition = operands[0]
            self.operand = operands[1]
        else:
            self.operand = operands[0]

    def get_literal(self) -> str:
        iterator_literal = ", ".join([str(it) for it in self.iterators])
        if self.condition is not None:
            iterator_literal += ": {0}".format(self.condition)
        literal = "sum({0}) {1}".format(iterator_literal, self.operand)
        return self._prioritize(literal)
