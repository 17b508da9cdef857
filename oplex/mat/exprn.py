from abc import ABC, abstractmethod
from copy import copy
from typing import TYPE_CHECKING, List, Set

from oplex.mat.context import EvaluationContext
from oplex.mat.errors import NotNumericError
from oplex.mat.scalar import ScalarValue

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


# Expression Node
# ----------------------------------------------------------------------------------------------------------------------

class ExpressionNode(ABC):

    def __init__(self, id: int = 0):
        self.id: int = id
        self.is_prioritized: bool = False

    def __str__(self):
        return self.get_literal()

    def __repr__(self):
        return "{0}({1})".format(type(self).__name__, self.get_literal())

    # Evaluation
    # ------------------------------------------------------------------------------------------------------------------

    @abstractmethod
    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        pass

    def evaluate_scalar(self,
                        manager: "ModelManager",
                        ctx: EvaluationContext = None) -> ScalarValue:
        """
        Evaluate the node as a tagged scalar. String-valued nodes override this method; the default wraps the numeric
        value.
        """
        return ScalarValue(ScalarValue.FLOAT, self.evaluate(manager, ctx))

    def evaluate_key(self,
                     manager: "ModelManager",
                     ctx: EvaluationContext = None) -> List[ScalarValue]:
        """
        Evaluate the node as the key of an item() lookup.
        :return: list of key component values
        """
        return [self.evaluate_scalar(manager, ctx)]

    # Checkers
    # ------------------------------------------------------------------------------------------------------------------

    def is_constant(self) -> bool:
        """
        Returns True if the node can be evaluated without an evaluation context, i.e. if it contains neither unbound
        iterators nor decision variables.
        """
        return len(self.collect_dummy_symbols()) == 0 and not self.contains_variables()

    def contains_variables(self) -> bool:
        return any([o.contains_variables() for o in self.get_children()])

    def collect_dummy_symbols(self) -> Set[str]:
        symbols = set()
        for child in self.get_children():
            symbols.update(child.collect_dummy_symbols())
        return symbols

    # Transformation
    # ------------------------------------------------------------------------------------------------------------------

    def simplify(self, manager: "ModelManager" = None) -> "ExpressionNode":
        """
        Fold constant sub-trees bottom-up. The node is never modified: a new node is returned if any child changed,
        otherwise the node itself is returned.
        :param manager: symbol environment used to resolve parameter values; only literals are folded if None
        :return: simplified node
        """
        children = self.get_children()
        simplified_children = [c.simplify(manager) for c in children]
        return self._rebuild(children, simplified_children)

    def substitute(self,
                   manager: "ModelManager",
                   ctx: EvaluationContext) -> "ExpressionNode":
        """
        Replace the iterators bound in the context with their values. The node is never modified.
        """
        children = self.get_children()
        substituted_children = [c.substitute(manager, ctx) for c in children]
        return self._rebuild(children, substituted_children)

    def _rebuild(self,
                 children: List["ExpressionNode"],
                 new_children: List["ExpressionNode"]) -> "ExpressionNode":
        if all([a is b for a, b in zip(children, new_children)]):
            return self
        clone = copy(self)
        clone.set_children(new_children)
        return clone

    # Tree Access
    # ------------------------------------------------------------------------------------------------------------------

    @abstractmethod
    def get_children(self) -> List["ExpressionNode"]:
        pass

    @abstractmethod
    def set_children(self, operands: List["ExpressionNode"]):
        pass

    @abstractmethod
    def get_literal(self) -> str:
        return ""

    def _prioritize(self, literal: str) -> str:
        if self.is_prioritized:
            return '(' + literal + ')'
        return literal


# Fundamental Expression Nodes
# ----------------------------------------------------------------------------------------------------------------------

class ArithmeticExpressionNode(ExpressionNode, ABC):

    def __init__(self, id: int = 0):
        super().__init__(id)


class LogicalExpressionNode(ExpressionNode, ABC):

    def __init__(self, id: int = 0):
        super().__init__(id)


class TupleExpressionNode(ExpressionNode, ABC):
    """
    Node whose value is a tuple instance or a key rather than a number. Such nodes are only meaningful as operands of
    field accesses and item() lookups.
    """

    def __init__(self, id: int = 0):
        super().__init__(id)

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        raise NotNumericError("Expression '{0}' is tuple-valued and cannot be evaluated as a number".format(self))

    def evaluate_scalar(self,
                        manager: "ModelManager",
                        ctx: EvaluationContext = None) -> ScalarValue:
        raise NotNumericError("Expression '{0}' is tuple-valued and cannot be used as a scalar".format(self))
