from numbers import Number
import numpy as np
from typing import TYPE_CHECKING, List, Set, Union

from oplex.mat.context import EvaluationContext
from oplex.mat.entity import Parameter
from oplex.mat.errors import NotFoundError, NotNumericError, StructuralError, TypeMismatchError, ValueResolutionError
from oplex.mat.exprn import ArithmeticExpressionNode, ExpressionNode
from oplex.mat.scalar import ScalarValue
from oplex.mat.util import to_index

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


# Constant Nodes
# ----------------------------------------------------------------------------------------------------------------------

class NumericNode(ArithmeticExpressionNode):

    def __init__(self, value: Union[Number, str], id: int = 0):
        super().__init__(id)
        self.value: Number = float(value)
        if isinstance(self.value, float) and self.value.is_integer():
            self.value = int(self.value)

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        return float(self.value)

    def evaluate_scalar(self,
                        manager: "ModelManager",
                        ctx: EvaluationContext = None) -> ScalarValue:
        return ScalarValue.of(self.value)

    def is_constant(self) -> bool:
        return True

    def simplify(self, manager: "ModelManager" = None) -> ExpressionNode:
        return self

    def get_children(self) -> list:
        return []

    def set_children(self, children: list):
        pass

    def get_literal(self) -> str:
        if self.value == np.inf:
            literal = "Infinity"
        elif self.value == -np.inf:
            literal = "-Infinity"
        else:
            literal = str(self.value)
        return self._prioritize(literal)


class StringNode(ExpressionNode):

    def __init__(self, value: str, id: int = 0):
        super().__init__(id)
        self.value: str = value

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        raise TypeMismatchError('String "{0}" cannot be evaluated as a number'.format(self.value))

    def evaluate_scalar(self,
                        manager: "ModelManager",
                        ctx: EvaluationContext = None) -> ScalarValue:
        return ScalarValue(ScalarValue.STR, self.value)

    def is_constant(self) -> bool:
        return True

    def get_children(self) -> list:
        return []

    def set_children(self, children: list):
        pass

    def get_literal(self) -> str:
        return '"{0}"'.format(self.value)


class BooleanNode(ArithmeticExpressionNode):

    def __init__(self, value: bool, id: int = 0):
        super().__init__(id)
        self.value: bool = value

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        return 1.0 if self.value else 0.0

    def evaluate_scalar(self,
                        manager: "ModelManager",
                        ctx: EvaluationContext = None) -> ScalarValue:
        return ScalarValue(ScalarValue.BOOL, self.value)

    def is_constant(self) -> bool:
        return True

    def get_children(self) -> list:
        return []

    def set_children(self, children: list):
        pass

    def get_literal(self) -> str:
        return "true" if self.value else "false"


# Parameter Nodes
# ----------------------------------------------------------------------------------------------------------------------

class ParameterNode(ArithmeticExpressionNode):
    """
    Reference to a scalar parameter. A bound iterator of the same name takes precedence over the declared parameter.
    """

    def __init__(self, symbol: str, id: int = 0):
        super().__init__(id)
        self.symbol: str = symbol

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        value = self.evaluate_scalar(manager, ctx)
        if value.kind == ScalarValue.STR:
            raise TypeMismatchError("Parameter '{0}' holds the non-numeric value \"{1}\"".format(self.symbol,
                                                                                                value.value))
        return value.to_float()

    def evaluate_scalar(self,
                        manager: "ModelManager",
                        ctx: EvaluationContext = None) -> ScalarValue:

        if ctx is not None:
            binding = ctx.get_binding(self.symbol)
            if binding is not None:
                return ScalarValue(ScalarValue.INT, binding.value)

        param = self.__get_parameter(manager)
        return param.get_value()

    def __get_parameter(self, manager: "ModelManager") -> Parameter:
        param = manager.get_parameter(self.symbol)
        if param is None:
            if manager.get_tuple_parameter(self.symbol) is not None:
                raise NotNumericError("Parameter '{0}' is tuple-valued".format(self.symbol))
            raise NotFoundError("Parameter '{0}' not found".format(self.symbol))
        if param.is_indexed():
            raise StructuralError("Parameter '{0}' is indexed and requires an index".format(self.symbol))
        return param

    def simplify(self, manager: "ModelManager" = None) -> ExpressionNode:
        if manager is None:
            return self
        param = manager.get_parameter(self.symbol)
        if param is None or param.is_indexed() or not param.is_numeric() or not param.has_value():
            return self
        return NumericNode(param.get_value().to_float())

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


class IndexedParameterNode(ArithmeticExpressionNode):
    """
    Reference to an indexed parameter with one or two index expressions, e.g. 'cost[i]' or 'dist[i,j]'.
    """

    def __init__(self, symbol: str, idx_nodes: List[ExpressionNode], id: int = 0):
        super().__init__(id)
        self.symbol: str = symbol
        self.idx_nodes: List[ExpressionNode] = list(idx_nodes)

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        value = self.evaluate_scalar(manager, ctx)
        if value.kind == ScalarValue.STR:
            raise TypeMismatchError("Parameter '{0}' holds the non-numeric value \"{1}\" at index [{2}]".format(
                self.symbol, value.value, ','.join([str(i) for i in self.evaluate_indices(manager, ctx)])))
        return value.to_float()

    def evaluate_scalar(self,
                        manager: "ModelManager",
                        ctx: EvaluationContext = None) -> ScalarValue:
        param = manager.get_parameter(self.symbol)
        if param is None:
            if manager.get_tuple_set(self.symbol) is not None:
                raise NotNumericError("Tuple set member '{0}' is tuple-valued; access one of its fields".format(self))
            raise NotFoundError("Parameter '{0}' not found".format(self.symbol))
        indices = self.evaluate_indices(manager, ctx)
        manager.check_indices(param, indices, "parameter")
        return param.get_value(indices)

    def evaluate_indices(self,
                         manager: "ModelManager",
                         ctx: EvaluationContext = None) -> tuple:
        return tuple([to_index(n.evaluate(manager, ctx)) for n in self.idx_nodes])

    def simplify(self, manager: "ModelManager" = None) -> ExpressionNode:
        node = super().simplify(manager)
        if manager is None or not node.is_constant():
            return node
        param = manager.get_parameter(self.symbol)
        if param is None or not param.is_numeric():
            return node
        try:
            return NumericNode(node.evaluate(manager))
        except ValueResolutionError:
            return node

    def get_children(self) -> List[ExpressionNode]:
        return list(self.idx_nodes)

    def set_children(self, operands: List[ExpressionNode]):
        self.idx_nodes = list(operands)

    def get_literal(self) -> str:
        return "{0}[{1}]".format(self.symbol, ','.join([str(n) for n in self.idx_nodes]))


# Variable Nodes
# ----------------------------------------------------------------------------------------------------------------------

class VariableNode(ArithmeticExpressionNode):

    def __init__(self, symbol: str, id: int = 0):
        super().__init__(id)
        self.symbol: str = symbol

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        raise StructuralError("Decision variable '{0}' has no value and cannot be evaluated".format(self.symbol))

    def contains_variables(self) -> bool:
        return True

    def get_flat_name(self,
                      manager: "ModelManager",
                      ctx: EvaluationContext = None) -> str:
        var = manager.require_variable(self.symbol)
        if var.is_indexed():
            raise StructuralError("Variable '{0}' is indexed and requires an index".format(self.symbol))
        return var.get_flat_name()

    def get_children(self) -> list:
        return []

    def set_children(self, children: list):
        pass

    def get_literal(self) -> str:
        return self.symbol


class IndexedVariableNode(ArithmeticExpressionNode):

    def __init__(self, symbol: str, idx_nodes: List[ExpressionNode], id: int = 0):
        super().__init__(id)
        self.symbol: str = symbol
        self.idx_nodes: List[ExpressionNode] = list(idx_nodes)

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        raise StructuralError("Decision variable '{0}' has no value and cannot be evaluated".format(self))

    def contains_variables(self) -> bool:
        return True

    def get_flat_name(self,
                      manager: "ModelManager",
                      ctx: EvaluationContext = None) -> str:
        """
        Resolve the name of the scalar variable referenced by the node under the supplied context.
        :param manager: symbol environment
        :param ctx: evaluation context binding the iterators of the index expressions
        :return: flat variable name, e.g. 'x1_2'
        """
        var = manager.require_variable(self.symbol)
        indices = tuple([to_index(n.evaluate(manager, ctx)) for n in self.idx_nodes])
        manager.check_indices(var, indices, "variable")
        return var.get_flat_name(indices)

    def get_children(self) -> List[ExpressionNode]:
        return list(self.idx_nodes)

    def set_children(self, operands: List[ExpressionNode]):
        self.idx_nodes = list(operands)

    def get_literal(self) -> str:
        return "{0}[{1}]".format(self.symbol, ','.join([str(n) for n in self.idx_nodes]))


class DecisionExpressionNode(ArithmeticExpressionNode):
    """
    Reference to a decision expression. Its definition is expanded in place during linearization.
    """

    def __init__(self, symbol: str, idx_node: ExpressionNode = None, id: int = 0):
        super().__init__(id)
        self.symbol: str = symbol
        self.idx_node: ExpressionNode = idx_node

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        raise StructuralError("Decision expression '{0}' depends on decision variables and cannot be evaluated".format(
            self.symbol))

    def contains_variables(self) -> bool:
        return True

    def collect_dummy_symbols(self) -> Set[str]:
        if self.idx_node is None:
            return set()
        return self.idx_node.collect_dummy_symbols()

    def get_children(self) -> List[ExpressionNode]:
        return [self.idx_node] if self.idx_node is not None else []

    def set_children(self, operands: List[ExpressionNode]):
        if len(operands) > 0:
            self.idx_node = operands[0]

    def get_literal(self) -> str:
        if self.idx_node is not None:
            return "{0}[{1}]".format(self.symbol, self.idx_node)
        return self.symbol
