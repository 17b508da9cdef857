from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Set

from oplex.mat.aexprn import NumericNode, StringNode
from oplex.mat.context import EvaluationContext
from oplex.mat.errors import MalformedKeyError, NotNumericError, TypeMismatchError, ValueResolutionError
from oplex.mat.exprn import ArithmeticExpressionNode, ExpressionNode, TupleExpressionNode
from oplex.mat import resolver
from oplex.mat.scalar import ScalarValue
from oplex.mat.tuples import TupleInstance
from oplex.mat.util import to_index

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


# Field Access Nodes
# ----------------------------------------------------------------------------------------------------------------------

class BaseTupleFieldAccessNode(ArithmeticExpressionNode, ABC):
    """
    Access to a field of a tuple instance. Numeric field values are returned as numbers; string field values can only
    be used as scalars (e.g. as key components or in comparisons).
    """

    def __init__(self, field_name: Optional[str], id: int = 0):
        super().__init__(id)
        self.field_name: Optional[str] = field_name

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> float:
        value = self.evaluate_scalar(manager, ctx)
        if value.kind == ScalarValue.STR:
            raise TypeMismatchError("Field access '{0}' yields the non-numeric value \"{1}\"".format(self,
                                                                                                   value.value))
        return value.to_float()

    def evaluate_scalar(self,
                        manager: "ModelManager",
                        ctx: EvaluationContext = None) -> ScalarValue:
        if self.field_name is None:
            raise NotNumericError("Expression '{0}' is a tuple; access one of its fields".format(self))
        return self.resolve_instance(manager, ctx).get_value(self.field_name)

    def evaluate_key(self,
                     manager: "ModelManager",
                     ctx: EvaluationContext = None) -> List[ScalarValue]:
        if self.field_name is not None:
            return [self.evaluate_scalar(manager, ctx)]
        instance = self.resolve_instance(manager, ctx)
        schema = manager.require_tuple_schema(instance.schema_name)
        return resolver.get_key_values(schema, instance)

    @abstractmethod
    def resolve_instance(self,
                         manager: "ModelManager",
                         ctx: EvaluationContext = None) -> TupleInstance:
        pass

    def simplify(self, manager: "ModelManager" = None) -> ExpressionNode:
        node = super().simplify(manager)
        if manager is None or self.field_name is None or not node.is_constant():
            return node
        try:
            value = node.evaluate_scalar(manager)
        except ValueResolutionError:
            return node
        if value.kind == ScalarValue.STR:
            return StringNode(value.value)
        return NumericNode(value.to_float())

    def _get_field_literal(self) -> str:
        return '.' + self.field_name if self.field_name is not None else ""


class TupleFieldAccessNode(BaseTupleFieldAccessNode):
    """
    Field access with a fixed 1-based position, e.g. 'products[3].price'.
    """

    def __init__(self, set_name: str, position: int, field_name: Optional[str], id: int = 0):
        super().__init__(field_name, id)
        self.set_name: str = set_name
        self.position: int = position

    def resolve_instance(self,
                         manager: "ModelManager",
                         ctx: EvaluationContext = None) -> TupleInstance:
        return resolver.resolve_position(manager, self.set_name, self.position)

    def get_children(self) -> list:
        return []

    def set_children(self, operands: list):
        pass

    def get_literal(self) -> str:
        return "{0}[{1}]{2}".format(self.set_name, self.position, self._get_field_literal())


class IteratorTupleFieldAccessNode(BaseTupleFieldAccessNode):
    """
    Field access whose index is an expression of iterators, e.g. 'products[p].price'. The index value is mapped
    through the backing index set of the tuple set, if any.
    """

    def __init__(self, set_name: str, idx_node: ExpressionNode, field_name: Optional[str], id: int = 0):
        super().__init__(field_name, id)
        self.set_name: str = set_name
        self.idx_node: ExpressionNode = idx_node

    def resolve_instance(self,
                         manager: "ModelManager",
                         ctx: EvaluationContext = None) -> TupleInstance:
        tuple_set = manager.require_tuple_set(self.set_name)
        value = to_index(self.idx_node.evaluate(manager, ctx))
        return resolver.resolve_iterator_position(manager, tuple_set, value)

    def substitute(self,
                   manager: "ModelManager",
                   ctx: EvaluationContext) -> ExpressionNode:
        idx_node = self.idx_node.substitute(manager, ctx)
        if isinstance(idx_node, NumericNode):
            tuple_set = manager.require_tuple_set(self.set_name)
            position = resolver.get_iterator_position(manager, tuple_set, to_index(idx_node.value))
            return TupleFieldAccessNode(self.set_name, position, self.field_name, id=self.id)
        return self._rebuild([self.idx_node], [idx_node])

    def get_children(self) -> List[ExpressionNode]:
        return [self.idx_node]

    def set_children(self, operands: list):
        if len(operands) > 0:
            self.idx_node = operands[0]

    def get_literal(self) -> str:
        return "{0}[{1}]{2}".format(self.set_name, self.idx_node, self._get_field_literal())


class DynamicTupleFieldAccessNode(BaseTupleFieldAccessNode):
    """
    Field access 'p.field' where 'p' is either an iterator bound to a tuple or a tuple-valued parameter.
    """

    def __init__(self, symbol: str, field_name: str, is_dummy: bool = True, id: int = 0):
        super().__init__(field_name, id)
        self.symbol: str = symbol
        self.is_dummy: bool = is_dummy

    def resolve_instance(self,
                         manager: "ModelManager",
                         ctx: EvaluationContext = None) -> TupleInstance:
        return resolver.resolve_dynamic(manager, ctx, self.symbol, self.field_name)

    def collect_dummy_symbols(self) -> Set[str]:
        if self.is_dummy:
            return {self.symbol}
        return set()

    def substitute(self,
                   manager: "ModelManager",
                   ctx: EvaluationContext) -> ExpressionNode:
        location = resolver.locate_dynamic(manager, ctx, self.symbol, self.field_name)
        if location is None:
            return self
        set_name, position = location
        return TupleFieldAccessNode(set_name, position, self.field_name, id=self.id)

    def get_children(self) -> list:
        return []

    def set_children(self, operands: list):
        pass

    def get_literal(self) -> str:
        return "{0}{1}".format(self.symbol, self._get_field_literal())


# Item Nodes
# ----------------------------------------------------------------------------------------------------------------------

class ItemFunctionNode(TupleExpressionNode):
    """
    Lookup 'item(set, key)' of the tuple instance whose key fields match a key. The node yields a tuple instance and is
    only meaningful as the operand of a field access or as a nested key.
    """

    def __init__(self, set_name: str, key_node: ExpressionNode, id: int = 0):
        super().__init__(id)
        self.set_name: str = set_name
        self.key_node: ExpressionNode = key_node

    def resolve_instance(self,
                         manager: "ModelManager",
                         ctx: EvaluationContext = None) -> TupleInstance:
        key_values = self.key_node.evaluate_key(manager, ctx)
        return resolver.resolve_item(manager, self.set_name, key_values)

    def evaluate_key(self,
                     manager: "ModelManager",
                     ctx: EvaluationContext = None) -> List[ScalarValue]:
        instance = self.resolve_instance(manager, ctx)
        schema = manager.require_tuple_schema(instance.schema_name)
        return resolver.get_key_values(schema, instance)

    def is_constant(self) -> bool:
        return False

    def get_children(self) -> List[ExpressionNode]:
        return [self.key_node]

    def set_children(self, operands: list):
        if len(operands) > 0:
            self.key_node = operands[0]

    def get_literal(self) -> str:
        return "item({0}, {1})".format(self.set_name, self.key_node)


class ItemFieldAccessNode(BaseTupleFieldAccessNode):
    """
    Field access on the result of an item() lookup, e.g. 'item(arcs, <i, j>).cost'.
    """

    def __init__(self, item_node: ItemFunctionNode, field_name: str, id: int = 0):
        super().__init__(field_name, id)
        self.item_node: ItemFunctionNode = item_node

    def resolve_instance(self,
                         manager: "ModelManager",
                         ctx: EvaluationContext = None) -> TupleInstance:
        return self.item_node.resolve_instance(manager, ctx)

    def get_children(self) -> List[ExpressionNode]:
        return [self.item_node]

    def set_children(self, operands: list):
        if len(operands) > 0:
            self.item_node = operands[0]

    def get_literal(self) -> str:
        return "{0}{1}".format(self.item_node, self._get_field_literal())


# Key Nodes
# ----------------------------------------------------------------------------------------------------------------------

class CompositeKeyNode(TupleExpressionNode):
    """
    Multi-part key '<a, b, c>'. Parts that are themselves keys are flattened in place.
    """

    def __init__(self, parts: List[ExpressionNode], id: int = 0):
        super().__init__(id)
        self.parts: List[ExpressionNode] = list(parts)

    def evaluate_key(self,
                     manager: "ModelManager",
                     ctx: EvaluationContext = None) -> List[ScalarValue]:
        if len(self.parts) == 0:
            raise MalformedKeyError("Composite key '{0}' has no components".format(self))
        key_values = []
        for part in self.parts:
            key_values.extend(part.evaluate_key(manager, ctx))
        return key_values

    def get_children(self) -> List[ExpressionNode]:
        return list(self.parts)

    def set_children(self, operands: list):
        self.parts = list(operands)

    def get_literal(self) -> str:
        return "<{0}>".format(", ".join([str(p) for p in self.parts]))


class TupleKeyNode(TupleExpressionNode):
    """
    Single-component key '<a>'.
    """

    def __init__(self, inner: ExpressionNode, id: int = 0):
        super().__init__(id)
        self.inner: ExpressionNode = inner

    def evaluate_key(self,
                     manager: "ModelManager",
                     ctx: EvaluationContext = None) -> List[ScalarValue]:
        return self.inner.evaluate_key(manager, ctx)

    def get_children(self) -> List[ExpressionNode]:
        return [self.inner]

    def set_children(self, operands: list):
        if len(operands) > 0:
            self.inner = operands[0]

    def get_literal(self) -> str:
        return "<{0}>".format(self.inner)
