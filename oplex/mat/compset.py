from typing import TYPE_CHECKING, List, Optional, Union

import oplex.constants as const
from oplex.mat.context import EvaluationContext
from oplex.mat.domain import IndexingIterator, iterate_combinations
from oplex.mat.dummyn import DummyNode
from oplex.mat.errors import IndexOutOfRangeError, StructuralError
from oplex.mat.exprn import ExpressionNode
from oplex.mat.resolver import resolve_iterator_position
from oplex.mat.scalar import ScalarValue, coerce_scalar
from oplex.mat.sets import PrimitiveSet
from oplex.mat.sumn import SkippedTerm, evaluate_filter, try_evaluate
from oplex.mat.tuplen import BaseTupleFieldAccessNode, ItemFunctionNode
from oplex.mat.tuples import TupleInstance, TupleSet

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


Member = Union[TupleInstance, ScalarValue]


class ComputedSet:
    """
    Set defined by a comprehension over other sets, e.g. '{Arc} cheap = {a | a in arcs: a.cost < 3};'.

    The element expression is either an iterator, which yields the tuple it addresses (or its integer value when it
    runs over an index set or an integer set), or a scalar expression such as a field projection 'a.origin'.

    An indexed computed set '{Arc} out[i in N] = {a | a in arcs: a.src == i};' defines one member set per value of its
    index iterator. Member sets are registered under the names 'out[1]', 'out[2]', ... and are reached by iterators
    of the form 'a in out[k]'.
    """

    def __init__(self,
                 name: str,
                 element_type: str,
                 element_node: ExpressionNode,
                 iterators: List[IndexingIterator],
                 condition: ExpressionNode = None,
                 index_iterator: IndexingIterator = None,
                 line: int = 0):
        self.name: str = name
        self.element_type: str = element_type
        self.element_node: ExpressionNode = element_node
        self.iterators: List[IndexingIterator] = list(iterators)
        self.condition: Optional[ExpressionNode] = condition
        self.index_iterator: Optional[IndexingIterator] = index_iterator
        self.line: int = line

        self.is_resolved: bool = False

    def __str__(self):
        literal = "{{{0}}} {1}".format(self.element_type, self.name)
        if self.index_iterator is not None:
            literal += "[{0}]".format(self.index_iterator)
        comprehension = "{0} | {1}".format(self.element_node, ", ".join([str(it) for it in self.iterators]))
        if self.condition is not None:
            comprehension += ": {0}".format(self.condition)
        return "{0} = {{{1}}}".format(literal, comprehension)

    def is_indexed(self) -> bool:
        return self.index_iterator is not None

    def is_tuple_valued(self) -> bool:
        return self.element_type not in const.PARAM_TYPES

    # Member Sets
    # ------------------------------------------------------------------------------------------------------------------

    def get_member_name(self, manager: "ModelManager", idx: int) -> str:
        """
        Retrieve the name under which the member set of an index value is registered.
        :param manager: symbol environment
        :param idx: index value
        :return: member set name
        """
        if not self.is_indexed():
            return self.name
        if idx not in self.index_iterator.get_domain(manager):
            raise IndexOutOfRangeError("Index {0} is out of range for computed set {1}".format(idx, self.name))
        return "{0}[{1}]".format(self.name, idx)

    def build_set(self, name: str, members: List[Member]) -> Union[TupleSet, PrimitiveSet]:
        """
        Build the container of a member set from evaluated members. Duplicate members are kept once, in order of
        first occurrence.
        """

        if not self.is_tuple_valued():
            values = []
            for member in members:
                if isinstance(member, TupleInstance):
                    raise StructuralError("Computed set '{0}' of type {1} cannot hold the tuple {2}".format(
                        self.name, self.element_type, member))
                values.append(coerce_scalar(member, self.element_type).value)
            return PrimitiveSet(name, self.element_type, values)

        instances = []
        for member in members:
            if not isinstance(member, TupleInstance) or member.schema_name != self.element_type:
                raise StructuralError("Computed set '{0}' expects tuples of schema '{1}' but got '{2}'".format(
                    self.name, self.element_type, member))
            if not any([member is i for i in instances]):
                instances.append(member)
        return TupleSet(name, self.element_type, instances)

    # Evaluation
    # ------------------------------------------------------------------------------------------------------------------

    def resolve(self, manager: "ModelManager"):
        """
        Evaluate the comprehension and register the resulting member set(s) with the symbol environment, replacing
        the members of a previous evaluation.
        :param manager: symbol environment
        :return: None
        """

        if not self.is_indexed():
            manager.set_computed_members(self.build_set(self.name, self.evaluate(manager)))
            self.is_resolved = True
            return

        symbol = self.index_iterator.symbol
        for ctx in iterate_combinations(manager, [self.index_iterator]):
            name = "{0}[{1}]".format(self.name, ctx.get_value(symbol))
            manager.set_computed_members(self.build_set(name, self.evaluate(manager, ctx)))

        self.is_resolved = True

    def evaluate(self,
                 manager: "ModelManager",
                 ctx: EvaluationContext = None) -> List[Member]:
        """
        Enumerate the members produced by the comprehension. Combinations rejected by the filter and combinations for
        which a value cannot be resolved produce no member.
        :param manager: symbol environment
        :param ctx: binding of the index iterator of an indexed computed set
        :return: members in iteration order
        """

        def evaluate_member(c: EvaluationContext) -> Optional[Member]:
            if self.condition is not None and not evaluate_filter(self.condition, manager, c):
                return None
            return self.__evaluate_element(manager, c)

        members = []
        for combination_ctx in iterate_combinations(manager, self.iterators, ctx):
            member = try_evaluate(evaluate_member, combination_ctx)
            if member is not None and not isinstance(member, SkippedTerm):
                members.append(member)

        return members

    def __evaluate_element(self,
                           manager: "ModelManager",
                           ctx: EvaluationContext) -> Member:

        node = self.element_node

        # iterator over a tuple set
        if isinstance(node, DummyNode):
            binding = ctx.get_binding(node.symbol)
            if binding is not None and binding.tuple_set_name is not None:
                tuple_set = manager.require_tuple_set(binding.tuple_set_name)
                return resolve_iterator_position(manager, tuple_set, binding.value)

        # tuple-valued expression
        elif isinstance(node, ItemFunctionNode):
            return node.resolve_instance(manager, ctx)
        elif isinstance(node, BaseTupleFieldAccessNode) and node.field_name is None:
            return node.resolve_instance(manager, ctx)

        return node.evaluate_scalar(manager, ctx)
