from ordered_set import OrderedSet
from typing import TYPE_CHECKING, Iterator, List, Optional, Set

from oplex.mat.context import EvaluationContext
from oplex.mat.errors import StructuralError, ValueResolutionError
from oplex.mat.exprn import ExpressionNode
from oplex.mat.util import to_index

if TYPE_CHECKING:
    from oplex.mat.manager import ModelManager


class IndexingIterator:
    """
    Iterator declaration 'i in I' or 'i in lb..ub' of a summation, a forall statement or an indexed constraint label.
    An iterator may also run over a member of an indexed computed set, e.g. 'a in out[k]'.
    """

    def __init__(self,
                 symbol: str,
                 set_name: str = None,
                 start_node: ExpressionNode = None,
                 end_node: ExpressionNode = None,
                 set_index_node: ExpressionNode = None):
        self.symbol: str = symbol
        self.set_name: Optional[str] = set_name
        self.start_node: Optional[ExpressionNode] = start_node
        self.end_node: Optional[ExpressionNode] = end_node
        self.set_index_node: Optional[ExpressionNode] = set_index_node  # index of an indexed computed set

    def __str__(self):
        if self.set_name is not None:
            if self.set_index_node is not None:
                return "{0} in {1}[{2}]".format(self.symbol, self.set_name, self.set_index_node)
            return "{0} in {1}".format(self.symbol, self.set_name)
        return "{0} in {1}..{2}".format(self.symbol, self.start_node, self.end_node)

    def is_range(self) -> bool:
        return self.set_name is None

    def resolve_set_name(self,
                         manager: "ModelManager",
                         ctx: EvaluationContext = None) -> Optional[str]:
        """
        Retrieve the name of the set the iterator runs over. The member of an indexed computed set is selected by the
        value of the index expression.
        """
        if self.set_name is None or self.set_index_node is None:
            return self.set_name
        computed_set = manager.require_computed_set(self.set_name)
        return computed_set.get_member_name(manager, to_index(self.set_index_node.evaluate(manager, ctx)))

    def get_domain(self,
                   manager: "ModelManager",
                   ctx: EvaluationContext = None) -> OrderedSet:
        """
        Enumerate the values of the iterator in ascending declared order. Failing to resolve the domain is a
        structural error regardless of its cause.
        :param manager: symbol environment
        :param ctx: bindings of enclosing iterators referenced by range bounds or set indices
        :return: ordered set of integer values
        """

        try:
            if self.set_name is not None:
                return manager.get_domain(self.resolve_set_name(manager, ctx))
            start = to_index(self.start_node.evaluate(manager, ctx))
            end = to_index(self.end_node.evaluate(manager, ctx))
        except ValueResolutionError as e:
            raise StructuralError("Unable to resolve the domain of iterator '{0}': {1}".format(self.symbol,
                                                                                              e)) from e

        return OrderedSet(range(start, end + 1))

    def get_tuple_set_name(self,
                           manager: "ModelManager",
                           ctx: EvaluationContext = None) -> Optional[str]:
        """
        Retrieve the name of the tuple set the iterator walks through, if any.
        """
        set_name = self.resolve_set_name(manager, ctx)
        if set_name is not None and manager.get_tuple_set(set_name) is not None:
            return set_name
        return None

    def collect_dummy_symbols(self) -> Set[str]:
        symbols = set()
        for node in (self.start_node, self.end_node, self.set_index_node):
            if node is not None:
                symbols.update(node.collect_dummy_symbols())
        return symbols

    def substitute(self,
                   manager: "ModelManager",
                   ctx: EvaluationContext) -> "IndexingIterator":
        if self.set_name is not None:
            if self.set_index_node is None:
                return self
            return IndexingIterator(self.symbol,
                                    set_name=self.set_name,
                                    set_index_node=self.set_index_node.substitute(manager, ctx))
        return IndexingIterator(self.symbol,
                                start_node=self.start_node.substitute(manager, ctx),
                                end_node=self.end_node.substitute(manager, ctx))


def iterate_combinations(manager: "ModelManager",
                         iterators: List[IndexingIterator],
                         ctx: EvaluationContext = None) -> Iterator[EvaluationContext]:
    """
    Enumerate the cross product of the domains of a list of iterators, the first iterator varying slowest. Domains
    are resolved lazily so that range bounds and set indices may refer to enclosing iterators.
    :param manager: symbol environment
    :param iterators: iterator declarations
    :param ctx: enclosing evaluation context
    :return: generator of evaluation contexts, one per combination
    """

    if ctx is None:
        ctx = EvaluationContext()

    if len(iterators) == 0:
        yield ctx
        return

    iterator = iterators[0]
    domain = iterator.get_domain(manager, ctx)
    tuple_set_name = iterator.get_tuple_set_name(manager, ctx)

    for value in domain:
        yield from iterate_combinations(manager, iterators[1:], ctx.bind(iterator.symbol, value, tuple_set_name))
