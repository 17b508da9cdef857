from oplex.mat.aexprn import DecisionExpressionNode, IndexedVariableNode, VariableNode
from oplex.mat.aopn import BinaryArithmeticOperationNode, UnaryArithmeticOperationNode
from oplex.mat.condn import ConditionalNode
from oplex.mat.context import EvaluationContext
from oplex.mat.errors import IndexOutOfRangeError, NonLinearExpressionError, StructuralError, \
    ValueResolutionError
from oplex.mat.exprn import ExpressionNode
from oplex.mat.linear import LinearTerms
from oplex.mat.manager import ModelManager
from oplex.mat.sumn import FilteredSummationNode, SkippedTerm
from oplex.mat.util import *


class Linearizer:
    """
    Converts an expression tree into a linear form under an evaluation context. Bound iterators are substituted into
    the coefficient and constant expressions, which otherwise keep their parameter references so that they reflect
    parameter values at the time they are evaluated.
    """

    def __init__(self, manager: ModelManager):
        self.manager: ModelManager = manager

    def linearize(self,
                  node: ExpressionNode,
                  ctx: EvaluationContext = None) -> LinearTerms:

        if ctx is None:
            ctx = EvaluationContext()

        # constant sub-tree
        if not node.contains_variables():
            return LinearTerms.of_constant(self.__bind_constant(node, ctx))

        if isinstance(node, VariableNode):
            return LinearTerms.of_variable(node.get_flat_name(self.manager, ctx))

        elif isinstance(node, IndexedVariableNode):
            return LinearTerms.of_variable(node.get_flat_name(self.manager, ctx))

        elif isinstance(node, UnaryArithmeticOperationNode):
            terms = self.linearize(node.operand, ctx)
            if node.operator == UNARY_NEGATION_OPERATOR:
                return terms.negate()
            return terms

        elif isinstance(node, BinaryArithmeticOperationNode):
            return self.__linearize_binary_operation(node, ctx)

        elif isinstance(node, FilteredSummationNode):
            return self.__linearize_summation(node, ctx)

        elif isinstance(node, ConditionalNode):
            return self.linearize(node.select_branch(self.manager, ctx), ctx)

        elif isinstance(node, DecisionExpressionNode):
            return self.linearize_decision_expression(node, ctx)

        raise NonLinearExpressionError("Expression '{0}' of type {1} cannot be expressed as a linear form".format(
            node, type(node).__name__))

    def linearize_relation(self,
                           lhs_operand: ExpressionNode,
                           rhs_operand: ExpressionNode,
                           ctx: EvaluationContext = None) -> LinearTerms:
        """
        Move all terms of a relation 'lhs op rhs' to the left-hand side.
        :return: linear form of lhs - rhs
        """
        return self.linearize(lhs_operand, ctx).subtract(self.linearize(rhs_operand, ctx))

    def linearize_decision_expression(self,
                                      node: DecisionExpressionNode,
                                      ctx: EvaluationContext = None) -> LinearTerms:

        dexpr = self.manager.get_decision_expression(node.symbol)
        if dexpr is None:
            raise StructuralError("Decision expression '{0}' not found".format(node.symbol))

        # the definition only sees its own iterator
        dexpr_ctx = EvaluationContext()

        if dexpr.is_indexed():
            if node.idx_node is None:
                raise StructuralError("Decision expression '{0}' is indexed and requires an index".format(dexpr.name))
            idx_set_name = dexpr.idx_set_names[0]
            value = to_index(node.idx_node.evaluate(self.manager, ctx))
            if value not in self.manager.get_domain(idx_set_name):
                raise IndexOutOfRangeError("Index {0} is out of range for decision expression {1}".format(
                    value, dexpr.name))
            tuple_set_name = idx_set_name if self.manager.get_tuple_set(idx_set_name) is not None else None
            dexpr_ctx = dexpr_ctx.bind(dexpr.dummy_symbol, value, tuple_set_name)

        return self.linearize(dexpr.expression_node, dexpr_ctx)

    # Operations
    # ------------------------------------------------------------------------------------------------------------------

    def __linearize_binary_operation(self,
                                     node: BinaryArithmeticOperationNode,
                                     ctx: EvaluationContext) -> LinearTerms:

        lhs = self.linearize(node.lhs_operand, ctx)
        rhs = self.linearize(node.rhs_operand, ctx)

        if node.operator == ADDITION_OPERATOR:
            return lhs.add(rhs)

        elif node.operator == SUBTRACTION_OPERATOR:
            return lhs.subtract(rhs)

        elif node.operator == MULTIPLICATION_OPERATOR:
            if lhs.is_constant():
                return rhs.scale(lhs.constant)
            if rhs.is_constant():
                return lhs.scale(rhs.constant)
            raise NonLinearExpressionError(
                "Product '{0}' of two expressions containing variables is not linear".format(node))

        elif node.operator == DIVISION_OPERATOR:
            if not rhs.is_constant():
                raise NonLinearExpressionError("Division by an expression containing variables in '{0}'".format(node))
            if is_zero(rhs.constant.evaluate(self.manager)):
                raise ValueResolutionError("Division by zero in '{0}'".format(node))
            return lhs.divide(rhs.constant)

        raise ValueError("Unable to resolve operator '{0}' as a binary arithmetic operator".format(node.operator))

    def __linearize_summation(self,
                              node: FilteredSummationNode,
                              ctx: EvaluationContext) -> LinearTerms:
        terms = node.collect_terms(self.manager, ctx, lambda c: self.linearize(node.operand, c))
        return LinearTerms.merge([t for t in terms if not isinstance(t, SkippedTerm)])

    def __bind_constant(self,
                        node: ExpressionNode,
                        ctx: EvaluationContext) -> ExpressionNode:
        node.evaluate(self.manager, ctx)  # raises if a value cannot be resolved for this combination
        return node.substitute(self.manager, ctx).simplify()
