from .errors import (
    ModelError,
    StructuralError,
    NotFoundError,
    TupleSetNotFoundError,
    SchemaNotFoundError,
    KeyArityMismatchError,
    MalformedKeyError,
    TokenizationError,
    ModelSyntaxError,
    NonLinearExpressionError,
    ValueResolutionError,
    NoMatchError,
    MissingValueError,
    IndexOutOfRangeError,
    NumericTypeError,
    NotNumericError,
    TypeMismatchError,
)

from .util import *

from .scalar import ScalarValue, scalars_match, parse_key_literal, coerce_scalar

from .context import EvaluationContext, IteratorBinding

from .sets import IndexSet, PrimitiveSet
from .tuples import TupleSchema, TupleInstance, TupleSet
from .entity import (
    Entity,
    Parameter,
    IndexedVariable,
    DecisionExpression,
    Assertion,
)

from .exprn import (
    ExpressionNode,
    ArithmeticExpressionNode,
    LogicalExpressionNode,
    TupleExpressionNode,
)

from .aexprn import (
    NumericNode,
    StringNode,
    BooleanNode,
    ParameterNode,
    IndexedParameterNode,
    VariableNode,
    IndexedVariableNode,
    DecisionExpressionNode,
)

from .dummyn import DummyNode

from .aopn import UnaryArithmeticOperationNode, BinaryArithmeticOperationNode

from .logopn import LogicalOperationNode
from .relopn import RelationalOperationNode

from .condn import ConditionalNode

from .tuplen import (
    BaseTupleFieldAccessNode,
    TupleFieldAccessNode,
    IteratorTupleFieldAccessNode,
    DynamicTupleFieldAccessNode,
    ItemFunctionNode,
    ItemFieldAccessNode,
    CompositeKeyNode,
    TupleKeyNode,
)

from .domain import IndexingIterator, iterate_combinations
from .sumn import FilteredSummationNode, SkippedTerm, evaluate_filter, try_evaluate
from .compset import ComputedSet

from . import resolver

from .linear import LinearTerms
from .equation import LinearEquation, Objective, IndexedEquationTemplate

from .manager import ModelManager
