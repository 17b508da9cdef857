import numpy as np
import re
from typing import Iterable, List, Optional, Set, Tuple

import oplex.constants as const
from oplex.handlers.session import ParseSessionResult
from oplex.mat.aexprn import BooleanNode, DecisionExpressionNode, IndexedParameterNode, IndexedVariableNode, \
    NumericNode, ParameterNode, StringNode, VariableNode
from oplex.mat.aopn import BinaryArithmeticOperationNode, UnaryArithmeticOperationNode
from oplex.mat.compset import ComputedSet
from oplex.mat.condn import ConditionalNode
from oplex.mat.domain import IndexingIterator
from oplex.mat.dummyn import DummyNode
from oplex.mat.entity import Assertion, DecisionExpression, Entity, IndexedVariable, Parameter
from oplex.mat.equation import IndexedEquationTemplate, Objective
from oplex.mat.errors import ModelSyntaxError, NotFoundError, StructuralError, TupleSetNotFoundError, \
    ValueResolutionError
from oplex.mat.exprn import ExpressionNode
from oplex.mat.logopn import LogicalOperationNode
from oplex.mat.manager import ModelManager
from oplex.mat.relopn import RelationalOperationNode
from oplex.mat.scalar import coerce_scalar
from oplex.mat.sets import PrimitiveSet
from oplex.mat.sumn import FilteredSummationNode
from oplex.mat.tuplen import CompositeKeyNode, DynamicTupleFieldAccessNode, IteratorTupleFieldAccessNode, \
    ItemFieldAccessNode, ItemFunctionNode, TupleFieldAccessNode, TupleKeyNode
from oplex.mat.tuples import TupleInstance, TupleSchema, TupleSet
from oplex.mat.util import *
from oplex.parsing.dataparser import DataParser, LiteralValueParser, NUMBER_PATTERN
from oplex.parsing.lexer import OPLLexer, split_statements
from oplex.parsing.tokenization import TokenizationOrchestrator
from oplex.parsing.tokenmanager import TokenManager


class OPLParser:

    # Symbols
    # ------------------------------------------------------------------------------------------------------------------

    ARITH_UNA_OPR_SYMBOLS = ['+', '-']
    ARITH_BIN_OPR_SYMBOLS_12 = ['+', '-']
    ARITH_BIN_OPR_SYMBOLS_14 = ['*', '/']

    ARITH_BIN_OPR_CODES = [ADDITION_OPERATOR, SUBTRACTION_OPERATOR, MULTIPLICATION_OPERATOR, DIVISION_OPERATOR]

    REL_OPR_SYMBOLS = ["==", "!=", "<", "<=", ">", ">="]
    REL_OPR_CODES = [EQUALITY_OPERATOR,
                     STRICT_INEQUALITY_OPERATOR,
                     LESS_INEQUALITY_OPERATOR,
                     LESS_EQUAL_INEQUALITY_OPERATOR,
                     GREATER_INEQUALITY_OPERATOR,
                     GREATER_EQUAL_INEQUALITY_OPERATOR]

    INFINITY_SYMBOLS = ["Infinity", "infinity"]

    BOOL_TYPE_ALIASES = ["boolean", const.BOOL_TYPE]

    IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_]\w*")
    BOUND_SYMBOL_PATTERN = re.compile(r"\b([A-Za-z_]\w*)\s+in\b")

    # Construction
    # ------------------------------------------------------------------------------------------------------------------

    def __init__(self,
                 manager: ModelManager,
                 token_manager: TokenManager = None):

        self._lexer: OPLLexer = OPLLexer()

        self.manager: ModelManager = manager
        self.token_manager: TokenManager = token_manager if token_manager is not None else TokenManager()
        self.orchestrator: TokenizationOrchestrator = TokenizationOrchestrator(parse_node=self.__parse_fragment)

        self.__data_parser: Optional[DataParser] = None

        self._tokens: List[str] = []
        self._token_index: int = 0
        self._bound: List[str] = []

        self.__constraint_count: int = 0
        self.__free_node_id: int = 0

    def clear(self):
        """
        Reset the parser for a new session: placeholders are discarded and the numbering of unlabeled constraints
        restarts.
        """
        self.token_manager.clear()
        self.__constraint_count = 0
        self.__free_node_id = 0
        self._setup([])

    def _setup(self, tokens: List[str], bound_symbols: Iterable[str] = ()):
        self._tokens = tokens
        self._token_index = 0
        self._bound = list(bound_symbols)

    # Model Parsing
    # ------------------------------------------------------------------------------------------------------------------

    def parse(self, text: str) -> ParseSessionResult:
        """
        Parse a model text statement by statement. A failing statement is recorded in the result and does not stop
        the parsing of the statements that follow it.
        :param text: model text
        :return: errors and number of successfully parsed statements
        """
        result = ParseSessionResult()
        for statement, line in split_statements(text):
            self.parse_statement(statement, line, result)
        return result

    def parse_statement(self,
                        statement: str,
                        line: int = 0,
                        result: ParseSessionResult = None) -> ParseSessionResult:

        if result is None:
            result = ParseSessionResult()

        try:
            self.__parse_statement(statement, line)
            result.increment_success()
        except ValueError as e:
            result.add_error(str(e), line)

        return result

    def __parse_statement(self, statement: str, line: int):

        tokens = self._lexer.tokenize(statement)
        if len(tokens) == 0:
            return

        first_token = tokens[0]

        # declarations are parsed directly from the token stream
        if first_token == const.RANGE_KEYWORD:
            self._setup(tokens)
            self.__parse_range()

        elif first_token == '{':
            self._setup(tokens)
            self.__parse_set_declaration(line)

        elif first_token == const.TUPLE_KEYWORD:
            self._setup(tokens)
            self.__parse_tuple_schema()

        elif first_token in const.VAR_KEYWORDS:
            self._setup(tokens)
            self.__parse_variable_declaration()

        elif first_token in const.PARAM_TYPES:
            self._setup(tokens)
            self.__parse_parameter_declaration()

        elif self.manager.get_tuple_schema(first_token) is not None and len(tokens) > 1 \
                and self._is_identifier(tokens[1]):
            self._setup(tokens)
            self.__parse_tuple_parameter()

        elif self.__is_data_assignment(tokens):
            self.__get_data_parser().parse_statement(statement)

        # statements referring to model entities are tokenized first
        else:

            self.__tokenize_statement(statement)

            if first_token == const.DEXPR_KEYWORD:
                self.__parse_decision_expression()
            elif first_token in const.OBJ_SENSES:
                self.__parse_objective(line)
            elif first_token == const.ASSERT_KEYWORD:
                self.__parse_assertion(line)
            elif first_token == const.FORALL_KEYWORD:
                self.__parse_forall(line)
            else:
                self.__parse_constraint(line)

    def __tokenize_statement(self, statement: str):
        bound_symbols = self.__scan_bound_symbols(statement)
        text = self.orchestrator.tokenize(statement,
                                          self.token_manager,
                                          self.manager,
                                          bound_symbols=bound_symbols)
        self._setup(self._lexer.tokenize(text))

    def __scan_bound_symbols(self, literal: str) -> Set[str]:
        return set(self.BOUND_SYMBOL_PATTERN.findall(literal))

    def __is_data_assignment(self, tokens: List[str]) -> bool:

        name = tokens[0]
        if self.manager.get_parameter(name) is None and self.manager.get_primitive_set(name) is None \
                and self.manager.get_tuple_set(name) is None and self.manager.get_tuple_parameter(name) is None:
            return False

        i = 1
        while i < len(tokens) and tokens[i] == '[':
            depth = 0
            while i < len(tokens):
                if tokens[i] == '[':
                    depth += 1
                elif tokens[i] == ']':
                    depth -= 1
                    if depth == 0:
                        break
                i += 1
            i += 1

        return i < len(tokens) and tokens[i] == '='

    def __get_data_parser(self) -> DataParser:
        if self.__data_parser is None:
            self.__data_parser = DataParser(self.manager)
        return self.__data_parser

    # Declaration Parsing
    # ------------------------------------------------------------------------------------------------------------------

    def __parse_range(self):

        self._next_token()  # skip 'range'

        name = self.__parse_symbol()

        self._enforce_token_value('=')
        self._next_token()

        start_node = self._parse_arithmetic_expression()
        self._enforce_token_value("..")
        self._next_token()
        end_node = self._parse_arithmetic_expression()

        self.__enforce_statement_end()

        self.manager.add_range(name, start_node, end_node)

    def __parse_set_declaration(self, line: int):

        self._next_token()  # skip '{'
        type_name = self.get_token()
        self._next_token()
        self._enforce_token_value('}')
        self._next_token()

        name = self.__parse_symbol()

        idx_set_name = None
        index_iterator = None
        if self.get_token() == '[':
            self._next_token()

            # computed set indexed by an iterator 'name[i in I]'
            if self._peek_token() == "in":
                index_iterator = self.__parse_iterator()
                if index_iterator.set_name is not None and not self.manager.has_domain(index_iterator.set_name):
                    raise NotFoundError("Index set '{0}' not found".format(index_iterator.set_name))

            else:
                idx_set_name = self.get_token()
                self._next_token()

            self._enforce_token_value(']')
            self._next_token()

        if self.get_token() == '=' and self._peek_token() == '{' and self.__is_set_comprehension(1):
            self._next_token()
            self.__parse_computed_set(name, type_name, index_iterator, line)
            return

        if index_iterator is not None:
            raise StructuralError("Set '{0}' is indexed by an iterator and must be defined by a comprehension "
                                  "'{{expression | iterators}}'".format(name))

        values = []
        is_external = False

        if self.get_token() == '=':
            self._next_token()
            if self.get_token() == const.EXTERNAL_VALUE_SYMBOL:
                is_external = True
                self._next_token()
            else:
                values = self.__parse_literal_value()
                if not isinstance(values, list):
                    raise StructuralError("Set '{0}' expects a collection of values".format(name))

        self.__enforce_statement_end()

        # primitive set
        if type_name in const.PARAM_TYPES:
            if idx_set_name is not None:
                raise StructuralError("Set '{0}' of type {1} cannot be indexed".format(name, type_name))
            values = [coerce_scalar(v, type_name).value for v in values]
            self.manager.add_primitive_set(PrimitiveSet(name, type_name, values, is_external))

        # tuple set
        else:
            schema = self.manager.require_tuple_schema(type_name)
            if idx_set_name is not None and not self.manager.has_domain(idx_set_name):
                raise NotFoundError("Index set '{0}' not found for tuple set '{1}'".format(idx_set_name, name))
            instances = []
            for value in values:
                if not isinstance(value, tuple):
                    raise StructuralError("Tuple set '{0}' expects tuples '<...>' but got '{1}'".format(name, value))
                instances.append(TupleInstance.build(schema, list(value)))
            self.manager.add_tuple_set(TupleSet(name, type_name, instances, idx_set_name, is_external))

    def __is_set_comprehension(self, offset: int = 0) -> bool:
        """
        Returns True if the braces opening at the given token offset enclose a comprehension '{expression | ...}'.
        """
        depth = 0
        for token in self._tokens[self._token_index + offset:]:
            if token in ('{', '(', '['):
                depth += 1
            elif token in ('}', ')', ']'):
                depth -= 1
                if depth == 0:
                    return False
            elif token == '|' and depth == 1:
                return True
        return False

    def __parse_computed_set(self,
                             name: str,
                             type_name: str,
                             index_iterator: Optional[IndexingIterator],
                             line: int):

        if type_name not in const.PARAM_TYPES:
            self.manager.require_tuple_schema(type_name)

        self._next_token()  # skip '{'

        # the iterators are parsed first so that the element expression may refer to them
        element_index = self._token_index
        depth = 0
        while depth > 0 or self.get_token() != '|':
            if self.get_token() == "":
                raise ModelSyntaxError("Missing '|' in the comprehension of set '{0}'".format(name))
            elif self.get_token() in ('{', '(', '['):
                depth += 1
            elif self.get_token() in ('}', ')', ']'):
                depth -= 1
            self._next_token()
        self._next_token()  # skip '|'

        iterators, condition = self.__parse_iterators()

        self._enforce_token_value('}')
        end_index = self._token_index

        for iterator in iterators:
            if iterator.set_name is not None and iterator.set_index_node is None \
                    and not self.manager.has_domain(iterator.set_name):
                raise NotFoundError("Set '{0}' not found".format(iterator.set_name))

        self._token_index = element_index
        element_node = self._parse_expression()
        self._enforce_token_value('|')

        self._token_index = end_index
        self._next_token()  # skip '}'
        self.__enforce_statement_end()

        self._bound.clear()

        self.manager.add_computed_set(ComputedSet(name=name,
                                                  element_type=type_name,
                                                  element_node=element_node,
                                                  iterators=iterators,
                                                  condition=condition,
                                                  index_iterator=index_iterator,
                                                  line=line))

    def __parse_tuple_schema(self):

        self._next_token()  # skip 'tuple'

        schema = TupleSchema(self.__parse_symbol())

        self._enforce_token_value('{')
        self._next_token()

        while self.get_token() != '}':

            if self.get_token() == "":
                raise ModelSyntaxError("Missing '}}' to close the declaration of tuple schema '{0}'".format(
                    schema.name))

            if self.get_token() == ';':
                self._next_token()
                continue

            is_key = False
            if self.get_token() == const.KEY_KEYWORD:
                is_key = True
                self._next_token()

            field_type = self.get_token()
            if field_type in self.BOOL_TYPE_ALIASES:
                field_type = const.BOOL_TYPE
            self._next_token()

            field_name = self.__parse_symbol()
            schema.add_field(field_name, field_type, is_key)

        self._next_token()  # skip '}'
        self.__enforce_statement_end()

        self.manager.add_tuple_schema(schema)

    def __parse_variable_declaration(self):

        self._next_token()  # skip 'var' or 'dvar'

        var_type = self.get_token()
        if var_type in self.BOOL_TYPE_ALIASES:
            var_type = const.BOOL_TYPE
        self._next_token()

        is_non_negative = False
        if self.get_token() == const.NON_NEGATIVE_SUFFIX:
            is_non_negative = True
            self._next_token()

        name = self.__parse_symbol()
        idx_set_names = self.__parse_dimension_names(name)

        lb_node = None
        ub_node = None
        if self.get_token() == "in":
            self._next_token()
            lb_node = self._parse_arithmetic_expression()
            self._enforce_token_value("..")
            self._next_token()
            ub_node = self._parse_arithmetic_expression()

        self.__enforce_statement_end()

        var = IndexedVariable(name=name,
                              type=var_type,
                              idx_set_names=idx_set_names,
                              lb=0 if is_non_negative else None)

        if lb_node is not None:
            try:
                var.lb = lb_node.evaluate(self.manager)
                var.ub = ub_node.evaluate(self.manager)
            except ValueResolutionError:
                var.set_bound_nodes(lb_node, ub_node)  # bounds depend on data that is not loaded yet

        self.manager.add_variable(var)

    def __parse_parameter_declaration(self):

        param_type = self.get_token()
        self._next_token()

        name = self.__parse_symbol()
        idx_set_names = self.__parse_dimension_names(name)

        param = Parameter(name=name, type=param_type, idx_set_names=idx_set_names)

        if self.get_token() != '=':
            self.__enforce_statement_end()
            self.manager.add_parameter(param)
            return

        self._next_token()  # skip '='

        # external value
        if self.get_token() == const.EXTERNAL_VALUE_SYMBOL:
            self._next_token()
            self.__enforce_statement_end()
            param.is_external = True
            self.manager.add_parameter(param)

        # inline list of values
        elif self.get_token() == '[':
            values = self.__parse_literal_value()
            self.__enforce_statement_end()
            if param.is_scalar():
                raise StructuralError("Parameter '{0}' is scalar but was assigned a list of values".format(name))
            self.manager.add_parameter(param)
            param.set_values(values, [self.manager.get_domain(s) for s in idx_set_names])

        # expression
        else:
            node = self._parse_expression()
            self.__enforce_statement_end()
            if param.is_indexed():
                raise StructuralError("Indexed parameter '{0}' requires a list of values or '...'".format(name))
            self.manager.add_parameter(param)
            self.manager.set_parameter_expression(name, node)

    def __parse_tuple_parameter(self):

        schema = self.manager.require_tuple_schema(self.get_token())
        self._next_token()

        name = self.__parse_symbol()

        self._enforce_token_value('=')
        self._next_token()

        if self.get_token() == const.EXTERNAL_VALUE_SYMBOL:
            raise StructuralError("Tuple parameter '{0}' requires an inline value '<...>'".format(name))

        value = self.__parse_literal_value()
        self.__enforce_statement_end()

        if not isinstance(value, tuple):
            raise StructuralError("Tuple parameter '{0}' expects a tuple '<...>'".format(name))

        self.manager.add_tuple_parameter(name, TupleInstance.build(schema, list(value)))

    def __parse_dimension_names(self, name: str) -> List[str]:

        idx_set_names = []

        while self.get_token() == '[':
            self._next_token()
            idx_set_names.append(self.get_token())
            self._next_token()
            while self.get_token() == ',':
                self._next_token()
                idx_set_names.append(self.get_token())
                self._next_token()
            self._enforce_token_value(']')
            self._next_token()

        if len(idx_set_names) > 2:
            raise StructuralError("'{0}' is indexed by {1} sets but at most two are supported".format(
                name, len(idx_set_names)))

        return idx_set_names

    def __parse_literal_value(self):
        value_parser = LiteralValueParser(self._tokens, self._token_index)
        value = value_parser.parse_value()
        self._token_index = value_parser.token_index
        return value

    def __parse_decision_expression(self):

        self._next_token()  # skip 'dexpr'

        dexpr_type = self.get_token()
        if dexpr_type not in const.NUMERIC_TYPES:
            raise StructuralError("Unsupported type '{0}' for a decision expression".format(dexpr_type))
        self._next_token()

        name = self.__parse_symbol()

        dummy_symbol = None
        idx_set_name = None
        if self.get_token() == '[':
            self._next_token()
            iterator = self.__parse_iterator()
            if iterator.is_range():
                raise StructuralError("Decision expression '{0}' must be indexed by a named set".format(name))
            dummy_symbol = iterator.symbol
            idx_set_name = iterator.set_name
            self._enforce_token_value(']')
            self._next_token()

        self._enforce_token_value('=')
        self._next_token()

        node = self._parse_expression()
        self.__enforce_statement_end()

        self.manager.add_decision_expression(DecisionExpression(name=name,
                                                                expression_node=node,
                                                                type=dexpr_type,
                                                                idx_set_name=idx_set_name,
                                                                dummy_symbol=dummy_symbol))

    # Objective, Assertion and Constraint Parsing
    # ------------------------------------------------------------------------------------------------------------------

    def __parse_objective(self, line: int):

        sense = self.get_token()
        self._next_token()

        name = None
        if self._is_identifier(self.get_token()) and self._peek_token() == ':':
            name = self.get_token()
            self._next_token()
            self._next_token()

        node = self._parse_expression()
        self.__enforce_statement_end()

        self.manager.set_objective(Objective(sense, node, name, line))

    def __parse_assertion(self, line: int):

        self._next_token()  # skip 'assert'

        message = None
        if self._is_identifier(self.get_token()) and self._peek_token() == ':':
            message = self.get_token()
            self._next_token()
            self._next_token()

        iterators = []
        condition = None
        if self.get_token() == const.FORALL_KEYWORD:
            self._next_token()
            self._enforce_token_value('(')
            self._next_token()
            iterators, condition = self.__parse_iterators()
            self._enforce_token_value(')')
            self._next_token()

        node = self._parse_expression()
        self.__enforce_statement_end()

        # combinations rejected by the filter hold trivially
        if condition is not None:
            node = LogicalOperationNode.disjunction(LogicalOperationNode.invert(condition), node)

        self.manager.add_assertion(Assertion(node, message, line, iterators))

    def __parse_forall(self,
                       line: int,
                       iterators: List[IndexingIterator] = None,
                       condition: ExpressionNode = None):

        bound_count = len(self._bound)

        self._next_token()  # skip 'forall'
        self._enforce_token_value('(')
        self._next_token()

        inner_iterators, inner_condition = self.__parse_iterators()

        self._enforce_token_value(')')
        self._next_token()

        iterators = (list(iterators) if iterators is not None else []) + inner_iterators
        condition = self.__combine_conditions(condition, inner_condition)

        # block of constraints
        if self.get_token() == '{':
            self._next_token()
            while self.get_token() != '}':
                if self.get_token() == "":
                    raise ModelSyntaxError("Missing '}' to close the forall block")
                if self.get_token() == ';':
                    self._next_token()
                    continue
                self.__parse_iterated_statement(line, iterators, condition)
            self._next_token()  # skip '}'

        else:
            self.__parse_iterated_statement(line, iterators, condition)

        del self._bound[bound_count:]

    def __parse_iterated_statement(self,
                                   line: int,
                                   iterators: List[IndexingIterator],
                                   condition: Optional[ExpressionNode]):
        if self.get_token() == const.FORALL_KEYWORD:
            self.__parse_forall(line, iterators, condition)
        else:
            self.__parse_constraint(line, iterators, condition)

    def __parse_constraint(self,
                           line: int,
                           iterators: List[IndexingIterator] = None,
                           condition: ExpressionNode = None):

        bound_count = len(self._bound)
        iterators = list(iterators) if iterators is not None else []

        # Label
        label = None
        token = self.get_token()

        if self._is_identifier(token) and self._peek_token() == ':':
            label = token
            self._next_token()
            self._next_token()

        # indexed label 'name[i in I]:'
        elif self._is_identifier(token) and self._peek_token() == '[' and self._peek_token(3) == "in":
            label = token
            self._next_token()
            self._next_token()
            label_iterators, label_condition = self.__parse_iterators()
            self._enforce_token_value(']')
            self._next_token()
            self._enforce_token_value(':')
            self._next_token()
            iterators.extend(label_iterators)
            condition = self.__combine_conditions(condition, label_condition)

        # Body
        body = self._parse_expression()

        if self.get_token() not in ("", ';', '}'):
            raise ModelSyntaxError("Unexpected token '{0}' after constraint '{1}'".format(self.get_token(), body))

        if not isinstance(body, RelationalOperationNode) or body.is_prioritized:
            raise ModelSyntaxError("Missing relational operator. Must contain ==, <, >, <=, or >=")

        if body.operator not in CONSTRAINT_OPERATORS:
            raise ModelSyntaxError("Operator '{0}' is not supported in constraints".format(
                OPL_OPERATOR_SYMBOLS[body.operator]))

        if label is not None:
            base_name = label
        else:
            self.__constraint_count += 1
            base_name = "{0}{1}".format(const.DEFAULT_CONSTRAINT_BASE_NAME, self.__constraint_count)

        template = IndexedEquationTemplate(base_name=base_name,
                                           operator=body.operator,
                                           lhs_operand=body.lhs_operand,
                                           rhs_operand=body.rhs_operand,
                                           iterators=iterators,
                                           condition=condition,
                                           label=base_name if len(iterators) == 0 else None,
                                           line=line)
        self.manager.add_template(template)

        del self._bound[bound_count:]

    @staticmethod
    def __combine_conditions(outer_condition: Optional[ExpressionNode],
                             inner_condition: Optional[ExpressionNode]) -> Optional[ExpressionNode]:
        if outer_condition is None:
            return inner_condition
        if inner_condition is None:
            return outer_condition
        return LogicalOperationNode.conjunction(outer_condition, inner_condition)

    # Iterator Parsing
    # ------------------------------------------------------------------------------------------------------------------

    def __parse_iterators(self) -> Tuple[List[IndexingIterator], Optional[ExpressionNode]]:
        """
        Parse a comma-separated list of iterator declarations 'i in I' or 'i in lb..ub', optionally followed by a
        filter ': condition'. Iterator symbols are bound as they are declared so that later range bounds and the
        filter may refer to them.
        """

        iterators = [self.__parse_iterator()]
        while self.get_token() == ',':
            self._next_token()
            iterators.append(self.__parse_iterator())

        condition = None
        if self.get_token() == ':':
            self._next_token()
            condition = self._parse_expression()

        return iterators, condition

    def __parse_iterator(self) -> IndexingIterator:

        symbol = self.__parse_symbol()

        self._enforce_token_value("in")
        self._next_token()

        token = self.get_token()

        # named set
        if self._is_identifier(token) and not TokenManager.is_token(token) \
                and self._peek_token() in (',', ':', ')', ']', ""):
            self._next_token()
            iterator = IndexingIterator(symbol, set_name=token)

        # member of an indexed computed set
        elif self._peek_token() == '[' and self.__is_indexed_computed_set(token):
            self._next_token()
            self._next_token()  # skip '['
            set_index_node = self._parse_arithmetic_expression()
            self._enforce_token_value(']')
            self._next_token()
            iterator = IndexingIterator(symbol, set_name=token, set_index_node=set_index_node)

        # explicit range
        else:
            start_node = self._parse_arithmetic_expression()
            self._enforce_token_value("..")
            self._next_token()
            end_node = self._parse_arithmetic_expression()
            iterator = IndexingIterator(symbol, start_node=start_node, end_node=end_node)

        self._bound.append(symbol)

        return iterator

    def __is_indexed_computed_set(self, name: str) -> bool:
        computed_set = self.manager.get_computed_set(name)
        return computed_set is not None and computed_set.is_indexed()

    # Expression Parsing
    # ------------------------------------------------------------------------------------------------------------------

    def parse_expression(self, literal: str, bound_symbols: Iterable[str] = ()) -> ExpressionNode:
        """
        Tokenize and parse an expression.
        :param literal: expression text
        :param bound_symbols: names of the iterators bound around the expression
        :return: root node of the expression tree
        """
        bound_symbols = set(bound_symbols) | self.__scan_bound_symbols(literal)
        text = self.orchestrator.tokenize(literal,
                                          self.token_manager,
                                          self.manager,
                                          bound_symbols=bound_symbols)
        return self._parse_literal(text, bound_symbols)

    def _parse_literal(self, literal: str, bound_symbols: Iterable[str] = ()) -> ExpressionNode:
        self._setup(self._lexer.tokenize(literal), bound_symbols)
        node = self._parse_expression()
        if self.get_token() != "":
            raise ModelSyntaxError("Unexpected token '{0}' in expression '{1}'".format(self.get_token(), literal))
        return node

    def __parse_fragment(self, literal: str, bound_symbols: Iterable[str] = ()) -> ExpressionNode:
        parser = OPLParser(self.manager, self.token_manager)
        return parser._parse_literal(literal, bound_symbols)

    def _parse_expression(self) -> ExpressionNode:
        return self.__parse_conditional_expression()

    def __parse_conditional_expression(self) -> ExpressionNode:

        condition = self._parse_logical_expression()

        if self.get_token() != '?':
            return condition

        self._next_token()  # skip '?'
        true_operand = self.__parse_conditional_expression()
        self._enforce_token_value(':')
        self._next_token()
        false_operand = self.__parse_conditional_expression()

        return ConditionalNode(id=self._generate_free_node_id(),
                               condition=condition,
                               true_operand=true_operand,
                               false_operand=false_operand)

    # Logical Expression Parsing
    # ------------------------------------------------------------------------------------------------------------------

    def _parse_logical_expression(self) -> ExpressionNode:

        root_operation = self.__parse_conjunction()

        while self.get_token() == "||":
            self._next_token()
            rhs_operand = self.__parse_conjunction()
            root_operation = LogicalOperationNode(id=self._generate_free_node_id(),
                                                  operator=DISJUNCTION_OPERATOR,
                                                  operands=[root_operation, rhs_operand])

        return root_operation

    def __parse_conjunction(self) -> ExpressionNode:

        root_operation = self._parse_relational_expression()

        while self.get_token() == "&&":
            self._next_token()
            rhs_operand = self._parse_relational_expression()
            root_operation = LogicalOperationNode(id=self._generate_free_node_id(),
                                                  operator=CONJUNCTION_OPERATOR,
                                                  operands=[root_operation, rhs_operand])

        return root_operation

    def _parse_relational_expression(self) -> ExpressionNode:

        lhs_operand = self._parse_arithmetic_expression()

        operator = self.get_token()

        if operator == '=':
            raise ModelSyntaxError("Invalid operator '='. Use '==' for equality")

        if operator not in self.REL_OPR_SYMBOLS:
            return lhs_operand

        self._next_token()  # skip operator
        rhs_operand = self._parse_arithmetic_expression()

        return RelationalOperationNode(id=self._generate_free_node_id(),
                                       operator=get_operator_code(operator, self.REL_OPR_CODES),
                                       lhs_operand=lhs_operand,
                                       rhs_operand=rhs_operand)

    # Arithmetic Expression Parsing
    # ------------------------------------------------------------------------------------------------------------------

    def _parse_arithmetic_expression(self, precedence: int = 12) -> ExpressionNode:

        # parse first operand
        if precedence == 12:
            root_operation = self._parse_arithmetic_expression(precedence=14)
            operators = self.ARITH_BIN_OPR_SYMBOLS_12
        else:  # precedence level 14
            root_operation = self.__parse_unary_operation()
            operators = self.ARITH_BIN_OPR_SYMBOLS_14

        while self.get_token() in operators:  # parse next arithmetic operation

            operator = self.get_token()
            self._next_token()  # skip operator

            if precedence == 12:
                rhs_operand = self._parse_arithmetic_expression(precedence=14)
            else:
                rhs_operand = self.__parse_unary_operation()

            root_operation = BinaryArithmeticOperationNode(id=self._generate_free_node_id(),
                                                           operator=get_operator_code(operator,
                                                                                      self.ARITH_BIN_OPR_CODES),
                                                           lhs_operand=root_operation,
                                                           rhs_operand=rhs_operand)

        return root_operation

    def __parse_unary_operation(self) -> ExpressionNode:

        token = self.get_token()

        # Unary arithmetic operator
        if token in self.ARITH_UNA_OPR_SYMBOLS:

            self._next_token()  # skip operator
            operand = self.__parse_unary_operation()

            if token == '+':
                return operand

            # special case: negative literal
            if isinstance(operand, NumericNode) and not operand.is_prioritized:
                return NumericNode(id=operand.id, value=-operand.value)

            return UnaryArithmeticOperationNode(id=self._generate_free_node_id(),
                                                operator=UNARY_NEGATION_OPERATOR,
                                                operand=operand)

        # Logical inversion
        elif token == '!':
            self._next_token()  # skip operator
            operand = self.__parse_unary_operation()
            return LogicalOperationNode(id=self._generate_free_node_id(),
                                        operator=UNARY_INVERSION_OPERATOR,
                                        operands=[operand])

        else:
            return self.__parse_operand()

    def __parse_operand(self) -> ExpressionNode:

        token = self.get_token()

        if token == "":
            raise ModelSyntaxError("Unexpected end of expression")

        # Parenthesized expression
        if token == '(':
            self._next_token()  # skip '('
            node = self._parse_expression()
            self._enforce_token_value(')')
            self._next_token()  # skip ')'
            node.is_prioritized = True
            return node

        # Key
        elif token == '<':
            return self.__parse_key()

        # Boolean constant
        elif token in ("true", "false"):
            self._next_token()
            return BooleanNode(id=self._generate_free_node_id(), value=token == "true")

        # Infinity
        elif token in self.INFINITY_SYMBOLS:
            self._next_token()
            return NumericNode(id=self._generate_free_node_id(), value=np.inf)

        # String literal
        elif token[0] == '"':
            self._next_token()
            return StringNode(id=self._generate_free_node_id(), value=token[1:-1])

        # Numeric constant
        elif NUMBER_PATTERN.fullmatch(token) is not None:
            self._next_token()
            return NumericNode(id=self._generate_free_node_id(), value=token)

        # Summation
        elif token == const.SUM_KEYWORD and self._peek_token() == '(':
            return self.__parse_summation()

        # Item lookup
        elif token == const.ITEM_KEYWORD and self._peek_token() == '(':
            return self.__parse_item_expression()

        # Placeholder
        elif TokenManager.is_token(token):
            self._next_token()
            return self.token_manager.get_expression(token)

        # Symbol
        elif self._is_identifier(token):
            return self.__parse_symbol_reference()

        else:
            raise ModelSyntaxError("Unexpected token '{0}' in expression".format(token))

    def __parse_key(self) -> ExpressionNode:

        self._next_token()  # skip '<'

        parts = [self._parse_arithmetic_expression()]
        while self.get_token() == ',':
            self._next_token()
            parts.append(self._parse_arithmetic_expression())

        self._enforce_token_value('>')
        self._next_token()

        if len(parts) == 1:
            return TupleKeyNode(id=self._generate_free_node_id(), inner=parts[0])
        return CompositeKeyNode(id=self._generate_free_node_id(), parts=parts)

    def __parse_summation(self) -> FilteredSummationNode:

        bound_count = len(self._bound)

        self._next_token()  # skip 'sum'
        self._enforce_token_value('(')
        self._next_token()

        iterators, condition = self.__parse_iterators()

        self._enforce_token_value(')')
        self._next_token()

        operand = self._parse_arithmetic_expression(precedence=14)

        del self._bound[bound_count:]

        return FilteredSummationNode(id=self._generate_free_node_id(),
                                     iterators=iterators,
                                     operand=operand,
                                     condition=condition)

    def __parse_item_expression(self) -> ExpressionNode:

        self._next_token()  # skip 'item'
        self._enforce_token_value('(')
        self._next_token()

        set_name = self.get_token()
        tuple_set = self.manager.get_tuple_set(set_name)
        if tuple_set is None:
            raise TupleSetNotFoundError(set_name)
        self._next_token()

        self._enforce_token_value(',')
        self._next_token()

        key_node = self._parse_expression()

        self._enforce_token_value(')')
        self._next_token()

        item_node = ItemFunctionNode(id=self._generate_free_node_id(), set_name=set_name, key_node=key_node)

        field_name = self.__parse_field_suffix(tuple_set.schema_name)
        if field_name is None:
            return item_node

        return ItemFieldAccessNode(id=self._generate_free_node_id(), item_node=item_node, field_name=field_name)

    def __parse_symbol_reference(self) -> ExpressionNode:

        symbol = self.get_token()
        self._next_token()

        # Indexed reference
        if self.get_token() == '[':
            idx_nodes = self.__parse_indices()
            return self.__build_indexed_reference(symbol, idx_nodes)

        # Field access 'p.field'
        if self.get_token() == '.':

            if symbol in self._bound:
                self._next_token()  # skip '.'
                field_name = self.get_token()
                self._next_token()
                return DynamicTupleFieldAccessNode(id=self._generate_free_node_id(),
                                                   symbol=symbol,
                                                   field_name=field_name,
                                                   is_dummy=True)

            instance = self.manager.get_tuple_parameter(symbol)
            if instance is not None:
                field_name = self.__parse_field_suffix(instance.schema_name)
                return DynamicTupleFieldAccessNode(id=self._generate_free_node_id(),
                                                   symbol=symbol,
                                                   field_name=field_name,
                                                   is_dummy=False)

            raise NotFoundError("Symbol '{0}' not found".format(symbol))

        # Iterator
        if symbol in self._bound:
            return DummyNode(id=self._generate_free_node_id(), symbol=symbol)

        var = self.manager.get_variable(symbol)
        if var is not None:
            if var.is_indexed():
                raise StructuralError("Variable '{0}' is indexed and requires an index".format(symbol))
            return VariableNode(id=self._generate_free_node_id(), symbol=symbol)

        param = self.manager.get_parameter(symbol)
        if param is not None:
            if param.is_indexed():
                raise StructuralError("Parameter '{0}' is indexed and requires an index".format(symbol))
            return ParameterNode(id=self._generate_free_node_id(), symbol=symbol)

        dexpr = self.manager.get_decision_expression(symbol)
        if dexpr is not None:
            if dexpr.is_indexed():
                raise StructuralError("Decision expression '{0}' is indexed and requires an index".format(symbol))
            return DecisionExpressionNode(id=self._generate_free_node_id(), symbol=symbol)

        if self.manager.get_tuple_parameter(symbol) is not None:
            return DynamicTupleFieldAccessNode(id=self._generate_free_node_id(),
                                               symbol=symbol,
                                               field_name=None,
                                               is_dummy=False)

        raise NotFoundError("Symbol '{0}' not found".format(symbol))

    def __parse_indices(self) -> List[ExpressionNode]:
        """
        Parse the index expressions of a reference, either 'name[i,j]' or 'name[i][j]'.
        """

        idx_nodes = []

        while self.get_token() == '[':
            self._next_token()  # skip '['
            idx_nodes.append(self._parse_arithmetic_expression())
            while self.get_token() == ',':
                self._next_token()
                idx_nodes.append(self._parse_arithmetic_expression())
            self._enforce_token_value(']')
            self._next_token()  # skip ']'

        return idx_nodes

    def __build_indexed_reference(self, symbol: str, idx_nodes: List[ExpressionNode]) -> ExpressionNode:

        var = self.manager.get_variable(symbol)
        if var is not None:
            self.__check_dimension(var, idx_nodes, "variable")
            return IndexedVariableNode(id=self._generate_free_node_id(), symbol=symbol, idx_nodes=idx_nodes)

        param = self.manager.get_parameter(symbol)
        if param is not None:
            self.__check_dimension(param, idx_nodes, "parameter")
            return IndexedParameterNode(id=self._generate_free_node_id(), symbol=symbol, idx_nodes=idx_nodes)

        tuple_set = self.manager.get_tuple_set(symbol)
        if tuple_set is not None:

            if len(idx_nodes) != 1:
                raise StructuralError("Tuple set '{0}' expects a single index but {1} were given".format(
                    symbol, len(idx_nodes)))

            field_name = self.__parse_field_suffix(tuple_set.schema_name)
            idx_node = idx_nodes[0]

            if isinstance(idx_node, NumericNode) and not tuple_set.is_indexed():
                return TupleFieldAccessNode(id=self._generate_free_node_id(),
                                            set_name=symbol,
                                            position=to_index(idx_node.value),
                                            field_name=field_name)

            return IteratorTupleFieldAccessNode(id=self._generate_free_node_id(),
                                                set_name=symbol,
                                                idx_node=idx_node,
                                                field_name=field_name)

        dexpr = self.manager.get_decision_expression(symbol)
        if dexpr is not None:
            if not dexpr.is_indexed() or len(idx_nodes) != 1:
                raise StructuralError("Decision expression '{0}' expects {1} indices but {2} were given".format(
                    symbol, dexpr.get_dim(), len(idx_nodes)))
            return DecisionExpressionNode(id=self._generate_free_node_id(), symbol=symbol, idx_node=idx_nodes[0])

        raise NotFoundError("Symbol '{0}' not found".format(symbol))

    def __parse_field_suffix(self, schema_name: str) -> Optional[str]:
        if self.get_token() != '.':
            return None
        self._next_token()  # skip '.'
        field_name = self.get_token()
        self.manager.require_tuple_schema(schema_name).get_field_type(field_name)  # raises if the field is unknown
        self._next_token()
        return field_name

    @staticmethod
    def __check_dimension(entity: Entity, idx_nodes: List[ExpressionNode], kind: str):
        if len(idx_nodes) != entity.get_dim():
            raise StructuralError("{0} '{1}' expects {2} indices but {3} were given".format(
                kind.capitalize(), entity.name, entity.get_dim(), len(idx_nodes)))

    # Utility
    # ------------------------------------------------------------------------------------------------------------------

    def __parse_symbol(self) -> str:
        symbol = self.get_token()
        if not self._is_identifier(symbol):
            raise ModelSyntaxError("Expected a symbol but encountered '{0}'".format(symbol))
        if symbol in const.RESERVED_SYMBOLS:
            raise ModelSyntaxError("Reserved keyword '{0}' cannot be used as a symbol".format(symbol))
        self._next_token()
        return symbol

    def __enforce_statement_end(self):
        if self.get_token() not in ("", ';'):
            raise ModelSyntaxError("Unexpected token '{0}' at the end of the statement".format(self.get_token()))

    @classmethod
    def _is_identifier(cls, token: str) -> bool:
        return cls.IDENTIFIER_PATTERN.fullmatch(token) is not None

    def _enforce_token_value(self, expected_token: str):
        if self.get_token() != expected_token:
            msg = ("OPL parser encountered an unexpected token '{0}' ".format(self.get_token())
                   + "while expecting the token '{0}'".format(expected_token))
            raise ModelSyntaxError(msg)

    def get_token(self) -> str:
        if self._token_index >= len(self._tokens):
            return ""
        return self._tokens[self._token_index]

    def _peek_token(self, offset: int = 1) -> str:
        index = self._token_index + offset
        if index >= len(self._tokens):
            return ""
        return self._tokens[index]

    def _next_token(self) -> bool:
        """
        Move to the next token.
        :return: true if a succeeding token exists, false if the end of the token stream was reached
        """
        if self._token_index < len(self._tokens):
            self._token_index += 1
        return self._token_index < len(self._tokens)

    def _generate_free_node_id(self) -> int:
        free_node_id = self.__free_node_id
        self.__free_node_id += 1
        return free_node_id
