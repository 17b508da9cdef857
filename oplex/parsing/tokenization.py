from abc import ABC, abstractmethod
import re
from typing import Callable, Iterable, List, Optional, Set, Tuple

import oplex.constants as const
from oplex.mat.aexprn import IndexedParameterNode, NumericNode, ParameterNode
from oplex.mat.entity import Entity
from oplex.mat.errors import IndexOutOfRangeError, ModelError, ModelSyntaxError, TokenizationError
from oplex.mat.exprn import ExpressionNode
from oplex.mat.manager import ModelManager
from oplex.mat.tuplen import IteratorTupleFieldAccessNode, ItemFieldAccessNode, ItemFunctionNode, \
    TupleFieldAccessNode
from oplex.parsing.tokenmanager import TokenManager


ParseNodeFunction = Callable[[str, Iterable[str]], ExpressionNode]

IDENTIFIER_PATTERN = r"[A-Za-z_]\w*"
INTEGER_PATTERN = r"\s*-?\d+\s*"


# Text Utility
# ----------------------------------------------------------------------------------------------------------------------

def get_string_spans(text: str) -> List[Tuple[int, int]]:
    return [(m.start(), m.end()) for m in re.finditer(r'"[^"]*"', text)]


def is_within_spans(spans: List[Tuple[int, int]], pos: int) -> bool:
    return any([start <= pos < end for start, end in spans])


def find_closing_delimiter(text: str, open_index: int, open_char: str, close_char: str) -> int:
    """
    Find the delimiter that closes the one at the supplied index. Delimiters within string literals are ignored.
    :return: index of the closing delimiter, or -1 if it is missing
    """
    depth = 0
    is_string = False
    for i in range(open_index, len(text)):
        c = text[i]
        if c == '"':
            is_string = not is_string
        elif is_string:
            continue
        elif c == open_char:
            depth += 1
        elif c == close_char:
            depth -= 1
            if depth == 0:
                return i
    return -1


def split_top_level(text: str, delimiter: str = ',') -> List[str]:
    """
    Split a text at the delimiters that are not nested in parentheses, brackets or string literals.
    """
    parts = []
    depth = 0
    is_string = False
    start = 0
    for i, c in enumerate(text):
        if c == '"':
            is_string = not is_string
        elif is_string:
            continue
        elif c in "([":
            depth += 1
        elif c in ")]":
            depth -= 1
        elif c == delimiter and depth == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def is_preceded_by_dot(text: str, pos: int) -> bool:
    """
    Returns True if the character preceding a position, ignoring whitespace, is a single field access dot.
    """
    i = pos - 1
    while i >= 0 and text[i].isspace():
        i -= 1
    if i < 0 or text[i] != '.':
        return False
    return i == 0 or text[i - 1] != '.'


def match_field_suffix(text: str, pos: int) -> Optional[re.Match]:
    """
    Match a field access suffix '.field' at a position. Range operators '..' are not field accesses.
    """
    return re.compile(r"\s*\.(?!\.)\s*(" + IDENTIFIER_PATTERN + ")").match(text, pos)


def parse_integer_literal(literal: str) -> Optional[int]:
    if re.fullmatch(INTEGER_PATTERN, literal) is None:
        return None
    return int(literal.strip())


def check_literal_indices(manager: ModelManager, entity: Entity, idx_literals: List[str], kind: str):
    """
    Verify that the integer literals among the index expressions of a reference lie within the domains of the index
    sets of the referenced entity. Domains that are not loaded yet are not checked.
    """
    for idx_literal, idx_set_name in zip(idx_literals, entity.idx_set_names):
        idx = parse_integer_literal(idx_literal)
        if idx is None or not manager.is_domain_resolved(idx_set_name):
            continue
        if idx not in manager.get_domain(idx_set_name):
            raise IndexOutOfRangeError("Index {0} is out of range for {1} {2}".format(idx, kind, entity.name))


# Strategies
# ----------------------------------------------------------------------------------------------------------------------

class TokenizationStrategy(ABC):

    name: str = ""
    priority: int = 0

    @abstractmethod
    def tokenize(self,
                 text: str,
                 token_manager: TokenManager,
                 manager: ModelManager,
                 parse_node: ParseNodeFunction,
                 bound_symbols: Set[str]) -> str:
        pass


class ItemExpressionTokenizer(TokenizationStrategy):
    """
    Replaces item lookups 'item(set, key)' and 'item(set, key).field'. Runs first because keys contain angle brackets
    and nested parentheses.
    """

    name = "item expression"
    priority = 1

    PATTERN = re.compile(r"\bitem\s*\(")

    def tokenize(self,
                 text: str,
                 token_manager: TokenManager,
                 manager: ModelManager,
                 parse_node: ParseNodeFunction,
                 bound_symbols: Set[str]) -> str:

        pos = 0

        while True:

            m = self.PATTERN.search(text, pos)
            if m is None:
                break

            if is_within_spans(get_string_spans(text), m.start()) or is_preceded_by_dot(text, m.start()):
                pos = m.end()
                continue

            open_index = m.end() - 1
            close_index = find_closing_delimiter(text, open_index, '(', ')')
            if close_index < 0:
                raise ModelSyntaxError("Unbalanced parentheses in item expression '{0}'".format(text[m.start():]))

            arguments = text[open_index + 1:close_index]
            comma_index = arguments.find(',')
            if comma_index < 0:
                raise ModelSyntaxError("Item expression 'item({0})' expects a tuple set and a key".format(arguments))

            set_name = arguments[:comma_index].strip()
            key_literal = arguments[comma_index + 1:].strip()

            tuple_set = manager.get_tuple_set(set_name)
            if tuple_set is None:  # left in place for the parser
                pos = close_index + 1
                continue

            end_index = close_index + 1
            field_name = None
            field_match = match_field_suffix(text, end_index)
            if field_match is not None:
                field_name = field_match.group(1)
                schema = manager.require_tuple_schema(tuple_set.schema_name)
                schema.get_field_type(field_name)  # raises if the field does not exist
                end_index = field_match.end()

            item_node = ItemFunctionNode(set_name, parse_node(key_literal, bound_symbols))
            if field_name is not None:
                node = ItemFieldAccessNode(item_node, field_name)
            else:
                node = item_node

            token = token_manager.create_token(node, const.ITEM_TOKEN)
            text = text[:m.start()] + token + text[end_index:]
            pos = m.start() + len(token)

        return text


class TupleFieldAccessTokenizer(TokenizationStrategy):
    """
    Replaces field accesses on tuple set members, 'set[3].field' with a literal position and 'set[p].field' with an
    index expression.
    """

    name = "tuple field access"
    priority = 2

    PATTERN = re.compile(r"\b(" + IDENTIFIER_PATTERN + r")\s*\[")

    def tokenize(self,
                 text: str,
                 token_manager: TokenManager,
                 manager: ModelManager,
                 parse_node: ParseNodeFunction,
                 bound_symbols: Set[str]) -> str:

        pos = 0

        while True:

            m = self.PATTERN.search(text, pos)
            if m is None:
                break

            set_name = m.group(1)
            tuple_set = manager.get_tuple_set(set_name)

            if tuple_set is None or is_within_spans(get_string_spans(text), m.start()) \
                    or is_preceded_by_dot(text, m.start()):
                pos = m.end()
                continue

            open_index = m.end() - 1
            close_index = find_closing_delimiter(text, open_index, '[', ']')
            if close_index < 0:
                raise ModelSyntaxError("Unbalanced brackets in '{0}'".format(text[m.start():]))

            field_match = match_field_suffix(text, close_index + 1)
            if field_match is None:  # tuple-valued reference
                pos = close_index + 1
                continue

            field_name = field_match.group(1)
            schema = manager.require_tuple_schema(tuple_set.schema_name)
            schema.get_field_type(field_name)  # raises if the field does not exist

            idx_literal = text[open_index + 1:close_index]
            idx = parse_integer_literal(idx_literal)

            if idx is not None and not tuple_set.is_indexed():
                if manager.is_domain_resolved(set_name):
                    tuple_set.get_at(idx)  # raises if the position is out of range
                node = TupleFieldAccessNode(set_name, idx, field_name)
                kind = const.TUPLE_TOKEN

            elif idx is not None and manager.is_domain_resolved(set_name):
                idx_set = manager.require_index_set(tuple_set.index_set_name)
                position = idx_set.get_position(idx) + 1
                tuple_set.get_at(position)
                node = TupleFieldAccessNode(set_name, position, field_name)
                kind = const.TUPLE_TOKEN

            else:
                if idx is not None:
                    idx_node = NumericNode(idx)
                else:
                    idx_node = parse_node(idx_literal, bound_symbols)
                node = IteratorTupleFieldAccessNode(set_name, idx_node, field_name)
                kind = const.TUPLE_ITER_TOKEN

            token = token_manager.create_token(node, kind)
            text = text[:m.start()] + token + text[field_match.end():]
            pos = m.start() + len(token)

        return text


class BaseIndexTokenizer(TokenizationStrategy, ABC):
    """
    Replaces references to indexed parameters with the number of indices handled by the strategy. References to
    indexed variables are validated and left in place.
    """

    PATTERN = re.compile(r"\b(" + IDENTIFIER_PATTERN + r")\s*\[")

    def tokenize(self,
                 text: str,
                 token_manager: TokenManager,
                 manager: ModelManager,
                 parse_node: ParseNodeFunction,
                 bound_symbols: Set[str]) -> str:

        pos = 0

        while True:

            m = self.PATTERN.search(text, pos)
            if m is None:
                break

            name = m.group(1)
            param = manager.get_parameter(name)
            var = manager.get_variable(name)

            if (param is None and var is None) or is_within_spans(get_string_spans(text), m.start()) \
                    or is_preceded_by_dot(text, m.start()):
                pos = m.end()
                continue

            match = self._match_indices(text, m.end() - 1)
            if match is None:
                pos = m.end()
                continue

            idx_literals, end_index = match
            entity = param if param is not None else var

            if entity.get_dim() != len(idx_literals):
                pos = m.end()
                continue

            if param is None:
                check_literal_indices(manager, var, idx_literals, "variable")
                pos = end_index
                continue

            check_literal_indices(manager, param, idx_literals, "parameter")
            idx_nodes = [parse_node(s, bound_symbols) for s in idx_literals]

            token = token_manager.create_token(IndexedParameterNode(name, idx_nodes), const.PARAM_TOKEN)
            text = text[:m.start()] + token + text[end_index:]
            pos = m.start() + len(token)

        return text

    @abstractmethod
    def _match_indices(self, text: str, open_index: int) -> Optional[Tuple[List[str], int]]:
        """
        Match the index expressions following a name.
        :return: pair of index literals and the end index of the match, or None if the strategy does not apply
        """
        pass

    @staticmethod
    def _match_bracket_group(text: str, open_index: int) -> Tuple[str, int]:
        close_index = find_closing_delimiter(text, open_index, '[', ']')
        if close_index < 0:
            raise ModelSyntaxError("Unbalanced brackets in '{0}'".format(text[open_index:]))
        return text[open_index + 1:close_index], close_index + 1

    @staticmethod
    def _find_next_bracket(text: str, pos: int) -> int:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos < len(text) and text[pos] == '[':
            return pos
        return -1


class TwoDimensionalIndexTokenizer(BaseIndexTokenizer):
    """
    Handles 'name[i,j]' and 'name[i][j]'.
    """

    name = "two-dimensional index"
    priority = 3

    def _match_indices(self, text: str, open_index: int) -> Optional[Tuple[List[str], int]]:

        content, end_index = self._match_bracket_group(text, open_index)
        parts = split_top_level(content)

        if len(parts) == 2:
            return [p.strip() for p in parts], end_index

        if len(parts) == 1:
            next_open_index = self._find_next_bracket(text, end_index)
            if next_open_index >= 0:
                second_content, end_index = self._match_bracket_group(text, next_open_index)
                if len(split_top_level(second_content)) == 1:
                    return [content.strip(), second_content.strip()], end_index

        return None


class SingleDimensionalIndexTokenizer(BaseIndexTokenizer):
    """
    Handles 'name[i]'.
    """

    name = "single-dimensional index"
    priority = 4

    def _match_indices(self, text: str, open_index: int) -> Optional[Tuple[List[str], int]]:
        content, end_index = self._match_bracket_group(text, open_index)
        parts = split_top_level(content)
        if len(parts) != 1 or self._find_next_bracket(text, end_index) >= 0:
            return None
        return [content.strip()], end_index


class ParameterTokenizer(TokenizationStrategy):
    """
    Replaces references to scalar parameters. Identifiers bound as iterators, field names and identifiers followed by
    an index, a call or a field access are left in place.
    """

    name = "parameter"
    priority = 5

    PATTERN = re.compile(r"\b" + IDENTIFIER_PATTERN + r"\b")

    def tokenize(self,
                 text: str,
                 token_manager: TokenManager,
                 manager: ModelManager,
                 parse_node: ParseNodeFunction,
                 bound_symbols: Set[str]) -> str:

        string_spans = get_string_spans(text)

        def replace(m: re.Match) -> str:

            name = m.group(0)

            if name in bound_symbols or TokenManager.is_token(name):
                return name

            param = manager.get_parameter(name)
            if param is None or param.is_indexed():
                return name

            if is_within_spans(string_spans, m.start()) or is_preceded_by_dot(text, m.start()) \
                    or self.__is_followed_by_accessor(text, m.end()):
                return name

            return token_manager.create_token(ParameterNode(name), const.PARAM_TOKEN)

        return self.PATTERN.sub(replace, text)

    @staticmethod
    def __is_followed_by_accessor(text: str, pos: int) -> bool:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return False
        if text[pos] in "[(":
            return True
        return text[pos] == '.' and (pos + 1 >= len(text) or text[pos + 1] != '.')


# Orchestration
# ----------------------------------------------------------------------------------------------------------------------

class TokenizationOrchestrator:
    """
    Applies the tokenization strategies in ascending priority, feeding the output of each strategy into the next.
    """

    def __init__(self, parse_node: ParseNodeFunction = None):
        self.parse_node: Optional[ParseNodeFunction] = parse_node
        self.strategies: List[TokenizationStrategy] = [ItemExpressionTokenizer(),
                                                       TupleFieldAccessTokenizer(),
                                                       TwoDimensionalIndexTokenizer(),
                                                       SingleDimensionalIndexTokenizer(),
                                                       ParameterTokenizer()]

    def add_strategy(self, strategy: TokenizationStrategy):
        self.strategies.append(strategy)
        self.strategies.sort(key=lambda s: s.priority)

    def tokenize(self,
                 text: str,
                 token_manager: TokenManager,
                 manager: ModelManager,
                 parse_node: ParseNodeFunction = None,
                 bound_symbols: Iterable[str] = ()) -> str:
        """
        Substitute placeholders for the structured references of a statement.
        :param text: statement text
        :param token_manager: registry of the placeholders
        :param manager: symbol environment used to validate references
        :param parse_node: function that parses a sub-expression, e.g. an index or a key, into an expression node
        :param bound_symbols: names of the iterators bound by the statement
        :return: rewritten text
        """

        if parse_node is None:
            parse_node = self.parse_node
        if parse_node is None:
            raise TokenizationError("Tokenization requires an expression parser")

        bound_symbols = set(bound_symbols)

        for strategy in sorted(self.strategies, key=lambda s: s.priority):
            try:
                text = strategy.tokenize(text, token_manager, manager, parse_node, bound_symbols)
            except TokenizationError:
                raise
            except ModelError as e:
                raise TokenizationError("Error in {0} tokenization: {1}".format(strategy.name, e)) from e

        return text
