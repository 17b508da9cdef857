import numpy as np
import re
from typing import List, Union
import warnings

from oplex.handlers.session import ParseSessionResult
from oplex.mat.entity import Parameter
from oplex.mat.errors import ModelSyntaxError, NotFoundError, StructuralError
from oplex.mat.manager import ModelManager
from oplex.mat.scalar import coerce_scalar
from oplex.mat.tuples import TupleInstance
from oplex.parsing.lexer import OPLLexer, split_statements


NUMBER_PATTERN = re.compile(r"\d+(\.\d*)?([eE][+-]?\d+)?")


class LiteralValueParser:
    """
    Parser of data literals: numbers, strings, booleans, lists '[...]', sets '{...}' and tuples '<...>'. Lists and
    sets are returned as Python lists and tuples as Python tuples.
    """

    def __init__(self, tokens: List[str], token_index: int = 0):
        self.tokens: List[str] = tokens
        self.token_index: int = token_index

    def get_token(self) -> str:
        if self.token_index >= len(self.tokens):
            return ""
        return self.tokens[self.token_index]

    def _next_token(self) -> bool:
        self.token_index += 1
        return self.token_index < len(self.tokens)

    def _enforce_token_value(self, expected_token: str):
        if self.get_token() != expected_token:
            raise ModelSyntaxError("Data parser encountered an unexpected token '{0}' ".format(self.get_token())
                                   + "while expecting the token '{0}'".format(expected_token))

    def parse_value(self) -> Union[int, float, str, bool, list, tuple]:

        token = self.get_token()

        if token == '[':
            return self.__parse_collection('[', ']')

        elif token == '{':
            return self.__parse_collection('{', '}')

        elif token == '<':
            return tuple(self.__parse_collection('<', '>'))

        elif token == '-':
            self._next_token()
            value = self.parse_value()
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ModelSyntaxError("Unexpected '-' before data value '{0}'".format(value))
            return -value

        elif token == '+':
            self._next_token()
            return self.parse_value()

        self._next_token()

        if len(token) >= 2 and token[0] == '"' and token[-1] == '"':
            return token[1:-1]

        elif token in ("true", "false"):
            return token == "true"

        elif token in ("Infinity", "infinity"):
            return np.inf

        elif NUMBER_PATTERN.fullmatch(token) is not None:
            if re.fullmatch(r"\d+", token) is not None:
                return int(token)
            return float(token)

        raise ModelSyntaxError("Unable to parse data value '{0}'".format(token))

    def __parse_collection(self, open_delimiter: str, close_delimiter: str) -> list:

        self._enforce_token_value(open_delimiter)
        self._next_token()

        values = []
        while self.get_token() != close_delimiter:
            if self.get_token() == "":
                raise ModelSyntaxError("Missing '{0}' to close a data value".format(close_delimiter))
            values.append(self.parse_value())
            if self.get_token() == ',':
                self._next_token()

        self._next_token()  # skip closing delimiter

        return values


class DataParser:
    """
    Loader of data texts. Assigns values to the external parameters, sets and tuple sets declared in a model, e.g.
    'cost = [10, 20, 30];', 'cap = [[1, 2], [3, 4]];', 'cost[2] = 15;', 'S = {1, 3, 5};' or
    'arcs = {<1, 2, 4.5>, <2, 3, 1.0>};'.
    """

    def __init__(self, manager: ModelManager):
        self.manager: ModelManager = manager
        self._lexer: OPLLexer = OPLLexer()

    def parse(self, text: str) -> ParseSessionResult:
        result = ParseSessionResult()
        for statement, line in split_statements(text):
            try:
                self.parse_statement(statement)
                result.increment_success()
            except ValueError as e:
                result.add_error(str(e), line)
        return result

    def parse_statement(self, statement: str):

        tokens = self._lexer.tokenize(statement)
        if len(tokens) == 0:
            return

        value_parser = LiteralValueParser(tokens, 1)
        name = tokens[0]

        # Indices
        indices = []
        while value_parser.get_token() == '[':
            value_parser._next_token()
            while value_parser.get_token() != ']':
                idx = value_parser.parse_value()
                if isinstance(idx, bool) or not isinstance(idx, int):
                    raise ModelSyntaxError("Index '{0}' of '{1}' is not an integer".format(idx, name))
                indices.append(idx)
                if value_parser.get_token() == ',':
                    value_parser._next_token()
                elif value_parser.get_token() == "":
                    raise ModelSyntaxError("Missing ']' in the assignment to '{0}'".format(name))
            value_parser._next_token()

        value_parser._enforce_token_value('=')
        value_parser._next_token()

        value = value_parser.parse_value()

        if value_parser.get_token() != "":
            raise ModelSyntaxError("Unexpected token '{0}' in the assignment to '{1}'".format(
                value_parser.get_token(), name))

        self.assign(name, value, indices)

    def assign(self, name: str, value, indices: List[int] = None):

        if self.manager.get_computed_set(name) is not None:
            raise StructuralError("Computed set '{0}' is defined by a comprehension and cannot be assigned".format(name))

        param = self.manager.get_parameter(name)
        primitive_set = self.manager.get_primitive_set(name)
        tuple_set = self.manager.get_tuple_set(name)
        tuple_param = self.manager.get_tuple_parameter(name)

        if param is not None:
            self.__check_external(name, param.is_external)
            self.__assign_parameter(param, value, indices)

        elif primitive_set is not None:
            self.__check_external(name, primitive_set.is_external)
            self.__check_collection(name, value)
            primitive_set.set_values([coerce_scalar(v, primitive_set.element_type).value for v in value])

        elif tuple_set is not None:
            self.__check_external(name, tuple_set.is_external)
            self.__check_collection(name, value)
            schema = self.manager.require_tuple_schema(tuple_set.schema_name)
            instances = []
            for element in value:
                if not isinstance(element, tuple):
                    raise StructuralError("Tuple set '{0}' expects tuples '<...>' but got '{1}'".format(name,
                                                                                                       element))
                instances.append(TupleInstance.build(schema, list(element)))
            tuple_set.instances = instances

        elif tuple_param is not None:
            if not isinstance(value, tuple):
                raise StructuralError("Tuple parameter '{0}' expects a tuple '<...>'".format(name))
            schema = self.manager.require_tuple_schema(tuple_param.schema_name)
            self.manager.add_tuple_parameter(name, TupleInstance.build(schema, list(value)))

        else:
            raise NotFoundError("Symbol '{0}' is not declared in the model".format(name))

    def __assign_parameter(self, param: Parameter, value, indices: List[int] = None):

        if indices is not None and len(indices) > 0:
            indices = tuple(indices)
            self.manager.check_indices(param, indices, "parameter")
            param.set_value(value, indices)

        elif param.is_indexed():
            self.__check_collection(param.name, value)
            domains = [self.manager.get_domain(s) for s in param.idx_set_names]
            param.set_values(value, domains)

        else:
            if isinstance(value, (list, tuple)):
                raise StructuralError("Parameter '{0}' is scalar but was assigned a collection".format(param.name))
            param.set_value(value)

    @staticmethod
    def __check_external(name: str, is_external: bool):
        if not is_external:
            warnings.warn("Data assignment to '{0}' which is not declared external".format(name))

    @staticmethod
    def __check_collection(name: str, value):
        if not isinstance(value, list):
            raise StructuralError("Symbol '{0}' expects a collection of values".format(name))
