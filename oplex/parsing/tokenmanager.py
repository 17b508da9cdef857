import re
from typing import Dict, List

import oplex.constants as const
from oplex.mat.errors import NotFoundError, StructuralError
from oplex.mat.exprn import ExpressionNode


class TokenManager:
    """
    Registry of the placeholders substituted into statement text by the tokenization strategies. Each placeholder
    '__{KIND}{N}__' stands in for an expression node; the counter N is shared by all kinds and is only reset by
    clear().
    """

    TOKEN_PATTERN = r"__(ITEM|TUPLE_ITER|TUPLE|PARAM)(\d+)__"

    def __init__(self):
        self.expressions: Dict[str, ExpressionNode] = {}
        self.__counter: int = 0

    def create_token(self, node: ExpressionNode, kind: str) -> str:
        if kind not in const.TOKEN_KINDS:
            raise StructuralError("Unknown token kind '{0}'".format(kind))
        token = "__{0}{1}__".format(kind, self.__counter)
        self.__counter += 1
        self.expressions[token] = node
        return token

    def get_expression(self, token: str) -> ExpressionNode:
        if token not in self.expressions:
            raise NotFoundError("Token '{0}' not found".format(token))
        return self.expressions[token]

    def has_token(self, token: str) -> bool:
        return token in self.expressions

    def contains_tokens(self, text: str) -> bool:
        return re.search(self.TOKEN_PATTERN, text) is not None

    def get_tokens(self, text: str = None) -> List[str]:
        """
        Retrieve the registered placeholders, or the placeholders that occur in a text in order of appearance.
        """
        if text is None:
            return list(self.expressions.keys())
        return [m.group(0) for m in re.finditer(self.TOKEN_PATTERN, text)]

    def token_count(self) -> int:
        return len(self.expressions)

    def clear(self):
        self.expressions.clear()
        self.__counter = 0

    @staticmethod
    def is_token(literal: str) -> bool:
        return re.fullmatch(TokenManager.TOKEN_PATTERN, literal) is not None
