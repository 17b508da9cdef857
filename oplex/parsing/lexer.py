import re
from typing import List, Tuple, Union

from oplex.mat.errors import ModelSyntaxError


class OPLLexer:

    def __init__(self):

        self.__index: int = 0
        self.__literal: str = ""
        self.__token: str = ""

        self.tokens: List[str] = []

    def tokenize(self, literal: str) -> List[str]:

        self.__index = 0
        self.__literal = literal
        self.__token = ""

        self.tokens = []

        is_numeric = False
        is_string = False

        while literal != "":

            c = literal[self.__index]

            if is_string:
                self.__token += c
                if c == '"':
                    is_string = False
                    self.__add_token()

            else:

                if c in ['\n', '\r', '\t', ' ']:
                    self.__add_token()

                elif c == '"':
                    self.__add_token()
                    is_string = True
                    self.__token += '"'

                elif c in [',', ';', '+', '-', '*', '/', '?', ':', '(', ')', '[', ']', '{', '}']:
                    self.__add_token()
                    self.__token += c
                    self.__add_token()

                elif c == '=':
                    self.__match_token(['=', "=="])

                elif c == '<':
                    self.__match_token(['<', "<="])

                elif c == '>':
                    self.__match_token(['>', ">="])

                elif c == '!':
                    self.__match_token(['!', "!="])

                elif c == '&':
                    self.__match_token("&&")

                elif c == '|':
                    self.__match_token(['|', "||"])

                elif c == '.':
                    # decimal point of a numeric literal
                    if is_numeric and '.' not in self.__token and not self.__is_last_char() \
                            and literal[self.__index + 1].isdigit():
                        self.__token += c
                    else:
                        is_numeric = False
                        self.__match_token(['.', "..", "..."])

                else:
                    if self.__token == "":
                        is_numeric = c.isdigit()
                        self.__token += c
                    elif is_numeric and c in ['E', 'e'] and not self.__is_last_char():
                        c_next = literal[self.__index + 1]
                        if c_next.isdigit():
                            self.__token += c
                        elif c_next in ['+', '-'] and self.__index + 2 < len(literal) \
                                and literal[self.__index + 2].isdigit():
                            self.__next_char()
                            self.__token += c + c_next
                        else:
                            is_numeric = False
                            self.__token += c
                    else:
                        if is_numeric and not c.isdigit():
                            is_numeric = False
                        self.__token += c

            if not self.__next_char():
                self.__add_token()
                break

        if is_string:
            raise ModelSyntaxError("Unterminated string literal in '{0}'".format(literal.strip()))

        return self.tokens

    def __match_token(self, candidates: Union[str, List[str]]):

        self.__add_token()

        if isinstance(candidates, str):
            candidates = [candidates]
        candidates.sort(key=lambda s: len(s), reverse=True)

        max_length = max([len(s) for s in candidates])
        target = self.__literal[self.__index:self.__index + max_length]

        # Identify token among candidates
        token = ""
        for candidate in candidates:
            if target[:len(candidate)] == candidate:
                token = candidate
                break

        if token == "":
            raise ModelSyntaxError("Unexpected character '{0}' in '{1}'".format(self.__literal[self.__index],
                                                                                self.__literal.strip()))

        # Skip characters of token
        for i in range(len(token) - 1):
            self.__next_char()

        self.__add_token(token)

    def __is_last_char(self) -> bool:
        return self.__index >= len(self.__literal) - 1

    def __next_char(self) -> bool:
        if not self.__is_last_char():
            self.__index += 1
            return True
        else:
            return False

    def __add_token(self, token: str = None):
        if token is not None:
            self.__token = token
        if self.__token != "":
            self.tokens.append(self.__token)
            self.__token = ""


# Statement Splitting
# ----------------------------------------------------------------------------------------------------------------------

BLOCK_STATEMENT_KEYWORDS = ["tuple", "forall"]

CONSTRAINT_BLOCK_PATTERN = re.compile(r"\b(subject\s+to|constraints)\s*\{")


def strip_comments(text: str) -> str:
    """
    Replace line comments '// ...' and block comments '/* ... */' with whitespace. Line breaks are kept so that
    line numbers are preserved.
    """

    chars = []
    i = 0
    is_string = False

    while i < len(text):

        c = text[i]

        if is_string:
            if c == '"':
                is_string = False
            chars.append(c)
            i += 1

        elif c == '"':
            is_string = True
            chars.append(c)
            i += 1

        elif text.startswith("//", i):
            while i < len(text) and text[i] not in "\r\n":
                chars.append(' ')
                i += 1

        elif text.startswith("/*", i):
            end_index = text.find("*/", i + 2)
            end_index = len(text) if end_index < 0 else end_index + 2
            chars.extend(['\n' if ch == '\n' else ' ' for ch in text[i:end_index]])
            i = end_index

        else:
            chars.append(c)
            i += 1

    return ''.join(chars)


def unwrap_constraint_blocks(text: str) -> str:
    """
    Remove the 'subject to { ... }' and 'constraints { ... }' wrappers around constraint statements.
    """

    while True:

        m = CONSTRAINT_BLOCK_PATTERN.search(text)
        if m is None:
            return text

        depth = 0
        close_index = -1
        for i in range(m.end() - 1, len(text)):
            if text[i] == '{':
                depth += 1
            elif text[i] == '}':
                depth -= 1
                if depth == 0:
                    close_index = i
                    break

        if close_index < 0:
            raise ModelSyntaxError("Missing '}}' to close the '{0}' block".format(m.group(1)))

        header = ''.join(['\n' if ch == '\n' else ' ' for ch in text[m.start():m.end()]])
        text = text[:m.start()] + header + text[m.end():close_index] + ' ' + text[close_index + 1:]


def split_statements(text: str) -> List[Tuple[str, int]]:
    """
    Split a model or data text into statements. Statements end with a semicolon outside of braces; 'tuple' and
    'forall' blocks also end with the brace that closes their body.
    :param text: model or data text
    :return: list of statements paired with the 1-based line number at which each statement starts
    """

    text = unwrap_constraint_blocks(strip_comments(text))

    statements = []

    statement = ""
    line = 1
    start_line = 1
    depth = 0
    is_string = False

    def add_statement():
        nonlocal statement
        if statement.strip() != "":
            statements.append((statement.strip(), start_line))
        statement = ""

    for c in text:

        if statement.strip() == "" and not c.isspace():
            start_line = line

        if c == '\n':
            line += 1

        if is_string:
            statement += c
            if c == '"':
                is_string = False
            continue

        if c == '"':
            is_string = True
            statement += c

        elif c == '{':
            depth += 1
            statement += c

        elif c == '}':
            depth -= 1
            statement += c
            if depth == 0 and statement.split(None, 1)[0].split('(')[0] in BLOCK_STATEMENT_KEYWORDS:
                add_statement()

        elif c == ';' and depth == 0:
            add_statement()

        else:
            statement += c

    add_statement()

    return statements
