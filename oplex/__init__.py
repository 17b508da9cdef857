import os
import pathlib

# allow access to the following members from the oplex directory
from oplex.mat import *
from oplex.handlers.session import ParseSessionResult, ParseResult
from oplex.handlers.linearizer import Linearizer
from oplex.handlers.expander import EquationExpander
from oplex.handlers.modelbuilder import ModelParsingService, read_opl
from oplex.parsing.lexer import OPLLexer, split_statements
from oplex.parsing.tokenmanager import TokenManager
from oplex.parsing.tokenization import TokenizationOrchestrator
from oplex.parsing.dataparser import DataParser
from oplex.parsing.oplparser import OPLParser


# The directory containing this file
ROOT_DIR = pathlib.Path(__file__).parent

with open(os.path.join(ROOT_DIR, "VERSION")) as version_file:
    __version__ = version_file.read().strip()
