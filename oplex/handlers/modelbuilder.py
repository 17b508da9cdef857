import os
from typing import List, Optional, Tuple
import warnings

import oplex.constants as const
from oplex.handlers.expander import EquationExpander
from oplex.handlers.session import ParseResult, ParseSessionResult
from oplex.mat.domain import iterate_combinations
from oplex.mat.errors import ModelError, StructuralError, ValueResolutionError
from oplex.mat.manager import ModelManager
from oplex.mat.sumn import evaluate_filter
from oplex.parsing.dataparser import DataParser
from oplex.parsing.oplparser import OPLParser
import oplex.util as util


class ModelParsingService:
    """
    Runs a complete parse session: model texts, then data texts, then validation and expansion of the constraint
    templates and the objective.
    """

    def __init__(self,
                 manager: ModelManager = None,
                 parser: OPLParser = None,
                 data_parser: DataParser = None):
        self.manager: ModelManager = manager if manager is not None else ModelManager()
        self.parser: OPLParser = parser if parser is not None else OPLParser(self.manager)
        self.data_parser: DataParser = data_parser if data_parser is not None else DataParser(self.manager)
        self.expander: EquationExpander = EquationExpander(self.manager)

    def parse_model(self,
                    model_texts: List[str],
                    data_texts: List[str] = None) -> ParseResult:
        """
        Parse model and data texts into the model manager and expand the model.
        :param model_texts: contents of the model files (.mod)
        :param data_texts: contents of the data files (.dat)
        :return: summary of the session, with the warnings raised during the session
        """

        if model_texts is None or len(model_texts) == 0:
            return ParseResult(success=False, errors=["No model files provided"])

        session_result = ParseSessionResult()
        expansion_warnings = []
        is_aborted = False

        with warnings.catch_warnings(record=True) as caught_warnings:
            warnings.simplefilter("always")

            try:
                expansion_warnings = self.__run_session(model_texts, data_texts, session_result)
            except ModelError as e:
                session_result.add_error("Critical error during parsing: {0}".format(e))
                is_aborted = True

        warning_messages = [str(w.message) for w in caught_warnings] + expansion_warnings

        return ParseResult.from_session(session_result, warnings=warning_messages, is_aborted=is_aborted)

    def __run_session(self,
                      model_texts: List[str],
                      data_texts: Optional[List[str]],
                      session_result: ParseSessionResult) -> List[str]:

        self.manager.clear()
        self.parser.clear()

        # parse declarations and constraint templates
        for text in model_texts:
            if text is not None and text.strip() != "":
                session_result.merge(self.parser.parse(text))

        # load data
        has_data = False
        if data_texts is not None:
            for text in data_texts:
                if text is not None and text.strip() != "":
                    has_data = True
                    session_result.merge(self.data_parser.parse(text))

        # validate data
        if not self.__check_external_data(session_result, has_data):
            return []

        self.__resolve_computed_sets(session_result)
        self.__resolve_variable_bounds(session_result)
        self.__check_assertions(session_result)

        # expand constraint templates and the objective
        expansion_result = self.expander.expand_all()
        session_result.merge(expansion_result)

        return ["Equation expansion warning: {0}".format(m) for m in expansion_result.get_error_messages()]

    def __check_external_data(self, session_result: ParseSessionResult, has_data: bool) -> bool:
        """
        Verify that every external parameter received a value.
        :return: true if no external value is missing
        """

        missing_params = self.manager.get_missing_external_parameters()
        if len(missing_params) == 0:
            return True

        if not has_data:
            suggestions = []
            for param in missing_params:
                if param.is_indexed():
                    suggestions.append("  {0} = [value1, value2, ...];".format(param.name))
                else:
                    suggestions.append("  {0} = <value>;".format(param.name))
            session_result.add_error("External parameters require data values. Create a {0} file with:\n{1}".format(
                const.DATA_FILE_EXTENSION, '\n'.join(suggestions)))

        else:
            for param in missing_params:
                session_result.add_error("Missing required data: parameter '{0}' is declared as external ".format(
                    param.name) + "(type: {0}) but no value was provided in the data file(s)".format(param.type))

        return False

    def __resolve_computed_sets(self, session_result: ParseSessionResult):
        # computed sets may be defined over other computed sets, so they are evaluated in declaration order
        for computed_set in self.manager.computed_sets.values():
            try:
                computed_set.resolve(self.manager)
            except ModelError as e:
                session_result.add_error("Computed set '{0}' could not be evaluated: {1}".format(computed_set.name, e),
                                         computed_set.line)

    def __resolve_variable_bounds(self, session_result: ParseSessionResult):
        for var in self.manager.variables.values():
            try:
                var.resolve_bounds(self.manager)
            except ModelError as e:
                session_result.add_error("Bounds of variable '{0}' could not be resolved: {1}".format(var.name, e))

    def __check_assertions(self, session_result: ParseSessionResult):

        for assertion in self.manager.assertions:

            description = assertion.message if assertion.message is not None else str(assertion.condition_node)

            try:
                for ctx in iterate_combinations(self.manager, assertion.iterators):
                    if not evaluate_filter(assertion.condition_node, self.manager, ctx):
                        if ctx.is_empty():
                            msg = "Assertion failed: {0}".format(description)
                        else:
                            msg = "Assertion failed: {0} for {1}".format(description, ctx)
                        session_result.add_error(msg, assertion.line)
                        break

            except (StructuralError, ValueResolutionError) as e:
                session_result.add_error("Assertion '{0}' could not be evaluated: {1}".format(description, e),
                                         assertion.line)

    @staticmethod
    def get_syntax_help_message() -> str:
        return ("Supported formats:\n"
                "  Model file ({0}):\n".format(const.MODEL_FILE_EXTENSION)
                + "    Parameters: int T = 10; float capacity = 100.5;\n"
                  "    External parameters: float c = ...; (requires data file)\n"
                  "    Indexed parameters: float cost[Products] = ...;\n"
                  "    Index sets: range I = 1..T;\n"
                  "    Variables: dvar float+ x[I];\n"
                  "    Equations: constraint_name[i in I]: x[i] >= cost[i];\n"
                  "    Summations: budget: sum(i in I) cost[i]*x[i] <= 100;\n"
                  "    2D Equations: flow[i in I, j in J]: x[i,j] <= capacity[i,j];\n"
                + "  Data file ({0}):\n".format(const.DATA_FILE_EXTENSION)
                + "    Scalar: c = 100;\n"
                  "    Vector: cost = [10, 20, 30];\n"
                  "    Matrix: capacity = [[1, 2], [3, 4]];\n"
                  "    Indexed: cost[1] = 10;")


def read_opl(model_literal: str = None,
             data_literal: str = None,
             file_name: str = None,
             data_file_name: str = None,
             working_dir_path: str = None) -> Tuple[ModelManager, ParseResult]:
    """
    Parse and expand a model.
    :param model_literal: model text
    :param data_literal: data text
    :param file_name: name of a model file, read if no model text is supplied
    :param data_file_name: name of a data file, read if no data text is supplied
    :param working_dir_path: directory of the files; if neither a model text nor a model file name is supplied, every
    model and data file of the directory is read
    :return: populated model manager and summary of the parse session
    """

    if working_dir_path is None:
        working_dir_path = os.getcwd()

    model_texts = []
    data_texts = []

    if model_literal is not None:
        model_texts.append(model_literal)
    elif file_name is not None:
        model_texts.append(util.read_file(working_dir_path, file_name))
    else:
        for fn in util.find_all_files_with_extension(working_dir_path, const.MODEL_FILE_EXTENSION):
            model_texts.append(util.read_file(working_dir_path, fn))
        if data_file_name is None and data_literal is None:
            for fn in util.find_all_files_with_extension(working_dir_path, const.DATA_FILE_EXTENSION):
                data_texts.append(util.read_file(working_dir_path, fn))

    if len(model_texts) == 0:
        raise ValueError("Model builder requires either a model literal or a model file")

    if data_literal is not None:
        data_texts.append(data_literal)
    elif data_file_name is not None:
        data_texts.append(util.read_file(working_dir_path, data_file_name))

    service = ModelParsingService()
    result = service.parse_model(model_texts, data_texts)

    return service.manager, result
