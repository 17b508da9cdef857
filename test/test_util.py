import os
from typing import Dict, Tuple, Union
import warnings

from oplex import *

SCRIPT_DIR_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "scripts")


def build_model(model: str, data: str = None) -> Tuple[ModelManager, ParseResult]:
    return read_opl(model_literal=model, data_literal=data)


def build_parser(model: str = None) -> OPLParser:
    """
    Build a parser over a fresh model manager. Declarations of the supplied model are parsed without expansion.
    """
    parser = OPLParser(ModelManager())
    if model is not None:
        result = parser.parse(model)
        assert not result.has_errors(), result.get_error_messages()
    return parser


def evaluate_equation(manager: ModelManager, equation: LinearEquation) -> Tuple[Dict[str, float], float]:
    return equation.evaluate_coefficients(manager), equation.evaluate_constant(manager)


def check_str_result(actual_result, expected_result) -> bool:
    if str(actual_result) == str(expected_result):
        return True
    else:
        warnings.warn("Incorrect result: {0} \nExpected result: {1}".format(actual_result, expected_result))
        return False


def check_num_result(actual_result: Union[int, float],
                     expected_result: Union[int, float],
                     tol: float = 1e-6) -> bool:
    if abs(actual_result - expected_result) <= tol:
        return True
    else:
        warnings.warn("Incorrect result: {0} \nExpected result: {1}".format(actual_result, expected_result))
        return False


def check_coefficients(actual_result: Dict[str, float], expected_result: Dict[str, float]) -> bool:
    if set(actual_result.keys()) != set(expected_result.keys()):
        warnings.warn("Incorrect variables: {0} \nExpected variables: {1}".format(sorted(actual_result.keys()),
                                                                                  sorted(expected_result.keys())))
        return False
    return all([check_num_result(actual_result[k], v) for k, v in expected_result.items()])
