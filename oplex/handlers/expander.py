from typing import List, Optional
import warnings

from oplex.handlers.linearizer import Linearizer
from oplex.handlers.session import ParseSessionResult
from oplex.mat.aexprn import DecisionExpressionNode, NumericNode
from oplex.mat.context import EvaluationContext
from oplex.mat.domain import iterate_combinations
from oplex.mat.entity import DecisionExpression
from oplex.mat.equation import IndexedEquationTemplate, LinearEquation, Objective
from oplex.mat.errors import MissingValueError, NumericTypeError, StructuralError, ValueResolutionError
from oplex.mat.linear import LinearTerms, negate
from oplex.mat.manager import ModelManager
from oplex.mat.sumn import evaluate_filter


class EquationExpander:
    """
    Expands the constraint templates of a model into concrete linear equations once its data is loaded.
    """

    def __init__(self, manager: ModelManager):
        self.manager: ModelManager = manager
        self.linearizer: Linearizer = Linearizer(manager)

    # Model Expansion
    # ------------------------------------------------------------------------------------------------------------------

    def expand_all(self, result: ParseSessionResult = None) -> ParseSessionResult:
        """
        Expand every unexpanded constraint template and the objective of the model.
        :param result: session result to which expansion errors are recorded
        :return: session result
        """

        if result is None:
            result = ParseSessionResult()

        missing_params = self.manager.get_missing_external_parameters()
        if len(missing_params) > 0:
            raise MissingValueError("Unable to expand the model: external parameter(s) {0} have no value".format(
                ", ".join(["'{0}'".format(p.name) for p in missing_params])))

        for template in self.manager.templates:
            if template.state == IndexedEquationTemplate.UNEXPANDED:
                self.expand_template(template, result)

        objective = self.manager.objective
        if objective is not None and not objective.is_expanded:
            try:
                self.expand_objective(objective)
                result.increment_success()
            except (StructuralError, ValueResolutionError, NumericTypeError) as e:
                result.add_error("Objective '{0}' could not be expanded: {1}".format(objective.name, e),
                                 objective.line)

        return result

    def expand_template(self,
                        template: IndexedEquationTemplate,
                        result: ParseSessionResult = None) -> List[LinearEquation]:
        """
        Expand a constraint template into one linear equation per combination of its iterator values. The first
        iterator varies slowest. A combination whose values cannot be resolved is recorded in the session result and
        skipped; a structural error fails the whole template and no equation is added to the model.
        :param template: constraint template
        :param result: session result to which expansion errors are recorded
        :return: list of expanded equations
        """

        if result is None:
            result = ParseSessionResult()

        if template.state != IndexedEquationTemplate.UNEXPANDED:
            raise StructuralError("Constraint '{0}' cannot be expanded: the template is {1}".format(
                template.base_name, IndexedEquationTemplate.STATE_NAMES[template.state]))

        template.state = IndexedEquationTemplate.EXPANDING
        equations = []

        try:

            for ctx in iterate_combinations(self.manager, template.iterators):

                indices = [ctx.get_value(s) for s in template.get_symbols()]

                try:
                    if template.condition is not None \
                            and not evaluate_filter(template.condition, self.manager, ctx):
                        continue
                    equation = self.__build_equation(template, ctx, indices)

                except ValueResolutionError as e:
                    result.add_error("Constraint '{0}' skipped: {1}".format(self.__get_identifier(template, indices),
                                                                            e),
                                     template.line)
                    continue

                equations.append(equation)

        except (StructuralError, NumericTypeError) as e:
            template.state = IndexedEquationTemplate.FAILED
            template.error = e
            result.add_error("Constraint '{0}' failed to expand: {1}".format(template.base_name, e), template.line)
            return []

        template.state = IndexedEquationTemplate.EXPANDED

        for equation in equations:
            self.manager.add_equation(equation)
        result.increment_success()

        if len(equations) == 0:
            warnings.warn("Constraint '{0}' expanded to zero equations".format(template.base_name))

        return equations

    def __build_equation(self,
                         template: IndexedEquationTemplate,
                         ctx: EvaluationContext,
                         indices: List[int]) -> LinearEquation:

        terms = self.linearizer.linearize_relation(template.lhs_operand, template.rhs_operand, ctx).compact()

        return LinearEquation(operator=template.operator,
                              coefficients=terms.coefficients,
                              constant=negate(terms.constant),
                              label=template.build_label(indices),
                              base_name=template.base_name,
                              index=indices[0] if len(indices) > 0 else None,
                              second_index=indices[1] if len(indices) > 1 else None,
                              line=template.line)

    @staticmethod
    def __get_identifier(template: IndexedEquationTemplate, indices: List[int]) -> str:
        label = template.build_label(indices)
        return label if label is not None else template.base_name

    # Objective and Decision Expressions
    # ------------------------------------------------------------------------------------------------------------------

    def expand_objective(self, objective: Objective = None) -> Objective:
        """
        Linearize the expression of an objective into its coefficients and constant.
        """

        if objective is None:
            objective = self.manager.objective
        if objective is None:
            raise StructuralError("The model has no objective to expand")

        terms = self.linearizer.linearize(objective.expression_node).compact()

        objective.coefficients = terms.coefficients
        objective.constant = terms.constant
        objective.is_expanded = True

        return objective

    def expand_decision_expression(self,
                                   dexpr: DecisionExpression,
                                   index: Optional[int] = None) -> LinearTerms:
        idx_node = NumericNode(index) if index is not None else None
        node = DecisionExpressionNode(dexpr.name, idx_node)
        return self.linearizer.linearize_decision_expression(node).compact()
