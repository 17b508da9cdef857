from ordered_set import OrderedSet
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Union
import warnings

from oplex.mat.entity import Assertion, DecisionExpression, Entity, IndexedVariable, Parameter
from oplex.mat.equation import IndexedEquationTemplate, LinearEquation, Objective, build_indexed_label
from oplex.mat.errors import IndexOutOfRangeError, NotFoundError, SchemaNotFoundError, StructuralError, \
    TupleSetNotFoundError, ValueResolutionError
from oplex.mat.sets import IndexSet, PrimitiveSet
from oplex.mat.tuples import TupleInstance, TupleSchema, TupleSet
from oplex.mat.util import to_index

if TYPE_CHECKING:
    from oplex.mat.compset import ComputedSet
    from oplex.mat.exprn import ExpressionNode


class ModelManager:
    """
    Symbol environment of one parse session. Every registry preserves declaration order.
    """

    def __init__(self):

        # --- Sets ---
        self.index_sets: Dict[str, IndexSet] = {}
        self.pending_ranges: Dict[str, Tuple["ExpressionNode", "ExpressionNode"]] = {}
        self.primitive_sets: Dict[str, PrimitiveSet] = {}
        self.tuple_schemas: Dict[str, TupleSchema] = {}
        self.tuple_sets: Dict[str, TupleSet] = {}
        self.computed_sets: Dict[str, "ComputedSet"] = {}

        # --- Parameters ---
        self.parameters: Dict[str, Parameter] = {}
        self.pending_parameter_values: Dict[str, "ExpressionNode"] = {}
        self.tuple_parameters: Dict[str, TupleInstance] = {}

        # --- Variables ---
        self.variables: Dict[str, IndexedVariable] = {}
        self.decision_expressions: Dict[str, DecisionExpression] = {}

        # --- Constraints ---
        self.templates: List[IndexedEquationTemplate] = []
        self.equations: List[LinearEquation] = []
        self.labeled_equations: Dict[str, LinearEquation] = {}
        self.assertions: List[Assertion] = []

        # --- Objective ---
        self.objective: Optional[Objective] = None

    def clear(self):
        self.index_sets.clear()
        self.pending_ranges.clear()
        self.primitive_sets.clear()
        self.tuple_schemas.clear()
        self.tuple_sets.clear()
        self.computed_sets.clear()
        self.parameters.clear()
        self.pending_parameter_values.clear()
        self.tuple_parameters.clear()
        self.variables.clear()
        self.decision_expressions.clear()
        self.templates.clear()
        self.equations.clear()
        self.labeled_equations.clear()
        self.assertions.clear()
        self.objective = None

    # Declarations
    # ------------------------------------------------------------------------------------------------------------------

    @staticmethod
    def __register(registry: dict, name: str, value, kind: str):
        if name in registry:
            warnings.warn("Redeclaration of {0} '{1}' replaces the previous declaration".format(kind, name))
        registry[name] = value

    def add_index_set(self, idx_set: IndexSet):
        self.__register(self.index_sets, idx_set.name, idx_set, "index set")

    def add_range(self, name: str, start_node: "ExpressionNode", end_node: "ExpressionNode"):
        """
        Declare an index set 'range name = start..end'. Bounds that depend on parameter values which are not loaded
        yet are resolved on first use.
        """
        self.pending_ranges[name] = (start_node, end_node)
        try:
            self.__resolve_range(name)
        except ValueResolutionError:
            self.index_sets.pop(name, None)

    def __resolve_range(self, name: str) -> IndexSet:
        start_node, end_node = self.pending_ranges[name]
        idx_set = IndexSet(name, to_index(start_node.evaluate(self)), to_index(end_node.evaluate(self)))
        del self.pending_ranges[name]
        self.add_index_set(idx_set)
        return idx_set

    def add_primitive_set(self, primitive_set: PrimitiveSet):
        self.__register(self.primitive_sets, primitive_set.name, primitive_set, "set")

    def add_tuple_schema(self, schema: TupleSchema):
        self.__register(self.tuple_schemas, schema.name, schema, "tuple schema")

    def add_tuple_set(self, tuple_set: TupleSet):
        if tuple_set.schema_name not in self.tuple_schemas:
            raise SchemaNotFoundError(tuple_set.schema_name)
        self.__register(self.tuple_sets, tuple_set.name, tuple_set, "tuple set")

    def add_computed_set(self, computed_set: "ComputedSet"):
        """
        Declare a set defined by a comprehension. A non-indexed computed set is registered right away with no members
        so that later statements may refer to it; its members are computed by resolve().
        """
        self.__register(self.computed_sets, computed_set.name, computed_set, "computed set")
        if not computed_set.is_indexed():
            self.set_computed_members(computed_set.build_set(computed_set.name, []))

    def set_computed_members(self, member_set: Union[TupleSet, PrimitiveSet]):
        if isinstance(member_set, TupleSet):
            self.tuple_sets[member_set.name] = member_set
        else:
            self.primitive_sets[member_set.name] = member_set

    def add_parameter(self, param: Parameter):
        for idx_set_name in param.idx_set_names:
            if not self.has_domain(idx_set_name):
                raise NotFoundError("Index set '{0}' not found for parameter '{1}'".format(idx_set_name, param.name))
        self.__register(self.parameters, param.name, param, "parameter")

    def add_tuple_parameter(self, name: str, instance: TupleInstance):
        self.__register(self.tuple_parameters, name, instance, "tuple parameter")

    def add_variable(self, var: IndexedVariable):
        for idx_set_name in var.idx_set_names:
            if not self.has_domain(idx_set_name):
                raise NotFoundError("Index set '{0}' not found for variable '{1}'".format(idx_set_name, var.name))
        self.__register(self.variables, var.name, var, "variable")

    def add_decision_expression(self, dexpr: DecisionExpression):
        self.__register(self.decision_expressions, dexpr.name, dexpr, "decision expression")

    def add_assertion(self, assertion: Assertion):
        self.assertions.append(assertion)

    def add_template(self, template: IndexedEquationTemplate):
        self.templates.append(template)

    def add_equation(self, equation: LinearEquation):
        self.equations.append(equation)
        identifier = equation.get_full_identifier()
        if identifier is not None:
            self.labeled_equations[identifier] = equation

    def set_objective(self, objective: Objective):
        if self.objective is not None:
            warnings.warn("Objective '{0}' replaces objective '{1}'".format(objective.name, self.objective.name))
        self.objective = objective

    def set_parameter_value(self, name: str, value, indices: tuple = None):
        self.require_parameter(name).set_value(value, indices)

    def set_parameter_expression(self, name: str, node: "ExpressionNode"):
        """
        Assign the value of an expression to a scalar parameter, e.g. 'int m = 2 * n;'. The expression is evaluated
        on first use if it depends on values that are not loaded yet.
        """
        self.require_parameter(name)
        self.pending_parameter_values[name] = node
        try:
            self.__resolve_parameter_value(name)
        except ValueResolutionError:
            pass

    def __resolve_parameter_value(self, name: str):
        node = self.pending_parameter_values.pop(name)
        try:
            self.parameters[name].set_value(node.evaluate_scalar(self))
        except ValueResolutionError:
            self.pending_parameter_values[name] = node
            raise

    # Lookups
    # ------------------------------------------------------------------------------------------------------------------

    def get_index_set(self, name: str) -> Optional[IndexSet]:
        """
        Retrieve an index set. A range whose bounds are still unresolved is resolved first, which raises a value
        resolution error if a bound has no value yet.
        """
        if name in self.pending_ranges:
            return self.__resolve_range(name)
        return self.index_sets.get(name, None)

    def require_index_set(self, name: str) -> IndexSet:
        idx_set = self.get_index_set(name)
        if idx_set is None:
            raise NotFoundError("Index set '{0}' not found".format(name))
        return idx_set

    def get_primitive_set(self, name: str) -> Optional[PrimitiveSet]:
        return self.primitive_sets.get(name, None)

    def get_tuple_schema(self, name: str) -> Optional[TupleSchema]:
        return self.tuple_schemas.get(name, None)

    def require_tuple_schema(self, name: str) -> TupleSchema:
        schema = self.get_tuple_schema(name)
        if schema is None:
            raise SchemaNotFoundError(name)
        return schema

    def get_tuple_set(self, name: str) -> Optional[TupleSet]:
        return self.tuple_sets.get(name, None)

    def require_tuple_set(self, name: str) -> TupleSet:
        tuple_set = self.get_tuple_set(name)
        if tuple_set is None:
            raise TupleSetNotFoundError(name)
        return tuple_set

    def get_tuple_sets(self) -> List[TupleSet]:
        return list(self.tuple_sets.values())

    def get_computed_set(self, name: str) -> Optional["ComputedSet"]:
        return self.computed_sets.get(name, None)

    def require_computed_set(self, name: str) -> "ComputedSet":
        computed_set = self.get_computed_set(name)
        if computed_set is None:
            raise NotFoundError("Set '{0}' not found".format(name))
        return computed_set

    def get_tuple_parameter(self, name: str) -> Optional[TupleInstance]:
        return self.tuple_parameters.get(name, None)

    def get_parameter(self, name: str) -> Optional[Parameter]:
        if name in self.pending_parameter_values:
            try:
                self.__resolve_parameter_value(name)
            except ValueResolutionError:
                pass
        return self.parameters.get(name, None)

    def require_parameter(self, name: str) -> Parameter:
        param = self.get_parameter(name)
        if param is None:
            raise NotFoundError("Parameter '{0}' not found".format(name))
        return param

    def get_variable(self, name: str) -> Optional[IndexedVariable]:
        return self.variables.get(name, None)

    def require_variable(self, name: str) -> IndexedVariable:
        var = self.get_variable(name)
        if var is None:
            raise NotFoundError("Variable '{0}' not found".format(name))
        return var

    def get_variables_by_type(self, type: str) -> List[IndexedVariable]:
        return [v for v in self.variables.values() if v.type == type]

    def get_decision_expression(self, name: str) -> Optional[DecisionExpression]:
        return self.decision_expressions.get(name, None)

    # Domains
    # ------------------------------------------------------------------------------------------------------------------

    def has_domain(self, name: str) -> bool:
        return name in self.index_sets or name in self.pending_ranges or name in self.primitive_sets \
            or name in self.tuple_sets

    def is_domain_resolved(self, name: str) -> bool:
        """
        Returns True if the values of a declared set are known, i.e. if its range bounds resolve and its members are
        either declared inline or already loaded.
        """
        if name in self.computed_sets:
            return self.computed_sets[name].is_resolved
        if name in self.pending_ranges:
            try:
                self.get_index_set(name)
            except ValueResolutionError:
                return False
            return True
        if name in self.primitive_sets:
            return self.primitive_sets[name].has_values()
        if name in self.tuple_sets:
            tuple_set = self.tuple_sets[name]
            if tuple_set.is_indexed():
                return self.is_domain_resolved(tuple_set.index_set_name)
            return tuple_set.has_values()
        return self.has_domain(name)

    def get_domain(self, name: str) -> OrderedSet:
        """
        Retrieve the ordered integer values an iterator takes when it runs over a named set. Index sets yield their
        range, primitive sets their integer members and tuple sets the values of their backing index set, or their
        1-based positions if they are not indexed.
        :param name: set name
        :return: ordered set of integer values
        """

        if name in self.index_sets or name in self.pending_ranges:
            return self.get_index_set(name).get_indices()

        if name in self.primitive_sets:
            primitive_set = self.primitive_sets[name]
            if not primitive_set.is_integral():
                raise StructuralError("Set '{0}' is not a set of integers and cannot be iterated over".format(name))
            return primitive_set.get_indices()

        if name in self.tuple_sets:
            tuple_set = self.tuple_sets[name]
            if tuple_set.is_indexed():
                return self.require_index_set(tuple_set.index_set_name).get_indices()
            return OrderedSet(range(1, len(tuple_set) + 1))

        raise NotFoundError("Set '{0}' not found".format(name))

    def check_indices(self, entity: Entity, indices: tuple, kind: str):
        """
        Verify that index values lie within the domains of the index sets of an entity.
        :param entity: indexed parameter or variable
        :param indices: index values
        :param kind: entity kind used in error messages
        :return: None
        """
        if len(indices) != entity.get_dim():
            raise StructuralError("{0} '{1}' expects {2} indices but {3} were given".format(
                kind.capitalize(), entity.name, entity.get_dim(), len(indices)))
        for idx, idx_set_name in zip(indices, entity.idx_set_names):
            if idx not in self.get_domain(idx_set_name):
                raise IndexOutOfRangeError("Index {0} is out of range for {1} {2}".format(idx, kind, entity.name))

    # Equations
    # ------------------------------------------------------------------------------------------------------------------

    def get_equation_by_label(self, label: str) -> Optional[LinearEquation]:
        return self.labeled_equations.get(label, None)

    def get_equations_by_base_name(self, base_name: str) -> List[LinearEquation]:
        return [e for e in self.equations if e.base_name == base_name]

    def get_indexed_equation(self, base_name: str, index: int, second_index: int = None) -> Optional[LinearEquation]:
        return self.get_equation_by_label(build_indexed_label(base_name, index, second_index))

    def get_unexpanded_templates(self) -> List[IndexedEquationTemplate]:
        return [t for t in self.templates if not t.is_expanded()]

    def get_missing_external_parameters(self) -> List[Parameter]:
        return [p for p in self.parameters.values() if p.is_external and not p.has_value()]

    def check_exportable(self):
        """
        Verify that the model is complete: every constraint template is expanded and an objective is defined.
        """
        unexpanded_templates = self.get_unexpanded_templates()
        if len(unexpanded_templates) > 0:
            raise StructuralError("Model cannot be exported: {0} constraint template(s) are not expanded ({1})".format(
                len(unexpanded_templates), ", ".join([t.base_name for t in unexpanded_templates])))
        if self.objective is None:
            raise StructuralError("Model cannot be exported: no objective is defined")

    # Reporting
    # ------------------------------------------------------------------------------------------------------------------

    def generate_report(self) -> str:

        lines = ["=== Parse Results ===", ""]

        def add_section(title: str, items: list, is_optional: bool = False):
            if is_optional and len(items) == 0:
                return
            lines.append("{0}: {1}".format(title, len(items)))
            lines.extend(["  - {0}".format(i) for i in items])
            lines.append("")

        add_section("Parameters", list(self.parameters.values()))
        add_section("Index Sets", list(self.index_sets.values()))
        add_section("Primitive Sets", list(self.primitive_sets.values()), is_optional=True)
        add_section("Tuple Schemas", list(self.tuple_schemas.values()), is_optional=True)
        add_section("Tuple Sets", list(self.tuple_sets.values()), is_optional=True)
        add_section("Computed Sets", list(self.computed_sets.values()), is_optional=True)
        add_section("Variables", list(self.variables.values()))
        add_section("Decision Expressions", list(self.decision_expressions.values()), is_optional=True)

        if self.objective is not None:
            lines.extend(["Objective:", "  - {0}".format(self.objective), ""])
        else:
            lines.extend(["Objective: None", ""])

        add_section("Equations", self.equations)

        failed_templates = [t for t in self.templates if t.is_failed()]
        add_section("Failed Templates", failed_templates, is_optional=True)

        return '\n'.join(lines)
