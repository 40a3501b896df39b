class SolverRequirement:
    """
    A single precondition of an equation solver.
    """

    def __init__(self, name):
        self.name = name
        self.enabled = False
        self.critical = False

    def enable(self, critical=True):
        self.enabled = True
        self.critical = critical

    def clear(self):
        self.enabled = False
        self.critical = False

    def __bool__(self):
        return self.enabled

    def __str__(self):
        if not self.enabled:
            return ""
        return self.name + (" (critical)" if self.critical else "")


class SolverRequirements:
    """
    The preconditions an equation solver needs to be discharged by its caller to guarantee correct results.
    Critical requirements must be discharged; others merely influence performance.
    """

    def __init__(self):
        self.lower_bounds = SolverRequirement("lower bounds")
        self.upper_bounds = SolverRequirement("upper bounds")
        self.unique_solution = SolverRequirement("unique solution")
        self.valid_initial_scheduler = SolverRequirement("valid initial scheduler")

    def _all(self):
        return [self.lower_bounds, self.upper_bounds, self.unique_solution, self.valid_initial_scheduler]

    def require_lower_bounds(self, critical=True):
        self.lower_bounds.enable(critical)
        return self

    def require_upper_bounds(self, critical=True):
        self.upper_bounds.enable(critical)
        return self

    def require_bounds(self, critical=True):
        self.require_lower_bounds(critical)
        return self.require_upper_bounds(critical)

    def require_unique_solution(self, critical=True):
        self.unique_solution.enable(critical)
        return self

    def require_valid_initial_scheduler(self, critical=True):
        self.valid_initial_scheduler.enable(critical)
        return self

    def clear_lower_bounds(self):
        self.lower_bounds.clear()

    def clear_upper_bounds(self):
        self.upper_bounds.clear()

    def merge(self, other):
        """
        Enable all requirements that are enabled in the other set.
        :param other: SolverRequirements.
        """
        for mine, theirs in zip(self._all(), other._all()):
            if theirs.enabled:
                mine.enable(mine.critical or theirs.critical)
        return self

    def has_enabled_requirement(self):
        return any(r.enabled for r in self._all())

    def has_enabled_critical_requirement(self):
        return any(r.enabled and r.critical for r in self._all())

    def enabled_requirements_as_string(self):
        return "[" + ", ".join(str(r) for r in self._all() if r.enabled) + "]"

    def __str__(self):
        return self.enabled_requirements_as_string()
