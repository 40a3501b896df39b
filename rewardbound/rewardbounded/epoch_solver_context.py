import time
from enum import Enum


class EpochSolverContextState(Enum):
    """
    Lifecycle of an EpochSolverContext.
    """
    Uninitialized = 0  #: No solver has been built yet.
    SolverBuilt = 1  #: A solver for the most recent epoch matrix is available.

    def __str__(self):
        return self.name


class EpochSolverContext:
    """
    Data that is kept between the analyses of consecutive epochs of one sequential traversal.

    The current solution vector x serves as warm start, the right-hand side b is reused as buffer, and the
    equation solver is only rebuilt if the epoch matrix changes. A context must not be shared between
    traversals that run concurrently.
    """

    def __init__(self):
        self.x = []
        self.b = []
        self.solver = None
        self.nr_trivial_epochs = 0
        self.nr_non_trivial_epochs = 0
        self.nr_solver_builds = 0
        self.solving_time = 0.0

    @property
    def state(self):
        return EpochSolverContextState.Uninitialized if self.solver is None else EpochSolverContextState.SolverBuilt

    @property
    def nr_epochs_analyzed(self):
        return self.nr_trivial_epochs + self.nr_non_trivial_epochs

    def reset(self):
        """
        Drop the solver and all cached vectors. Statistics are kept.
        """
        self.x = []
        self.b = []
        self.solver = None

    def start_timer(self):
        return time.time()

    def stop_timer(self, start_time):
        self.solving_time += time.time() - start_time

    def usage_stats(self):
        return "Analyzed {} epochs ({} trivial, {} non-trivial) in {:.3f} s\nBuilt {} equation solvers\n".format(
            self.nr_epochs_analyzed, self.nr_trivial_epochs, self.nr_non_trivial_epochs, self.solving_time,
            self.nr_solver_builds)
