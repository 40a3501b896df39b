from rewardbound import config


class SolverEnvironment:
    """
    Settings of the equation solvers used to analyse epoch models.
    """

    def __init__(self, linear_method="power", minmax_method="value-iteration", precision=1e-06, relative=True,
                 max_iterations=100000, sound=False):
        """
        :param linear_method: Method for linear equation systems ('power', 'elimination', 'scipy').
        :param minmax_method: Method for min-max equation systems ('value-iteration', 'policy-iteration').
        :param precision: Precision of iterative methods.
        :param relative: Whether the precision is relative.
        :param max_iterations: Maximal number of iterations of iterative methods.
        :param sound: If True, iterative methods have to certify their precision.
        """
        if linear_method not in config.LINEAR_METHODS:
            raise ValueError("Linear equation solving method '{}' is not known".format(linear_method))
        if minmax_method not in config.MINMAX_METHODS:
            raise ValueError("Min-max equation solving method '{}' is not known".format(minmax_method))
        self.linear_method = linear_method
        self.minmax_method = minmax_method
        self.precision = precision
        self.relative = relative
        self.max_iterations = max_iterations
        self.sound = sound

    @classmethod
    def from_configuration(cls, configuration=None):
        """
        Create the environment from the given configuration.
        :param configuration: RewardboundConfig. The global configuration is used if None.
        """
        if configuration is None:
            configuration = config.configuration
        return cls(linear_method=configuration.get_linear_method(),
                   minmax_method=configuration.get_minmax_method(),
                   precision=configuration.get_precision(),
                   relative=configuration.is_relative_precision(),
                   max_iterations=configuration.get_max_iterations(),
                   sound=configuration.is_sound())

    def __str__(self):
        return "linear: {}, minmax: {}, precision: {} ({}), max iterations: {}, sound: {}".format(
            self.linear_method, self.minmax_method, self.precision, "relative" if self.relative else "absolute",
            self.max_iterations, self.sound)
