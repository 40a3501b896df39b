class UncheckedRequirementError(Exception):
    """
    Error which is meant to be raised when an equation solver still has critical requirements that could not be
    discharged, e.g., missing bounds on the solution.
    """

    def __init__(self, message, requirements=None):
        """
        Constructor.
        :param message: Error message.
        :param requirements: The requirements that remained enabled.
        """
        super().__init__(message)
        self.message = message
        self.requirements = requirements
