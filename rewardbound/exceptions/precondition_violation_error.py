class PreconditionViolationError(AssertionError):
    """
    Error which is meant to be raised when a structural precondition of an operation is violated.
    This indicates a defect in the calling code rather than a problem with the input model.
    """

    def __init__(self, message):
        """
        Constructor.
        :param message: Error message.
        """
        super().__init__(message)
        self.message = message
