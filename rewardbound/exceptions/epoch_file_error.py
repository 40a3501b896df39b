class EpochFileError(Exception):
    """
    Error which is meant to be raised when an epoch sequence file is malformed.
    """

    def __init__(self, message, location=None):
        """
        Constructor.
        :param message: Error message.
        :param location: Path of the offending file, if known.
        """
        if location is not None:
            message = "{}: {}".format(location, message)
        super().__init__(message)
        self.message = message
        self.location = location
