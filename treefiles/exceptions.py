class TreeFilesError(Exception):
    # base exception for all application-specific errors.
    pass

class ConfigError(TreeFilesError):
    # errors related to configuration.
    pass

class RootError(TreeFilesError):
    # the walk root is missing, unreadable or not a directory.
    pass

class WalkError(TreeFilesError):
    # a directory could not be listed during the walk.
    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path

class MaxResultsExceeded(TreeFilesError):
    # more files matched than the configured maximum.
    def __init__(self, limit: int):
        super().__init__("Overflow max count")
        self.limit = limit

class WalkCancelled(TreeFilesError):
    # the consumer cancelled the result stream.
    pass
