class InfrastructureConfigError(Exception):
    """
    Raised when configuration values are individually valid but cannot be
    combined into one stack, e.g. two services claiming the same listener
    priority.
    """
