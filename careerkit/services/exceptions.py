"""Domain-specific exceptions."""


class ServiceError(Exception):
    pass


class UserNotFound(ServiceError):
    pass


class UnknownPlan(ServiceError):
    pass


class UsageStoreUnavailable(ServiceError):
    """The user/account store could not be read or written."""


class GenerationFailed(ServiceError):
    pass


class QuotaExceeded(ServiceError):
    def __init__(self, action: str, used: int, limit: int) -> None:
        super().__init__(f"Usage limit reached for {action}: {used}/{limit}.")
        self.action = action
        self.used = used
        self.limit = limit
