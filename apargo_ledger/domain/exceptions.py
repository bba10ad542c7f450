"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class StrategyResolutionError(DomainException):
    """No registered strategy accepted the expense"""

    pass


class InvalidMonthYearError(DomainException):
    """Month key is not in YYYY-MM format"""

    pass


class RecordNotFoundError(DomainException):
    """Referenced apartment, expense or payment does not exist"""

    pass


class ReportingWebhookError(DomainException):
    """Reporting webhook could not be delivered"""

    pass
