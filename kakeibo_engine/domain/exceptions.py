"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidMonthError(DomainException):
    """Month string is not a valid yyyy-MM value"""

    pass


class RecordNotFoundError(DomainException):
    """Requested record does not exist in the store"""

    def __init__(self, record_type: str, record_id: str):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(f"{record_type} not found: {record_id}")
