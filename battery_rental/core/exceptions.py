from fastapi import HTTPException


class BatteryRentalException(Exception):
    pass


class NotFoundException(BatteryRentalException):
    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity} not found")


class ConflictException(BatteryRentalException):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class InvalidInputException(BatteryRentalException):
    def __init__(self, field: str, reason: str = ""):
        self.field = field
        self.reason = reason or f"Invalid value for {field}"
        super().__init__(self.reason)


def not_found_exception(exc: NotFoundException):
    return HTTPException(status_code=404, detail=str(exc))


def conflict_exception(exc: ConflictException):
    return HTTPException(status_code=409, detail=exc.reason)


def invalid_input_exception(exc: InvalidInputException):
    return HTTPException(
        status_code=400, detail={"field": exc.field, "error": exc.reason}
    )


def unauthorized_exception():
    return HTTPException(status_code=401, detail="Not authenticated")


def admin_required_exception():
    return HTTPException(status_code=403, detail="Admin access required")


def to_http_exception(exc: BatteryRentalException) -> HTTPException:
    if isinstance(exc, NotFoundException):
        return not_found_exception(exc)
    if isinstance(exc, ConflictException):
        return conflict_exception(exc)
    if isinstance(exc, InvalidInputException):
        return invalid_input_exception(exc)
    return HTTPException(status_code=500, detail=str(exc))
