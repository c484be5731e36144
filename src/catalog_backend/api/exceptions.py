from fastapi import HTTPException, status
from typing import Any, Dict, Optional

class NotFoundException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_404_NOT_FOUND
        self.detail = detail or "Not found"

class ForbiddenException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_403_FORBIDDEN
        self.detail = detail or "Forbidden"

class BadRequestException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_400_BAD_REQUEST
        self.detail = detail or "Bad request"

class UnauthorizedException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_401_UNAUTHORIZED
        self.detail = detail or "Unauthorized"

class InternalServerException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        self.detail = detail or "Internal server error"

# Invalid identifiers (remark ids, cursors) are reported as bad requests
ValidationException = BadRequestException

def error_code(exception: HTTPException) -> str:
    if exception.status_code == status.HTTP_404_NOT_FOUND:
        return "NOT_FOUND"
    elif exception.status_code == status.HTTP_403_FORBIDDEN:
        return "FORBIDDEN"
    elif exception.status_code == status.HTTP_400_BAD_REQUEST:
        return "VALIDATION_ERROR"
    elif exception.status_code == status.HTTP_401_UNAUTHORIZED:
        return "UNAUTHORIZED"
    else:
        return "SERVER_ERROR"
