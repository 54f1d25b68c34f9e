from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional
import decimal


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    SYSTEM = "system"


def json_safe(obj):
    if isinstance(obj, dict):
        return {k: json_safe(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [json_safe(v) for v in obj]
    elif isinstance(obj, decimal.Decimal):
        return float(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Enum):
        return obj.value
    elif hasattr(obj, "to_dict"):
        return json_safe(obj.to_dict())
    else:
        return obj


def standard_response(
    success: bool,
    data: Any = None,
    error: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        "success": success,
        "data": json_safe(data),
        "error": error
    }


def success_response(data: Any = None) -> Dict[str, Any]:
    return standard_response(True, data=data)


def failure_response(
    category: ErrorCategory,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return standard_response(False, error={
        "category": category.value,
        "code": code,
        "message": message,
        "details": json_safe(details or {}),
    })


def validation_failure(code: str, message: str, **details) -> Dict[str, Any]:
    return failure_response(ErrorCategory.VALIDATION, code, message, details)


def business_rule_failure(code: str, message: str, **details) -> Dict[str, Any]:
    return failure_response(ErrorCategory.BUSINESS_RULE, code, message, details)


def system_failure(code: str, message: str, **details) -> Dict[str, Any]:
    return failure_response(ErrorCategory.SYSTEM, code, message, details)
