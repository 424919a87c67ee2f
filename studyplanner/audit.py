import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from uuid import UUID
from .logging import get_logger

# Create dedicated audit logger
audit_logger = get_logger("audit")


class AuthEventType:
    """Constants for authentication event types"""
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"
    REGISTRATION_SUCCESS = "registration_success"
    REGISTRATION_FAILURE = "registration_failure"
    LOGOUT = "logout"
    LOGOUT_ALL = "logout_all"
    TOKEN_REFRESH_SUCCESS = "token_refresh_success"
    TOKEN_REFRESH_FAILURE = "token_refresh_failure"
    REFRESH_TOKEN_REUSE_DETECTED = "refresh_token_reuse_detected"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"


# Events that signal a possible compromise rather than a routine failure
SECURITY_EVENTS = {AuthEventType.REFRESH_TOKEN_REUSE_DETECTED}


def log_auth_event(
    event_type: str,
    user_id: Optional[UUID] = None,
    email: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    success: bool = True
):
    """
    Log authentication events with structured data for security monitoring.

    Args:
        event_type: Type of authentication event (use AuthEventType constants)
        user_id: UUID of the user (if available)
        email: Email of the user (if available)
        ip_address: IP address of the request
        user_agent: User agent string from the request
        details: Additional details specific to the event
        success: Whether the event was successful or not
    """
    event_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "success": success,
        "security_event": event_type in SECURITY_EVENTS,
        "user_id": str(user_id) if user_id else None,
        "email": email,
        "ip_address": ip_address,
        "user_agent": user_agent,
        "details": details or {}
    }

    # Remove None values for cleaner logs
    event_data = {k: v for k, v in event_data.items() if v is not None}

    if event_type in SECURITY_EVENTS:
        log_level = logging.CRITICAL
    else:
        # INFO for successful events, WARNING for failures
        log_level = logging.INFO if success else logging.WARNING

    audit_logger.log(
        log_level,
        f"AUTH_EVENT: {event_type}",
        extra={
            "audit_event": True,
            "event_data": json.dumps(event_data, default=str)
        }
    )


def extract_request_info(request) -> Dict[str, Optional[str]]:
    """Extract IP address and user agent from request for audit logging"""
    client = getattr(request, "client", None)
    headers = getattr(request, "headers", None)
    return {
        "ip_address": client.host if client else None,
        "user_agent": headers.get("user-agent") if headers is not None else None
    }
