"""
Email verification code storage
"""

from datetime import datetime, timedelta
from typing import Dict
import threading
from ..core.logging import get_logger

logger = get_logger(__name__)

# In-memory storage for verification codes
# Format: {email: {"code": str, "expires_at": datetime, "attempts": int}}
_verification_codes: Dict[str, Dict] = {}
_lock = threading.Lock()
CODE_EXPIRY_MINUTES = 10
MAX_ATTEMPTS = 5


def store_verification_code(email: str, code: str) -> None:
    """Store verification code with expiration, replacing any earlier code"""
    with _lock:
        _verification_codes[email.lower()] = {
            "code": code,
            "expires_at": datetime.utcnow() + timedelta(minutes=CODE_EXPIRY_MINUTES),
            "attempts": 0
        }
        logger.info(f"Stored verification code for {email}")


def verify_code(email: str, code: str) -> bool:
    """
    Check a code for the given email. A correct code is consumed.

    Returns:
        True if code is valid, False otherwise
    """
    email_lower = email.lower()

    with _lock:
        entry = _verification_codes.get(email_lower)
        if entry is None:
            logger.warning(f"Verification code not found for {email}")
            return False

        if datetime.utcnow() > entry["expires_at"]:
            logger.warning(f"Verification code expired for {email}")
            del _verification_codes[email_lower]
            return False

        if entry["attempts"] >= MAX_ATTEMPTS:
            logger.warning(f"Max verification attempts reached for {email}")
            del _verification_codes[email_lower]
            return False

        entry["attempts"] += 1

        if entry["code"] != code:
            logger.warning(f"Invalid verification code for {email} (attempt {entry['attempts']})")
            return False

        del _verification_codes[email_lower]
        logger.info(f"Verification code accepted for {email}")
        return True


def clear_verification_codes() -> None:
    with _lock:
        _verification_codes.clear()
