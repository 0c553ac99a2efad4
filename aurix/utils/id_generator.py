"""
ID Generator Utility

Generates prefixed identifiers for stored records and workflow sessions.
Record IDs use cryptographically secure random generation.
"""

import secrets
import string
import time


def generate_id(prefix: str, length: int = 10) -> str:
    """
    Generate a prefixed alphanumeric ID.

    Args:
        prefix: The prefix for the ID (e.g., "HST_", "FBK_")
        length: Length of the random part (default 10)

    Returns:
        A string like "HST_7xK9mN2pQ4"
    """
    chars = string.ascii_letters + string.digits  # a-z, A-Z, 0-9 (62 chars)
    random_part = ''.join(secrets.choice(chars) for _ in range(length))
    return f"{prefix}{random_part}"


def generate_history_id() -> str:
    return generate_id("HST_")


def generate_feedback_id() -> str:
    return generate_id("FBK_")


def generate_document_session_id() -> str:
    """Document sessions are keyed by creation time: ``doc_<epoch ms>``."""
    return f"doc_{int(time.time() * 1000)}"
