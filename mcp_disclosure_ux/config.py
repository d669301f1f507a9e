"""
Configuration

Environment-variable settings shared by the servers and the CLI.
"""
import os
from typing import Optional

DEFAULT_DATA_FILE = "/var/idio-mcp-cache/disclosures/data.json"
DEFAULT_ADMIN_USER = "PIF_SubmitIQ"
DEFAULT_FIRST_YEAR = 2025
DEFAULT_LAST_YEAR = 2027
DEFAULT_REPORT_DIR = "./reports"
DEFAULT_PORT = 5002


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def data_file() -> str:
    return os.getenv("DISCLOSURE_DATA_FILE", DEFAULT_DATA_FILE)


def admin_user() -> str:
    return os.getenv("DISCLOSURE_ADMIN_USER", DEFAULT_ADMIN_USER)


def company_users() -> Optional[list[str]]:
    """Configured company users, or None to discover them from the store"""
    raw = os.getenv("DISCLOSURE_COMPANY_USERS", "")
    users = [user.strip() for user in raw.split(",") if user.strip()]
    return users or None


def year_range() -> tuple[int, int]:
    first = _int_env("DISCLOSURE_FIRST_YEAR", DEFAULT_FIRST_YEAR)
    last = _int_env("DISCLOSURE_LAST_YEAR", DEFAULT_LAST_YEAR)
    if last < first:
        raise ValueError(f"DISCLOSURE_LAST_YEAR ({last}) is before DISCLOSURE_FIRST_YEAR ({first})")
    return first, last


def report_dir() -> str:
    return os.getenv("DISCLOSURE_REPORT_DIR", DEFAULT_REPORT_DIR)


def submission_api_url() -> Optional[str]:
    return os.getenv("SUBMISSION_API_URL") or None


def submission_api_token() -> Optional[str]:
    return os.getenv("SUBMISSION_API_TOKEN") or None


def port() -> int:
    return _int_env("PORT", DEFAULT_PORT)
