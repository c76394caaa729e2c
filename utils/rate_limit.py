"""Shared slowapi limiter applied to the API routes."""
import os
from dotenv import load_dotenv
from slowapi import Limiter
from slowapi.util import get_remote_address

load_dotenv() # Searches current dir and parents

DEFAULT_RATE_LIMIT = "60/minute"
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

def current_rate_limit() -> str:
    """Limit per client address, read on every request so RATE_LIMIT can change at runtime."""
    return os.getenv("RATE_LIMIT", DEFAULT_RATE_LIMIT)

# In-memory storage; limits are counted per route and client address
limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)
