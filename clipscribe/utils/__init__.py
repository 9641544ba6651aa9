from .validators import validate_url, validate_callback_url
from .helpers import generate_job_id, utc_now_iso, truncate

__all__ = [
    "validate_url",
    "validate_callback_url",
    "generate_job_id",
    "utc_now_iso",
    "truncate"
]
