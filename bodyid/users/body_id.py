# bodyid/users/body_id.py
import secrets
import string
from datetime import datetime
from typing import Optional

from bodyid.helpers.time import utcnow

BODY_ID_ALPHABET = string.ascii_uppercase + string.digits
BODY_ID_SUFFIX_LENGTH = 4


def generate_body_id(now: Optional[datetime] = None) -> str:
    """Public patient identifier: BID-<yyyymmdd>-<4 random base36 chars>."""
    date = (now or utcnow()).strftime("%Y%m%d")
    suffix = "".join(secrets.choice(BODY_ID_ALPHABET) for _ in range(BODY_ID_SUFFIX_LENGTH))
    return f"BID-{date}-{suffix}"
