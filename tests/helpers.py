from datetime import timedelta

from bodyid.helpers.time import utcnow


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def tomorrow() -> str:
    return (utcnow() + timedelta(days=1)).isoformat()
