# backend/utils/request_context.py
from typing import Optional
from fastapi import Header


# Caller attribution for the audit trail and created_by columns.
# There is no authentication; clients identify themselves with X-Actor.
def get_actor(x_actor: Optional[str] = Header(None, max_length=100)) -> Optional[str]:
    if x_actor is None:
        return None
    actor = x_actor.strip()
    return actor or None
