from __future__ import annotations

from dataclasses import dataclass
from typing import Generator

from fastapi import Depends, Header, HTTPException

from stockledger.app.db.models.core_types import Role
from stockledger.app.db.session import SessionLocal


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin


def get_actor(
    user_id: int | None = Header(default=None, alias="X-User-Id"),
    role: str | None = Header(default=None, alias="X-User-Role"),
) -> Actor:
    # Identity is established by the upstream auth gateway
    if user_id is None:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        parsed_role = Role((role or Role.user.value).strip().lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role {role!r}")
    return Actor(user_id=user_id, role=parsed_role)


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return actor
