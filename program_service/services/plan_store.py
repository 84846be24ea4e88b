"""Persistence of generated programs.

A user has at most one active plan. ``create_plan`` keeps that true by
deactivating the previous active plans and inserting the new one inside a
single SERIALIZABLE transaction; there is no schema constraint backing it.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..models import Plan

logger = structlog.get_logger(__name__)


def create_plan(
    db: Session,
    *,
    user_id: str,
    name: str,
    workout_plan: dict[str, Any],
    diet_plan: dict[str, Any],
    is_active: bool = True,
) -> int:
    # isolation level only applies when the session has not touched the connection yet
    db.connection(execution_options={"isolation_level": "SERIALIZABLE"})
    try:
        result = db.execute(
            update(Plan)
            .where(Plan.user_id == user_id, Plan.is_active.is_(True))
            .values(is_active=False)
        )
        plan = Plan(
            user_id=user_id,
            name=name,
            workout_plan=workout_plan,
            diet_plan=diet_plan,
            is_active=is_active,
        )
        db.add(plan)
        db.flush()
        plan_id = plan.id
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("plan_created", user_id=user_id, plan_id=plan_id, deactivated=result.rowcount)
    return plan_id


def get_user_plans(db: Session, user_id: str) -> list[Plan]:
    stmt = select(Plan).where(Plan.user_id == user_id).order_by(Plan.created_at.desc(), Plan.id.desc())
    return list(db.execute(stmt).scalars().all())


def get_active_plan(db: Session, user_id: str) -> Plan | None:
    stmt = (
        select(Plan)
        .where(Plan.user_id == user_id, Plan.is_active.is_(True))
        .order_by(Plan.created_at.desc(), Plan.id.desc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()
