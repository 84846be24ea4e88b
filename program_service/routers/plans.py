from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..dependencies import get_db
from ..schemas.program import PlanResponse
from ..services import plan_store

router = APIRouter(prefix="/plans", tags=["Plans"])


@router.get("/users/{user_id}", response_model=list[PlanResponse])
def list_user_plans(user_id: str, db: Session = Depends(get_db)):
    return plan_store.get_user_plans(db, user_id)


@router.get("/users/{user_id}/active", response_model=PlanResponse)
def get_active_plan(user_id: str, db: Session = Depends(get_db)):
    plan = plan_store.get_active_plan(db, user_id)
    if plan is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active plan")
    return plan
