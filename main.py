import logging
from dataclasses import asdict
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config import get_settings
from database import SessionLocal
from errors import TrackerError
from models import GoalStatus
from schemas import GoalAmountIn, GoalIn, GoalOut, GoalUpdate, TransactionOut
from services import MetricsService, SavingsGoalService, get_current_user_id

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Savings Tracker")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def current_user(x_user_id: Optional[int] = Header(default=None)) -> int:
    # The authenticating proxy in front of this app sets X-User-Id.
    return x_user_id if x_user_id is not None else get_current_user_id()


def current_time() -> datetime:
    return datetime.now(ZoneInfo(get_settings().timezone))


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    level = logging.WARNING if exc.http_status >= 500 else logging.INFO
    logger.log(
        level,
        f"request_failed: path={request.url.path} error={exc.__class__.__name__} "
        f"status={exc.http_status} detail={exc.message}",
    )
    return JSONResponse(status_code=exc.http_status, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"request_invalid: path={request.url.path} errors={exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request data",
            "details": [
                {
                    "field": ".".join(str(loc) for loc in err["loc"]),
                    "message": err["msg"],
                }
                for err in exc.errors()
            ],
        },
    )


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/expenses/summary")
def api_expense_summary(
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user),
    now: datetime = Depends(current_time),
):
    return asdict(MetricsService(db, user_id).expense_summary(now))


@app.get("/api/expenses/categories")
def api_category_breakdown(
    db: Session = Depends(get_db), user_id: int = Depends(current_user)
):
    return [asdict(row) for row in MetricsService(db, user_id).category_breakdown()]


@app.get("/api/expenses/recent", response_model=list[TransactionOut])
def api_recent_expenses(
    db: Session = Depends(get_db), user_id: int = Depends(current_user)
):
    return MetricsService(db, user_id).recent_expenses()


@app.get("/api/savings", response_model=list[GoalOut])
def api_list_goals(
    status: Optional[GoalStatus] = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user),
):
    goals = SavingsGoalService(db, user_id).list_all(status)
    return [GoalOut.from_goal(goal) for goal in goals]


@app.get("/api/savings/summary")
def api_goal_summary(
    db: Session = Depends(get_db), user_id: int = Depends(current_user)
):
    return asdict(MetricsService(db, user_id).goal_summary())


@app.get("/api/savings/{goal_id}", response_model=GoalOut)
def api_get_goal(
    goal_id: int, db: Session = Depends(get_db), user_id: int = Depends(current_user)
):
    return GoalOut.from_goal(SavingsGoalService(db, user_id).get(goal_id))


@app.post("/api/savings", response_model=GoalOut, status_code=201)
def api_create_goal(
    data: GoalIn,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user),
    now: datetime = Depends(current_time),
):
    return GoalOut.from_goal(SavingsGoalService(db, user_id).create(data, now=now))


@app.put("/api/savings/{goal_id}", response_model=GoalOut)
def api_update_goal(
    goal_id: int,
    data: GoalUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user),
    now: datetime = Depends(current_time),
):
    goal = SavingsGoalService(db, user_id).update(goal_id, data, now=now)
    return GoalOut.from_goal(goal)


@app.patch("/api/savings/{goal_id}/amount", response_model=GoalOut)
def api_update_goal_amount(
    goal_id: int,
    data: GoalAmountIn,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user),
    now: datetime = Depends(current_time),
):
    goal = SavingsGoalService(db, user_id).update_amount(
        goal_id, data.amount_cents, now=now, expected_version=data.version
    )
    return GoalOut.from_goal(goal)


@app.delete("/api/savings/{goal_id}")
def api_delete_goal(
    goal_id: int, db: Session = Depends(get_db), user_id: int = Depends(current_user)
):
    SavingsGoalService(db, user_id).delete(goal_id)
    return {"message": "Savings goal deleted successfully"}


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
