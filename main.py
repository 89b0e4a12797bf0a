import logging
import time
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config import get_settings
from database import SessionLocal, engine, wait_for_database
from errors import NotFoundError, ValidationError
from models import TransactionType
from schemas import (
    BudgetIn,
    BudgetOut,
    CategoryIn,
    CategoryOut,
    MonthlySummaryOut,
    TransactionIn,
    TransactionOut,
)
from services import (
    BudgetService,
    CategoryService,
    TransactionService,
    build_summary_service,
)

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Budget Book")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "PUT", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
)


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@app.on_event("startup")
def startup_event():
    wait_for_database(
        engine,
        attempts=settings.db_connect_attempts,
        delay_secs=settings.db_connect_delay_secs,
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} {status_code} {elapsed_ms:.1f}ms"
        )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
):
    messages = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "; ".join(messages)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def _check_month(month: int) -> None:
    if month < 1 or month > 12:
        raise HTTPException(status_code=400, detail="Month must be between 1 and 12")


@app.get("/api/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


@app.get("/api/transactions", response_model=list[TransactionOut])
def list_transactions(
    year: Optional[int] = None,
    month: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    service = TransactionService(db)
    if year is not None and month is not None:
        _check_month(month)
        return service.list_by_month(year, month)
    if start_date is not None and end_date is not None:
        return service.list_by_date_range(start_date, end_date)
    if category_id is not None:
        return service.list_by_category(category_id)
    return service.list_all()


@app.post("/api/transactions", response_model=TransactionOut, status_code=201)
def create_transaction(data: TransactionIn, db: Session = Depends(get_db)):
    return TransactionService(db).create(data)


@app.get("/api/transactions/{transaction_id}", response_model=TransactionOut)
def get_transaction(transaction_id: int, db: Session = Depends(get_db)):
    return TransactionService(db).get(transaction_id)


@app.put("/api/transactions/{transaction_id}", response_model=TransactionOut)
def update_transaction(
    transaction_id: int, data: TransactionIn, db: Session = Depends(get_db)
):
    return TransactionService(db).update(transaction_id, data)


@app.delete("/api/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    TransactionService(db).delete(transaction_id)
    return Response(status_code=204)


@app.get("/api/categories", response_model=list[CategoryOut])
def list_categories(
    type: Optional[TransactionType] = None, db: Session = Depends(get_db)
):
    return CategoryService(db).list_all(type)


@app.post("/api/categories", response_model=CategoryOut, status_code=201)
def create_category(data: CategoryIn, db: Session = Depends(get_db)):
    return CategoryService(db).create(data)


@app.get("/api/categories/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return CategoryService(db).get(category_id)


@app.put("/api/categories/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int, data: CategoryIn, db: Session = Depends(get_db)
):
    return CategoryService(db).update(category_id, data)


@app.delete("/api/categories/{category_id}", status_code=204)
def delete_category(category_id: int, db: Session = Depends(get_db)):
    CategoryService(db).delete(category_id)
    return Response(status_code=204)


@app.get("/api/budgets", response_model=list[BudgetOut])
def list_budgets(
    year: Optional[int] = None,
    month: Optional[int] = None,
    category_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    service = BudgetService(db)
    if year is not None and month is not None:
        _check_month(month)
        if category_id is not None:
            return [service.get_for_category_and_month(category_id, year, month)]
        return service.list_by_month(year, month)
    if category_id is not None:
        raise HTTPException(
            status_code=400, detail="category_id requires both year and month"
        )
    return service.list_all()


@app.post("/api/budgets", response_model=BudgetOut, status_code=201)
def create_budget(data: BudgetIn, db: Session = Depends(get_db)):
    return BudgetService(db).create(data)


@app.get("/api/budgets/{budget_id}", response_model=BudgetOut)
def get_budget(budget_id: int, db: Session = Depends(get_db)):
    return BudgetService(db).get(budget_id)


@app.put("/api/budgets/{budget_id}", response_model=BudgetOut)
def update_budget(budget_id: int, data: BudgetIn, db: Session = Depends(get_db)):
    return BudgetService(db).update(budget_id, data)


@app.delete("/api/budgets/{budget_id}", status_code=204)
def delete_budget(budget_id: int, db: Session = Depends(get_db)):
    BudgetService(db).delete(budget_id)
    return Response(status_code=204)


@app.get("/api/summary/{year}/{month}", response_model=MonthlySummaryOut)
def monthly_summary(year: int, month: int, db: Session = Depends(get_db)):
    _check_month(month)
    summary = build_summary_service(db).monthly_summary(year, month)
    return summary.to_dict()


@app.get("/api/summary/{year}/{month}/categories")
def category_totals(year: int, month: int, db: Session = Depends(get_db)):
    _check_month(month)
    return build_summary_service(db).category_totals(year, month)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.server_port)
