import logging
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, File, Header, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from advisor import AdvisorService, tip_of_the_day
from database import SessionLocal, init_db
from formatting import format_currency, format_date, format_percent
from metrics import DayCell
from periods import MonthView, resolve_month, shift_month
from recurrence import local_today
from schemas import (
    AccountIn,
    CategoryIn,
    LoginIn,
    PasscodeChangeIn,
    Saving,
    SavingIn,
    Transaction,
    TransactionIn,
    WishlistItem,
    WishlistItemIn,
)
from services import (
    AccountService,
    BackupService,
    CategoryService,
    MetricsService,
    SavingsService,
    TransactionService,
    WishlistService,
)
from storage import LocalStore


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Finanza")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> LocalStore:
    return LocalStore(db)


def require_session(
    store: LocalStore = Depends(get_store),
    x_session_token: Optional[str] = Header(default=None),
) -> LocalStore:
    if not AccountService(store).check_session(x_session_token):
        raise HTTPException(status_code=401, detail="Session expired or invalid")
    return store


@app.on_event("startup")
def startup_event():
    init_db()


def month_from_query(year: Optional[int], month: Optional[int]) -> MonthView:
    try:
        return resolve_month(year, month, today=local_today())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def not_found_or_bad_request(exc: ValueError) -> HTTPException:
    status = 404 if "not found" in str(exc).lower() else 400
    return HTTPException(status_code=status, detail=str(exc))


def transaction_payload(txn: Transaction) -> dict[str, object]:
    payload = txn.model_dump(mode="json")
    payload["display_amount"] = format_currency(txn.type.sign * txn.amount_cents)
    payload["display_date"] = format_date(txn.date)
    return payload


def day_payload(cell: DayCell) -> dict[str, object]:
    return {
        "date": cell.day.isoformat(),
        "net_cents": cell.net,
        "running_total_cents": cell.running_total,
        "transactions": [t.id for t in cell.transactions],
    }


@app.post("/api/account", status_code=201)
def create_account(data: AccountIn, store: LocalStore = Depends(get_store)):
    try:
        token = AccountService(store).register(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"token": token, "username": data.username}


@app.post("/api/session")
def login(data: LoginIn, store: LocalStore = Depends(get_store)):
    try:
        token = AccountService(store).login(data.passcode)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return {"token": token}


@app.put("/api/account/passcode")
def change_passcode(data: PasscodeChangeIn, store: LocalStore = Depends(require_session)):
    try:
        token = AccountService(store).change_passcode(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"token": token}


@app.delete("/api/data")
def reset_data(store: LocalStore = Depends(require_session)):
    AccountService(store).reset()
    return {"status": "ok"}


@app.get("/api/tip")
def financial_tip():
    return {"tip": tip_of_the_day(local_today())}


@app.get("/api/transactions")
def list_transactions(
    filter_date: Optional[date] = Query(default=None, alias="date"),
    store: LocalStore = Depends(require_session),
):
    items = TransactionService(store).extract(filter_date=filter_date, today=local_today())
    return {"items": [transaction_payload(t) for t in items]}


@app.post("/api/transactions", status_code=201)
def create_transaction(data: TransactionIn, store: LocalStore = Depends(require_session)):
    txn = TransactionService(store).create(data)
    return transaction_payload(txn)


@app.get("/api/transactions/{transaction_id}")
def get_transaction(transaction_id: str, store: LocalStore = Depends(require_session)):
    try:
        txn = TransactionService(store).get(transaction_id)
    except ValueError as exc:
        raise not_found_or_bad_request(exc) from exc
    return transaction_payload(txn)


@app.put("/api/transactions/{transaction_id}")
def update_transaction(
    transaction_id: str,
    data: TransactionIn,
    store: LocalStore = Depends(require_session),
):
    try:
        txn = TransactionService(store).update(transaction_id, data)
    except ValueError as exc:
        raise not_found_or_bad_request(exc) from exc
    return transaction_payload(txn)


@app.delete("/api/transactions/{transaction_id}")
def delete_transaction(transaction_id: str, store: LocalStore = Depends(require_session)):
    try:
        TransactionService(store).delete(transaction_id)
    except ValueError as exc:
        raise not_found_or_bad_request(exc) from exc
    return {"status": "ok"}


@app.get("/api/fixed")
def list_fixed_costs(store: LocalStore = Depends(require_session)):
    items = TransactionService(store).fixed_costs()
    return {"items": [transaction_payload(t) for t in items]}


@app.get("/api/categories")
def list_categories(store: LocalStore = Depends(require_session)):
    return {"items": CategoryService(store).list_all()}


@app.post("/api/categories", status_code=201)
def add_category(data: CategoryIn, store: LocalStore = Depends(require_session)):
    service = CategoryService(store)
    similar = service.similar(data.name)
    try:
        name = service.add(data.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"name": name, "similar": similar}


@app.get("/api/savings")
def list_savings(store: LocalStore = Depends(require_session)):
    service = SavingsService(store)
    items: list[Saving] = service.list_all()
    return {
        "items": [s.model_dump(mode="json") for s in items],
        "total_cents": service.total(),
    }


@app.post("/api/savings", status_code=201)
def create_saving(data: SavingIn, store: LocalStore = Depends(require_session)):
    return SavingsService(store).create(data).model_dump(mode="json")


@app.delete("/api/savings/{saving_id}")
def delete_saving(saving_id: str, store: LocalStore = Depends(require_session)):
    try:
        SavingsService(store).delete(saving_id)
    except ValueError as exc:
        raise not_found_or_bad_request(exc) from exc
    return {"status": "ok"}


@app.get("/api/wishlist")
def list_wishlist(store: LocalStore = Depends(require_session)):
    items: list[WishlistItem] = WishlistService(store).list_all()
    return {"items": [i.model_dump(mode="json") for i in items]}


@app.post("/api/wishlist", status_code=201)
def create_wishlist_item(data: WishlistItemIn, store: LocalStore = Depends(require_session)):
    return WishlistService(store).create(data).model_dump(mode="json")


@app.delete("/api/wishlist/{item_id}")
def delete_wishlist_item(item_id: str, store: LocalStore = Depends(require_session)):
    try:
        WishlistService(store).delete(item_id)
    except ValueError as exc:
        raise not_found_or_bad_request(exc) from exc
    return {"status": "ok"}


@app.get("/api/wishlist/progress")
def wishlist_progress(store: LocalStore = Depends(require_session)):
    rows = WishlistService(store).progress(local_today())
    return {
        "items": [
            {
                "item": row["item"].model_dump(mode="json"),
                "saved_cents": row["saved_cents"],
                "percent": row["percent"],
                "months_left": row["months_left"],
            }
            for row in rows
        ]
    }


@app.get("/api/summary")
def month_summary(
    year: Optional[int] = None,
    month: Optional[int] = None,
    store: LocalStore = Depends(require_session),
):
    view = month_from_query(year, month)
    stats = MetricsService(store).stats(view.year, view.month, local_today())
    stats["display"] = {
        "on_hand": format_currency(stats["on_hand"]),
        "projected_total": format_currency(stats["projected_total"]),
        "forecast_total": format_currency(stats["forecast_total"]),
        "future_expenses": format_currency(stats["future_expenses"]),
        "health_score": format_percent(stats["health_score"]),
    }
    return stats


@app.get("/api/category-breakdown")
def category_breakdown(
    year: Optional[int] = None,
    month: Optional[int] = None,
    store: LocalStore = Depends(require_session),
):
    view = month_from_query(year, month)
    rows = MetricsService(store).category_breakdown(view.year, view.month, local_today())
    return {"items": rows}


@app.get("/api/calendar")
def month_calendar(
    year: Optional[int] = None,
    month: Optional[int] = None,
    store: LocalStore = Depends(require_session),
):
    view = month_from_query(year, month)
    offset, cells = MetricsService(store).calendar(view.year, view.month)
    previous_view = shift_month(view, -1)
    next_view = shift_month(view, 1)
    return {
        "year": view.year,
        "month": view.month,
        "first_weekday": offset,
        "days": [day_payload(cell) for cell in cells],
        "previous": {"year": previous_view.year, "month": previous_view.month},
        "next": {"year": next_view.year, "month": next_view.month},
    }


@app.get("/api/advice")
def advice(
    year: Optional[int] = None,
    month: Optional[int] = None,
    store: LocalStore = Depends(require_session),
):
    view = month_from_query(year, month)
    summary, snapshot = MetricsService(store).summary(view.year, view.month, local_today())
    return {"advice": AdvisorService().advise(summary, snapshot)}


@app.get("/api/backup")
def export_backup(store: LocalStore = Depends(require_session)):
    return BackupService(store).export()


@app.post("/api/backup")
async def import_backup(
    file: UploadFile = File(...), store: LocalStore = Depends(require_session)
):
    content = await file.read()
    try:
        backup = BackupService(store).import_json(content)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "transactions": len(backup.transactions),
        "categories": len(backup.categories),
        "savings": len(backup.savings),
        "wishlist": len(backup.wishlist),
    }


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
