"""
seodash/routers/billing_router.py
Billing history: the user's payment orders, newest first. Checkout and
payment webhooks belong to the payment backend; this only reads the rows.

Table: payment_orders
  { id, user_id, package_id, amount, currency, payment_method, status,
    transaction_id }
"""
from fastapi import APIRouter, Depends

from ..utils import store
from ..utils.auth import require_session

router = APIRouter(prefix="/billing", tags=["Billing"])

PAYMENT_METHODS = {"momo": "MoMo", "vnpay": "VNPay", "paypal": "PayPal"}


@router.get("/history")
async def billing_history(current_user: dict = Depends(require_session)):
    orders = await store.find("payment_orders", {"user_id": current_user["sub"]}, sort="created_at")
    for order in orders:
        method = order.get("payment_method") or ""
        order["payment_method_name"] = PAYMENT_METHODS.get(method, method)
        order["reference"] = "#" + order["id"][:8]
    total_paid = sum(o.get("amount") or 0 for o in orders if o.get("status") == "completed")
    return {"total": len(orders), "total_paid": total_paid, "orders": orders}
