"""
TaxDesk — Billing Invoices
Tenant invoice list shaped for the billing page.
"""
from portal.config import BILLING_INVOICE_LIMIT, DEFAULT_CURRENCY
from portal.db import tenant_records


def invoice_status(inv: dict) -> str:
    """paid | pending. Stored PAID or a paidAt timestamp both count as paid."""
    if inv.get("status") == "PAID" or inv.get("paidAt"):
        return "paid"
    return "pending"


def format_invoice(inv: dict) -> dict:
    inv_id = str(inv.get("id", ""))
    cents = inv.get("totalCents") or 0
    return {
        "id": inv_id,
        "invoiceNumber": inv.get("number") or "INV-" + inv_id[:8],
        "date": inv.get("createdAt"),
        "amount": cents / 100,
        "currency": inv.get("currency") or DEFAULT_CURRENCY,
        "status": invoice_status(inv),
        "pdfUrl": None,
    }


def list_tenant_invoices(db: dict, tenant_id: str, limit: int = BILLING_INVOICE_LIMIT) -> list:
    """Newest first, capped at `limit`."""
    invoices = sorted(tenant_records(db, "invoices", tenant_id),
                      key=lambda x: x.get("createdAt") or "", reverse=True)
    return [format_invoice(i) for i in invoices[:limit]]
