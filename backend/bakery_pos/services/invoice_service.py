# Overview: Printable receipt built from a settled order (presentation only, never stored).

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Iterable, Optional
from urllib.parse import quote, urlencode

from ..records import CASH, DEBT, TRANSFER, OrderItemRecord, OrderRecord
from ..time_utils import store_tz, to_local

PAYMENT_LABELS = {
    CASH: "Tiền mặt",
    TRANSFER: "Chuyển khoản",
    DEBT: "Ghi nợ",
}


@dataclass(frozen=True)
class ShopInfo:
    name: str
    address: str
    phone: str

    @classmethod
    def from_config(cls, config) -> "ShopInfo":
        return cls(name=config["SHOP_NAME"], address=config["SHOP_ADDRESS"], phone=config["SHOP_PHONE"])


@dataclass(frozen=True)
class BankInfo:
    bank_id: str
    account_no: str
    account_name: str
    template: str = "compact"
    qr_base_url: str = "https://img.vietqr.io/image"

    @classmethod
    def from_config(cls, config) -> "BankInfo":
        return cls(
            bank_id=config["BANK_ID"],
            account_no=config["BANK_ACCOUNT_NO"],
            account_name=config["BANK_ACCOUNT_NAME"],
            template=config["BANK_QR_TEMPLATE"],
            qr_base_url=config["QR_BASE_URL"],
        )


@dataclass(frozen=True)
class InvoiceLine:
    name: str
    quantity: int
    price: int

    @property
    def total(self) -> int:
        return self.price * self.quantity


@dataclass(frozen=True)
class Invoice:
    shop: ShopInfo
    bank: BankInfo
    number: str
    created_at: str
    customer_name: Optional[str]
    lines: tuple[InvoiceLine, ...]
    sub_total: int
    discount_percent: int
    discount_amount: int
    total: int
    payment_method: str
    payment_label: str
    qr_url: str

    def to_dict(self) -> dict:
        return {
            "shop": {"name": self.shop.name, "address": self.shop.address, "phone": self.shop.phone},
            "number": self.number,
            "created_at": self.created_at,
            "customer_name": self.customer_name,
            "lines": [
                {"name": l.name, "quantity": l.quantity, "price": l.price, "total": l.total}
                for l in self.lines
            ],
            "sub_total": self.sub_total,
            "discount_percent": self.discount_percent,
            "discount_amount": self.discount_amount,
            "total": self.total,
            "payment_method": self.payment_method,
            "payment_label": self.payment_label,
            "qr_url": self.qr_url,
        }


def format_vnd(amount: int) -> str:
    """70000 -> '70.000đ'"""
    sign = "-" if amount < 0 else ""
    return f"{sign}{abs(amount):,}".replace(",", ".") + "đ"


def payment_qr_url(bank: BankInfo, amount: int, reference: str) -> str:
    query = urlencode(
        {"amount": amount, "addInfo": reference[:15], "accountName": bank.account_name},
        quote_via=quote,
    )
    return f"{bank.qr_base_url.rstrip('/')}/{bank.bank_id}-{bank.account_no}-{bank.template}.png?{query}"


def build_invoice(
    order: OrderRecord,
    items: Iterable[OrderItemRecord],
    shop: ShopInfo,
    bank: BankInfo,
    customer_name: str | None = None,
    tz: tzinfo | None = None,
) -> Invoice:
    lines = tuple(InvoiceLine(name=i.product_name, quantity=i.quantity, price=i.price) for i in items)
    sub_total = order.sub_total if order.sub_total is not None else sum(l.total for l in lines)
    ref = str(order.id)
    local = to_local(order.created_at, tz or store_tz())
    return Invoice(
        shop=shop,
        bank=bank,
        number=ref[:8],
        created_at=local.strftime("%H:%M %d/%m/%Y"),
        customer_name=customer_name or order.customer_name,
        lines=lines,
        sub_total=sub_total,
        discount_percent=order.discount_percent,
        discount_amount=order.discount_amount,
        total=order.total_amount,
        payment_method=order.payment_method,
        payment_label=PAYMENT_LABELS.get(order.payment_method, order.payment_method),
        qr_url=payment_qr_url(bank, order.total_amount, ref),
    )


def _row(left: str, right: str, width: int) -> str:
    space = width - len(left) - len(right)
    if space < 1:
        return f"{left}\n{right.rjust(width)}"
    return left + " " * space + right


def render_text(invoice: Invoice, width: int = 32) -> str:
    """Monospace receipt for the thermal printer."""
    rule = "-" * width
    out = [
        invoice.shop.name.upper().center(width).rstrip(),
        invoice.shop.address.center(width).rstrip(),
        f"Hotline: {invoice.shop.phone}".center(width).rstrip(),
        rule,
        _row("HĐ:", f"#{invoice.number}", width),
        _row("Ngày:", invoice.created_at, width),
    ]
    if invoice.customer_name:
        out.append(_row("Khách:", invoice.customer_name, width))
    out.append(rule)
    for line in invoice.lines:
        out.append(line.name[:width])
        out.append(_row(f"  x{line.quantity}", format_vnd(line.total), width))
    out.append(rule)
    if invoice.sub_total != invoice.total:
        out.append(_row("Tạm tính:", format_vnd(invoice.sub_total), width))
    if invoice.discount_percent:
        out.append(_row(f"Chiết khấu ({invoice.discount_percent}%):", f"-{format_vnd(invoice.discount_amount)}", width))
    out.append(_row("TỔNG CỘNG:", format_vnd(invoice.total), width))
    out.append(f"({invoice.payment_label})".rjust(width))
    out.append(rule)
    out.append("Quét mã để thanh toán".center(width).rstrip())
    out.append(invoice.qr_url)
    out.append(f"{invoice.bank.bank_id} - {invoice.bank.account_no}".center(width).rstrip())
    out.append(invoice.bank.account_name.center(width).rstrip())
    out.append("Cảm ơn quý khách!".center(width).rstrip())
    out.append("Hẹn gặp lại".center(width).rstrip())
    return "\n".join(out) + "\n"
