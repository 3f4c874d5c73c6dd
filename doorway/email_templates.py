"""
HTML email templates
"""

from html import escape
from typing import Optional

from .invoice import InvoiceTotals

THEME = {
    "primary": "#D4AF37",
    "background": "#f9fafb",
    "card_bg": "#ffffff",
    "text_primary": "#111827",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
}


def _money(amount) -> str:
    return f"${amount:,.2f}"


def invoice_email_template(
    business_name: str,
    business_phone: str,
    client_name: str,
    service: str,
    address: str,
    invoice_number: str,
    invoice_date: str,
    totals: InvoiceTotals,
    notes: Optional[str] = None,
    payment_url: Optional[str] = None,
) -> str:
    """Invoice sent to the client when an admin emails it from the dashboard."""
    discount_row = ""
    if totals.discount:
        discount_row = f"""
        <tr><td style="padding:4px 0;color:{THEME['text_muted']}">Discount</td>
            <td style="padding:4px 0;text-align:right">-{_money(totals.discount)}</td></tr>"""

    notes_section = ""
    if notes:
        notes_section = f"""
      <p style="margin-top:24px;color:{THEME['text_muted']};font-size:14px">
        <strong>Notes:</strong> {escape(notes)}
      </p>"""

    pay_section = ""
    if payment_url:
        pay_section = f"""
      <p style="text-align:center;margin-top:32px">
        <a href="{escape(payment_url, quote=True)}"
           style="background:{THEME['primary']};color:#000;padding:14px 32px;border-radius:8px;
                  font-weight:700;text-decoration:none">Pay Invoice</a>
      </p>"""

    return f"""<!DOCTYPE html>
<html>
  <body style="margin:0;background:{THEME['background']};font-family:Helvetica,Arial,sans-serif">
    <div style="max-width:600px;margin:32px auto;background:{THEME['card_bg']};
                border:1px solid {THEME['border']};border-radius:16px;padding:40px">
      <h1 style="margin:0;font-size:28px;color:{THEME['text_primary']}">{escape(business_name)}</h1>
      <p style="margin:4px 0 24px;color:{THEME['text_muted']};font-size:14px">{escape(business_phone)}</p>

      <p style="color:{THEME['text_primary']}">Hi {escape(client_name)},</p>
      <p style="color:{THEME['text_primary']}">
        Here is your invoice for the recent {escape(service)} service at {escape(address)}.
      </p>

      <p style="color:{THEME['text_muted']};font-size:14px">
        Invoice #: {escape(invoice_number)}<br/>Date: {escape(invoice_date)}
      </p>

      <table style="width:100%;border-top:1px solid {THEME['border']};margin-top:16px;font-size:15px">
        <tr><td style="padding:4px 0;color:{THEME['text_muted']}">{escape(service)}</td>
            <td style="padding:4px 0;text-align:right">{_money(totals.price)}</td></tr>{discount_row}
        <tr><td style="padding:4px 0;color:{THEME['text_muted']}">Subtotal</td>
            <td style="padding:4px 0;text-align:right">{_money(totals.subtotal)}</td></tr>
        <tr><td style="padding:4px 0;color:{THEME['text_muted']}">Tax ({totals.tax_rate.normalize():f}%)</td>
            <td style="padding:4px 0;text-align:right">{_money(totals.tax)}</td></tr>
        <tr><td style="padding:12px 0;font-weight:700;font-size:18px">Total Due</td>
            <td style="padding:12px 0;text-align:right;font-weight:700;font-size:18px">{_money(totals.total)}</td></tr>
      </table>{notes_section}{pay_section}

      <p style="margin-top:32px;color:{THEME['text_primary']}">Thank you for your business!<br/>{escape(business_name)}</p>
    </div>
  </body>
</html>
"""
