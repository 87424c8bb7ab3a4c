"""HTML shown to the payer after Flow redirects the browser back."""

from html import escape
from typing import Any


CANCEL_PAGE = """
<h1>Payment cancelled</h1>
<p>The payment was cancelled. You can try again whenever you like.</p>
"""


def success_page(status: dict[str, Any]) -> str:
    """Summary of a completed payment: Flow order, status code and amount."""

    def field(name: str) -> str:
        return escape(str(status.get(name, "")))

    return f"""
<h1>Payment successful</h1>
<p>Flow order: {field("flowOrder")}</p>
<p>Status: {field("status")}</p>
<p>Amount: {field("amount")}</p>
<p>Thank you for your purchase.</p>
"""
