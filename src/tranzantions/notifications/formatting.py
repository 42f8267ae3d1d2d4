"""Alert email composition.

All status-dependent wording lives in ``STATUS_PRESENTATION``; the module
refuses to import if a ``TransactionStatus`` member is missing from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import TYPE_CHECKING

from tranzantions.notifications.events import TransactionStatus, TransactionType

if TYPE_CHECKING:
    from datetime import datetime

    from tranzantions.notifications.events import TransactionEvent

_DISPLAY_DIGITS = 6


@dataclass(frozen=True)
class StatusPresentation:
    """How a status is rendered in an alert."""

    label: str
    color: str
    message: str


STATUS_PRESENTATION: dict[TransactionStatus, StatusPresentation] = {
    TransactionStatus.PENDING: StatusPresentation(
        label="Pending",
        color="#f39c12",
        message="This transaction has been submitted and is waiting to be included in a block.",
    ),
    TransactionStatus.PROCESSING: StatusPresentation(
        label="Processing",
        color="#3498db",
        message="This transaction is being processed by the network.",
    ),
    TransactionStatus.CONFIRMED: StatusPresentation(
        label="Confirmed",
        color="#2ecc71",
        message="This transaction has been confirmed on-chain.",
    ),
    TransactionStatus.FAILED: StatusPresentation(
        label="Failed",
        color="#e74c3c",
        message="This transaction failed. No funds were transferred.",
    ),
    TransactionStatus.UNKNOWN: StatusPresentation(
        label="Unknown",
        color="#7f8c8d",
        message="The status of this transaction could not be determined.",
    ),
}

_missing = set(TransactionStatus) - STATUS_PRESENTATION.keys()
if _missing:
    raise RuntimeError(f"STATUS_PRESENTATION missing statuses: {sorted(_missing)}")

_DIRECTION_COLOR = {
    TransactionType.SENT: "#ff6b6b",
    TransactionType.RECEIVED: "#4ecdc4",
}


@dataclass(frozen=True)
class EmailContent:
    """A composed message ready for a transport."""

    to: str
    subject: str
    text: str
    html: str


def format_amount(value: int, decimals: int = 18) -> str:
    """Render a smallest-unit integer as a 6-place decimal string.

    >>> format_amount(10**18)
    '1.000000'
    """
    # Integer arithmetic keeps arbitrarily large values exact.
    unit = 10**decimals
    scaled = (value * 10**_DISPLAY_DIGITS * 2 + unit) // (2 * unit)
    whole, frac = divmod(scaled, 10**_DISPLAY_DIGITS)
    return f"{whole}.{frac:0{_DISPLAY_DIGITS}d}"


def format_timestamp(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def compose_transaction_alert(
    to: str,
    event: TransactionEvent,
    direction: TransactionType,
    *,
    currency_symbol: str = "ETH",
    decimals: int = 18,
    explorer_tx_url: str = "",
) -> EmailContent:
    """Build the alert email for one transaction status observation."""
    presentation = STATUS_PRESENTATION[event.status]
    verb = "Sent" if direction is TransactionType.SENT else "Received"
    amount = format_amount(event.value, decimals)
    to_address = event.to_address or "Contract Creation"
    block = str(event.block_number) if event.block_number is not None else "Pending"
    when = format_timestamp(event.timestamp)
    link = f"{explorer_tx_url.rstrip('/')}/{event.hash}" if explorer_tx_url else ""

    subject = f"Transaction Alert: {verb} {amount} {currency_symbol} ({presentation.label})"

    lines = [
        f"Transaction {verb} - {presentation.label}",
        presentation.message,
        "",
        f"Type: {verb}",
        f"Amount: {amount} {currency_symbol}",
        f"Status: {presentation.label}",
        f"Transaction Hash: {event.hash}",
        f"From: {event.from_address}",
        f"To: {to_address}",
        f"Block Number: {block}",
        f"Time: {when}",
    ]
    if link:
        lines.append(f"View transaction: {link}")
    lines += ["", "If you did not expect this transaction, please secure your wallet immediately."]

    link_html = (
        f'<p><a href="{escape(link)}" style="display: inline-block; background-color: #3498db; '
        'color: white; padding: 10px 15px; text-decoration: none; border-radius: 4px;">'
        "View Transaction on Block Explorer</a></p>"
        if link
        else ""
    )
    html = f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; \
border: 1px solid #eee; border-radius: 5px;">
  <h2 style="color: {_DIRECTION_COLOR[direction]};">Transaction {verb}</h2>
  <p style="color: {presentation.color}; font-weight: bold;">Status: {presentation.label}</p>
  <p>{escape(presentation.message)}</p>
  <div style="background-color: #f5f5f5; padding: 15px; border-radius: 4px; margin: 15px 0;">
    <p><strong>Type:</strong> {verb}</p>
    <p><strong>Amount:</strong> {amount} {escape(currency_symbol)}</p>
    <p><strong>Transaction Hash:</strong> <span style="font-family: monospace;">{escape(event.hash)}</span></p>
    <p><strong>From:</strong> <span style="font-family: monospace;">{escape(event.from_address)}</span></p>
    <p><strong>To:</strong> <span style="font-family: monospace;">{escape(to_address)}</span></p>
    <p><strong>Block Number:</strong> {block}</p>
    <p><strong>Time:</strong> {escape(when)}</p>
  </div>
  {link_html}
  <p>If you did not expect this transaction, please secure your wallet immediately.</p>
  <p>Best regards,<br>The TranzAntions Team</p>
</div>
"""
    return EmailContent(to=to, subject=subject, text="\n".join(lines), html=html)


def compose_welcome(to: str, wallet_address: str) -> EmailContent:
    """Build the confirmation email sent after a successful registration."""
    subject = "Welcome to TranzAntions - Transaction Monitoring Service"
    text = (
        "Welcome to TranzAntions!\n\n"
        "We will now monitor the following wallet address for transactions:\n"
        f"{wallet_address}\n\n"
        "You will receive email notifications whenever there is activity on this wallet."
    )
    html = f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; \
border: 1px solid #eee; border-radius: 5px;">
  <h2 style="color: #333;">Welcome to TranzAntions!</h2>
  <p>Thank you for registering with our transaction monitoring service.</p>
  <p>We will now monitor the following wallet address for transactions:</p>
  <p style="background-color: #f5f5f5; padding: 10px; border-radius: 4px; \
font-family: monospace;">{escape(wallet_address)}</p>
  <p>You will receive email notifications whenever there is activity on this wallet.</p>
  <p>Best regards,<br>The TranzAntions Team</p>
</div>
"""
    return EmailContent(to=to, subject=subject, text=text, html=html)
