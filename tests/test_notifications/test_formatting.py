"""Tests for alert email composition."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from tranzantions.notifications.events import TransactionEvent, TransactionStatus, TransactionType
from tranzantions.notifications.formatting import (
    STATUS_PRESENTATION,
    compose_transaction_alert,
    compose_welcome,
    format_amount,
)

WALLET = "0xAbCdEf0123456789abcdef0123456789ABCDEF01"


class TestFormatAmount:
    @pytest.mark.parametrize(
        ("value", "decimals", "expected"),
        [
            (10**18, 18, "1.000000"),
            (0, 18, "0.000000"),
            (1, 18, "0.000000"),
            (500_000_000_000, 18, "0.000001"),
            (499_999_999_999, 18, "0.000000"),
            (1_234_567_890_000_000_000, 18, "1.234568"),
            (10**30, 18, "1000000000000.000000"),
            (1_500_000, 6, "1.500000"),
            (7, 0, "7.000000"),
        ],
    )
    def test_format(self, value: int, decimals: int, expected: str) -> None:
        assert format_amount(value, decimals) == expected


class TestStatusPresentation:
    def test_every_status_has_presentation(self) -> None:
        assert set(STATUS_PRESENTATION) == set(TransactionStatus)

    def test_labels_unique(self) -> None:
        labels = [p.label for p in STATUS_PRESENTATION.values()]
        assert len(labels) == len(set(labels))


class TestComposeTransactionAlert:
    def _event(self, **overrides) -> TransactionEvent:
        fields = {
            "hash": "0xfeed",
            "from_address": WALLET,
            "to_address": "0x2222222222222222222222222222222222222222",
            "value": 2 * 10**18,
            "status": TransactionStatus.CONFIRMED,
            "block_number": 99,
            "timestamp": datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        }
        fields.update(overrides)
        return TransactionEvent(**fields)

    def test_subject_and_body(self) -> None:
        content = compose_transaction_alert(
            "alice@example.com",
            self._event(),
            TransactionType.SENT,
            explorer_tx_url="https://sepolia.basescan.org/tx/",
        )
        assert content.to == "alice@example.com"
        assert content.subject == "Transaction Alert: Sent 2.000000 ETH (Confirmed)"
        assert "Transaction Hash: 0xfeed" in content.text
        assert "Block Number: 99" in content.text
        assert "Time: 2024-05-01 12:00:00 UTC" in content.text
        assert "View transaction: https://sepolia.basescan.org/tx/0xfeed" in content.text
        assert 'href="https://sepolia.basescan.org/tx/0xfeed"' in content.html

    def test_received_pending_contract_creation(self) -> None:
        content = compose_transaction_alert(
            "alice@example.com",
            self._event(to_address=None, block_number=None, status=TransactionStatus.PENDING),
            TransactionType.RECEIVED,
            currency_symbol="SEP",
        )
        assert content.subject == "Transaction Alert: Received 2.000000 SEP (Pending)"
        assert "To: Contract Creation" in content.text
        assert "Block Number: Pending" in content.text
        assert "View transaction" not in content.text

    @pytest.mark.parametrize("status", list(TransactionStatus))
    def test_every_status_renders(self, status: TransactionStatus) -> None:
        content = compose_transaction_alert(
            "a@b.co", self._event(status=status), TransactionType.SENT
        )
        label = STATUS_PRESENTATION[status].label
        assert f"({label})" in content.subject
        assert STATUS_PRESENTATION[status].color in content.html


class TestComposeWelcome:
    def test_mentions_wallet(self) -> None:
        content = compose_welcome("alice@example.com", WALLET.lower())
        assert content.to == "alice@example.com"
        assert "Welcome" in content.subject
        assert WALLET.lower() in content.text
        assert WALLET.lower() in content.html
