"""Blockscout v2 REST client."""

from __future__ import annotations

from tranzantions.chain.blockscout.client import BlockscoutClient, item_to_event

__all__ = ["BlockscoutClient", "item_to_event"]
