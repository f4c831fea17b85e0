"""Custody seam: asset transfers in and out of the ledger."""

from .transfer import AssetTransfer, InMemoryCustody

__all__ = ["AssetTransfer", "InMemoryCustody"]
