"""Reconciliation of extracted and source-system metadata."""

from fieldreg.reconciliation.reconciler import (
    UNREGISTERED_NAMESPACE,
    ReconciliationDecision,
    Reconciler,
    merge_lists,
    reconcile,
    to_namespaced,
)

__all__ = [
    "UNREGISTERED_NAMESPACE",
    "ReconciliationDecision",
    "Reconciler",
    "merge_lists",
    "reconcile",
    "to_namespaced",
]
