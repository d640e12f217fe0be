"""
Tests for payments app.

This package contains test modules for:
- test_escrow_service.py: Escrow checkout, webhook, polling, release, earnings
- test_payout_service.py: Balance, payout requests, admin processing
- test_midtrans_adapter.py: Gateway HTTP calls and signature checks
- test_state_transitions.py: Escrow and Payout FSM transitions
- test_locks.py: Row locks, serializable retries, distributed lock
- test_audit.py: Transaction log and admin action records
- test_webhooks.py / test_api.py: HTTP endpoints
- test_tasks.py: Reconciliation task

Usage:
    pytest payments/tests/
    pytest payments/tests/test_escrow_service.py
"""
