"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the staking pool.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. balance_invariant.py - Aggregate balance equals active principal
2. atomicity.py - All-or-nothing operations, rollback on failed push
3. idempotency.py - A stake is liquidated at most once
4. reentrancy.py - Debit and flag happen before value leaves custody

These tests use hypothesis for property-based testing.
"""
