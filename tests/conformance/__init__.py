"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the stablecoin engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_conservation.py - DSC supply equals debt; custody equals deposits
2. test_atomicity.py - Failed operations leave no trace
3. test_solvency.py - No successful operation leaves its actor unhealthy
4. test_determinism.py - Same operations, same final state
5. test_round_trip.py - Undo restores the account; valuation is additive and monotone

These tests use hypothesis for property-based testing.
"""
