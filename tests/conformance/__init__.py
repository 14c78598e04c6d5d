"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the chaincode and its world state.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. atomicity.py - All-or-nothing invocation semantics
2. idempotency.py - Repeated transfers and rejected re-creates
3. determinism.py - Reproducible behavior
4. canonicalization.py - Canonical record encoding
5. concurrency.py - No lost updates under racing commits

These tests use hypothesis for property-based testing.
"""
