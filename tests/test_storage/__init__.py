"""
Storage module tests.

Tests cover:
- Publisher store responses (newlyCreated / alreadyCertified)
- Upload retries, rejections and the circuit breaker
- Aggregator reads and blob metadata
"""
