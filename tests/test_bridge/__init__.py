"""Tests for the cross-chain bridge client."""
