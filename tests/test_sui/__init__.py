"""Tests for the destination-chain RPC client."""
