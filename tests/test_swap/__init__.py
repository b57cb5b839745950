"""Tests for the DEX swap client."""
