"""Tests for the relayer orchestrator and progress tracking."""
