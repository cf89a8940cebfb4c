"""Integration tests for NBA betting agent.

These tests verify cross-component behavior including:
- Temporal validation (no look-ahead bias)
- End-to-end agent workflows
- Cache behavior across time
"""
