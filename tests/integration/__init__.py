"""Integration tests for external service connections.

These tests require live service connections (SharePoint, etc.)
and should be run with appropriate credentials configured.

Run with: pytest tests/integration/ -v
Skip with: pytest tests/ --ignore=tests/integration/
"""
