"""Integration tests for HSM Bootstrap.

These tests interact with real AWS services and require valid AWS
credentials. They only read; no cluster is created or modified.

Tests are marked with @pytest.mark.integration and can be run with:
    pytest tests/integration/ -m integration

To skip integration tests:
    pytest -m "not integration"
"""
