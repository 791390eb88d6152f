import pytest

# test modules covering the incrementality engine itself
ENGINE_MODULES = {
    "test_aggregation.py",
    "test_correlation.py",
    "test_identity.py",
    "test_regression.py",
    "test_segments.py",
    "test_summaries.py",
}


def pytest_collection_modifyitems(items):
    """Mark unit tests, and engine tests as business logic."""
    for item in items:
        if item.path.parent.name != "unit":
            continue
        item.add_marker(pytest.mark.unit)
        if item.path.name in ENGINE_MODULES:
            item.add_marker(pytest.mark.business_logic)
