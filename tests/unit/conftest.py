import pytest

PARSER_MODULES = ("test_frame", "test_mapping", "test_parsers", "test_classifier", "test_registry")


def pytest_collection_modifyitems(items):
    """Mark tests in this directory as unit, and frame decoding modules as parser."""
    for item in items:
        if "/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
            if item.module.__name__.rsplit(".", 1)[-1] in PARSER_MODULES:
                item.add_marker(pytest.mark.parser)
