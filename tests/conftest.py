"""
Pytest configuration and shared fixtures for the hello proxy stack.

This module provides common test fixtures and configuration used across
unit and end-to-end tests.
"""

import os
import zipfile
from pathlib import Path

import pytest


# Test environment configuration
@pytest.fixture(scope="session", autouse=True)
def test_environment():
    """Set up test environment variables."""
    os.environ.update({
        "AWS_DEFAULT_REGION": "us-east-1",
        "AWS_ACCESS_KEY_ID": "test",
        "AWS_SECRET_ACCESS_KEY": "test",
        "POWERTOOLS_SERVICE_NAME": "test-hello-service",
        "POWERTOOLS_METRICS_NAMESPACE": "TestHelloLambdaProxy",
        "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
        "LOG_LEVEL": "DEBUG",
    })


@pytest.fixture
def function_dir(tmp_path: Path) -> Path:
    """A minimal function source directory, laid out like src/hello."""
    source = tmp_path / "src" / "greeter"
    source.mkdir(parents=True)
    (source / "lambda_function.py").write_text(
        "def lambda_handler(event, context):\n"
        "    return {'statusCode': 200, 'body': 'Hello from Lambda!'}\n"
    )
    (source / "test_lambda_function.py").write_text("def test_nothing():\n    pass\n")
    cache = source / "__pycache__"
    cache.mkdir()
    (cache / "lambda_function.cpython-312.pyc").write_bytes(b"\x00")
    return source


@pytest.fixture
def deployment_package(tmp_path: Path) -> Path:
    """A deployment zip good enough for the stack's existence check."""
    zip_path = tmp_path / "build" / "hello.zip"
    zip_path.parent.mkdir(parents=True)
    with zipfile.ZipFile(zip_path, "w") as zipf:
        zipf.writestr("lambda_function.py", "def lambda_handler(event, context):\n    pass\n")
    return zip_path


# End-to-end test fixtures
@pytest.fixture
def integration_client():
    """HTTP client for the deployed stage; skips when no stage URL is given."""
    import httpx

    base_url = os.environ.get("API_BASE_URL")
    if not base_url:
        pytest.skip("API_BASE_URL not set (use `pulumi stack output base_url`)")

    with httpx.Client(base_url=base_url.rstrip("/") + "/", timeout=30.0) as client:
        yield client


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "e2e: End-to-end tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "e2e" in str(item.fspath):
            item.add_marker(pytest.mark.e2e)
