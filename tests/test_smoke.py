"""Minimal smoke tests for the drift analysis package."""


def test_package_importable() -> None:
    """Ensure the top-level package exposes the expected namespace."""
    import drift_service  # noqa: F401  # Imported for side effects

    assert drift_service.__version__
