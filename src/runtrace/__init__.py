"""Turn finished GitHub Actions workflow runs into OpenTelemetry traces."""

__version__ = "0.1.0"

__all__ = ["__version__"]
