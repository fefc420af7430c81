# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the hello-echo service:
# - test_config.py: Layered YAML + environment settings
# - test_logging_setup.py / test_telemetry.py: Process plumbing in lib/
# - test_models.py / test_echo_service.py: Core schemas and service
# - test_routes.py / test_middleware.py: HTTP surface via TestClient
# - test_server.py / test_application.py: Lifecycle against a real listener
# - test_cli.py: serve / health subcommands
#
# Run tests with: pytest
# =============================================================================
