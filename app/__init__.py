# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the HTTP service:
# - config.py: Layered YAML + environment settings
# - main.py: App factory, middleware setup, error handlers
# - middleware.py: Access log, recovery, request id, real IP, timeout
# - routers/: Health, echo, and OpenAPI document endpoints
# - server.py: uvicorn lifecycle state machine
# - application.py: Composition root and shutdown ordering
# - cli.py: serve / health subcommands
# - lambda_handler.py: AWS Lambda entry point (Mangum)
#
# The app layer is thin - it handles HTTP concerns and delegates
# business logic to the core/ package.
# =============================================================================
