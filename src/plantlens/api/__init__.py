"""PlantLens - FastAPI REST API layer.

Modules
-------
main
    ``create_app()`` factory with all route handlers, the error handlers
    that map :mod:`plantlens.core.errors` to JSON responses, and the
    ``main()`` CLI entry point.
models
    Pydantic models for API request and response validation.
"""
