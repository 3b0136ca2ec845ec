"""
BoardMgmt Server Package.

This package contains the web server implementation for the board-management backend.
It includes the API definition, configuration, exception handling, middleware and the
service layer.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration settings and constants.
    exception_handlers: Mapping of domain exceptions to the JSON error envelope.
    middleware: Request logging and timing.
    services: Business logic, one class per area.
"""
