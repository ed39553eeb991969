"""
Application package.

``main`` builds the FastAPI application, ``dependencies`` wires the
services, ``core`` holds configuration and infrastructure, ``schemas``
the API models, ``services`` the business logic and ``api`` the
versioned routers.
"""
