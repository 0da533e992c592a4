"""Web API: FastAPI app, request schemas, dependencies and routes."""
