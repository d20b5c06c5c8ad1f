"""Dashboard HTTP layer -- FastAPI app and JSON routes."""
