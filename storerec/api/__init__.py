"""FastAPI application for StoreRec.

Route handlers, error handling, structured logging and request metrics for
the recommendation service.
"""
