"""StoreRec: hybrid product recommendations for an online store.

This package ranks catalog products for a user by blending a content-based
profile match with collaborative signals from similar shoppers, falling back
to popularity when there is no personal history.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: Profile building, scoring, blending and fallbacks
"""

__version__ = "0.1.0"
