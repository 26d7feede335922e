"""Route modules for the StoreRec API."""
