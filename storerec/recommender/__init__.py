"""Recommendation engine for StoreRec.

This module contains the user profile builder, the content and collaborative
scorers, the hybrid blender with its fallback cascade, and the
non-personalized popularity, category, trending and similar-product paths.
All scoring runs over read-only catalog and interaction snapshots.
"""
