"""Catalog clients and relevance scoring.

Submodules:
    audible  -- Audible catalog keyword search client
    audnexus -- Audnexus author and book lookups
    schemas  -- pydantic models for both catalogs' JSON responses
    search   -- Candidate scoring, best-match picking, deduplication
"""
