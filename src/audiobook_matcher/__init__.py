"""Audiobook Matcher -- find the audiobook edition of a book by title and author.

Core modules:
    engine      -- AudiobookMatcher: ordered fallback strategies (keyword search,
                   ISBN hook, author catalog, author name variations), the
                   selection variant, and book enrichment.
    config      -- Matcher configuration via pydantic-settings (.env + env vars)
    cli         -- Click CLI entry point. CLI flags passed as kwargs to
                   MatcherConfig (no env pollution).
    models      -- Enums and frozen record types (AudiobookRecord, Candidate, ...)
    errors      -- Exception hierarchy and HTTP status categorization
    records     -- Duration math, Audnexus book -> AudiobookRecord, enrichment
    normalize   -- Title/author normalization for comparisons and queries
    variations  -- Alternate author spellings
    concurrency -- Cancellation-aware awaiting of outbound calls

Subpackages:
    api -- Catalog clients (Audible keyword search, Audnexus) and relevance scoring
"""
