"""metagraph: Normalize content-addressed metadata documents into an entity graph.

This package contains the typed field accessors, the credential/claim
extractors, one normalizer per document category, and the entity stores the
resulting graph is written to.
"""
