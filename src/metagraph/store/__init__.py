"""Entity store package for metagraph.

Provides the SQL schema for the normalized entity graph and the stores that
persist entities with create-or-overwrite-by-id semantics.
"""
