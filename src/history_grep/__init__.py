"""
History Grep - search the entire history of a git repository.

Walks the commit graph breadth-first from a starting reference, visits every
distinct tree and blob once, and reports each regular-expression match with
its commit, path, line number and line text.
"""

__version__ = "0.3.1"
