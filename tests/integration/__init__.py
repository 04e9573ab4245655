"""
Integration tests for trunkbot.

Exercise the dispatch configuration loader, the call pipeline and the HTTP
application together, with only the external services mocked.
"""
