"""
Grakn client test suite.

This package contains:
- unit/: Unit tests (no server, no network)
- integration/: Client, session and transaction tests against the
  in-memory server in fakes.py
"""
