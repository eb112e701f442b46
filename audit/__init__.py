"""audit/ -- Append-only audit trail for sensitive portal actions.

Layer rule: audit/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, auth/, or client/.
"""
