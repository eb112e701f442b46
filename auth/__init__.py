"""auth/ -- Authentication and authorization package for CoverDesk.

Credential store, password hashing, session tokens, registration/login and
role-based authorization for the customer / agent / admin portal.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, audit/, or client/.
api/ and client/ import from auth/, not the other way around.
"""
