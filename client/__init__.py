"""
client -- Python client session layer for the CoverDesk API.

SessionCache holds the bearer token and notifies observers on every auth state
change. PortalClient talks to the API with requests and keeps the cache in
step. guards.py decides client-side navigation with the same role authorizer
the server uses.

Layer rule: may import from auth/ (models, errors, rbac) and core/. No imports
from api/ or audit/.
"""
