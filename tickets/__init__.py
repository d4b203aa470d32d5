"""tickets/ -- Ticket storage and claim-scoped ticket queries.

Layer rule: tickets/ may import from auth/ and core/. It does NOT import
from api/.
"""
