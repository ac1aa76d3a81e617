"""
Business logic services: RBAC, access control, partners, client auth, offers
and approaches.
"""
