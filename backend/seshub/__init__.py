"""
SES Hub Backend Application

Multi-tenant SES management API: engineers, skill sheets, projects,
business partners with scoped engineer visibility, and client offers.
"""

__version__ = "1.0.0"
