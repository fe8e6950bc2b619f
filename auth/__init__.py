"""
auth — User authentication module.

Provides:
  • Signed token issuance & verification (``TokenService``)
  • Password hashing (bcrypt)
  • Account registration / lookup and credential checks
  • Register / Login / Me API routes
"""
