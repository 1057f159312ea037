"""Integration adapters for external systems (Supabase, Stripe, SendGrid).

Keep these modules small and testable:
- No FastAPI request/response objects
- No import/billing business rules
- Pure IO + parsing helpers
"""
