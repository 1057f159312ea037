"""Use-case level logic.

These modules implement the import, billing and reminder rules using the
integrations (record store, Stripe, SendGrid) handed to them.

They should be:
- deterministic given their collaborators
- unit-testable with stubs
- free of web/framework code
"""
