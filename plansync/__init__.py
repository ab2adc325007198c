"""plansync: order webhooks to subscription plan tiers.

Receives signed "order.created" webhooks, maps the purchased product to a
plan tier, and sets that tier on the buyer's user record in MongoDB.
"""

__version__ = "0.1.0"
