"""Business logic services.

Services contain all catalog rules and are called by routes.
They take their store, family and clock explicitly and never log.
"""
