"""Wildcard Bridge: conversational orchestration between users, a remote agent, and Stripe."""

__version__ = "0.1.0"
