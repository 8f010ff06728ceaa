"""
Shared utilities for the Key Vault key store.

This package aggregates common building blocks consumed by the key store
service:

- config: Settings via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus counters for cache and vault activity
- errors: Canonical error types and responses

Do not import from service_keystore into shared/.
"""
