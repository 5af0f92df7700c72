"""
Shared utilities for Sadaya Sanctuary components.

This package contains common functionality used by the API service and the portal:
- logging_config: consistent log formatting per component
- token_utils: HMAC-SHA256 signing of session tokens
"""
