# backend/wealthtrack/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

- base: CamelModel and the Money type
- errors: Error response formats
- history: Historical backfill
- prices: Price refresh and live quotes
- portfolio: Portfolio / asset history, summary and allocation
"""
