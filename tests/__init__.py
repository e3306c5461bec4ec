"""
chilltv Test Suite

Test Categories:
- unit/: Fast, isolated tests of each component
- integration/: API tests through the FastAPI app and channel service
"""
