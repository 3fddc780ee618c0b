"""Integration tests for the Voter API.

These tests drive the FastAPI application in-process through httpx's ASGI
transport:

- Voter and poll-history endpoint behaviour and status codes
- Malformed request handling
- Call accounting and the health endpoint
- Concurrent request handling
"""
