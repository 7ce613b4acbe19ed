"""
Tests for the fashion shop API

Routes are exercised through FastAPI's TestClient against an in-memory
MongoDB (mongomock). Payment providers are patched out.
"""
