"""Integration tests - FastAPI app with dependency overrides"""
