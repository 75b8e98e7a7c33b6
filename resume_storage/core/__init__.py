"""
Core business logic for resume storage.

This module is framework-agnostic - it doesn't import FastAPI or boto3.
Object paths, metadata and the gateway rules can be tested without a
running object store.
"""
