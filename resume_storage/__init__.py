"""
Resume Storage - object storage gateway for the resume builder.

This package contains the complete application:
- core: Framework-agnostic storage rules
- infrastructure: S3-compatible object store adapters
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
