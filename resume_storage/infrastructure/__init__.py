"""
Infrastructure layer - external service integrations.

- storage: S3-compatible object storage (MinIO/S3)

These wrappers translate between boto3 and our domain models.
"""
