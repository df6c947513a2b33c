"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Object storage (COS through the S3 API)
- sts: Temporary credential issuer

These wrappers translate between boto3 calls and our domain models.
"""
