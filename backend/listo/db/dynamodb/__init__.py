"""Shared DynamoDB utilities.

This package centralizes:
- boto3 client/resource configuration (including a local endpoint for dev)
- single-attempt calls with botocore failures mapped to typed errors
- typed errors for consistent HTTP problem responses
- transactional and batch helpers
"""
