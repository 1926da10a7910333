"""
Entry Point Adapters

Translate external invocations into the first command of a chain:
- api: FastAPI application with a processing endpoint and health check
- aws_lambda: synchronous serverless function handler
"""

from .api import ApiConfig, create_api_entrypoint, start_api_server
from .aws_lambda import LambdaConfig, create_lambda_handler

__all__ = [
    'ApiConfig',
    'create_api_entrypoint',
    'start_api_server',
    'LambdaConfig',
    'create_lambda_handler',
]
