"""
helm-s3repo

Create and manage an S3 bucket as a public Helm chart repository.
"""

__version__ = "0.1.0"
__author__ = "helm-s3repo maintainers"
__description__ = "Create and manage an S3 bucket as a public helm repository"
