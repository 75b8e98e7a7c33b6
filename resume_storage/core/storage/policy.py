"""
Public-read bucket policy.

Only the three category folders are readable anonymously. Anything else
written to the bucket stays private.
"""

import json

from .models import UploadType

POLICY_VERSION = "2012-10-17"


def build_public_read_policy(bucket_name: str) -> dict:
    """Return the policy document with the bucket name substituted."""
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Sid": "PublicAccess",
                "Effect": "Allow",
                "Action": ["s3:GetObject"],
                "Principal": {"AWS": ["*"]},
                "Resource": [
                    f"arn:aws:s3:::{bucket_name}/*/{category.value}/*"
                    for category in UploadType
                ],
            }
        ],
    }


def render_public_read_policy(bucket_name: str) -> str:
    return json.dumps(build_public_read_policy(bucket_name))
