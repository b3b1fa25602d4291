"""
CLI helper to create the photos, comments and ratings DynamoDB tables.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from photostore.config import get_settings

logger = logging.getLogger(__name__)


def table_specs(photos: str, comments: str, ratings: str) -> list[dict]:
    partitioned = {
        "KeySchema": [
            {"AttributeName": "photoId", "KeyType": "HASH"},
            {"AttributeName": "id", "KeyType": "RANGE"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "photoId", "AttributeType": "S"},
            {"AttributeName": "id", "AttributeType": "S"},
        ],
    }
    return [
        {
            "TableName": photos,
            "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
            "AttributeDefinitions": [{"AttributeName": "id", "AttributeType": "S"}],
        },
        {"TableName": comments, **partitioned},
        {"TableName": ratings, **partitioned},
    ]


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Create DynamoDB tables")
    parser.add_argument("--photos", default=settings.photos_table or "photos")
    parser.add_argument("--comments", default=settings.comments_table or "comments")
    parser.add_argument("--ratings", default=settings.ratings_table or "ratings")
    parser.add_argument(
        "--endpoint",
        default=settings.dynamodb_endpoint,
        help="Override the DynamoDB endpoint (e.g. http://localhost:8000)",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    client = boto3.client(
        "dynamodb",
        region_name=settings.aws_region,
        endpoint_url=args.endpoint or None,
        aws_access_key_id=settings.aws_access_key_id or None,
        aws_secret_access_key=settings.aws_secret_access_key or None,
    )
    for spec in table_specs(args.photos, args.comments, args.ratings):
        name = spec["TableName"]
        try:
            client.create_table(BillingMode="PAY_PER_REQUEST", **spec)
            client.get_waiter("table_exists").wait(TableName=name)
            logger.info("Created table %s", name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ResourceInUseException":
                logger.info("Table %s already exists", name)
                continue
            logger.error("Failed to create table %s: %s", name, e)
            return 1
        except BotoCoreError as e:
            logger.error("Failed to create table %s: %s", name, e)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
