"""Ingests VPC Flow Logs from CloudWatch Logs into Kinesis Firehose.

CloudWatch Logs delivers subscription data as base64 encoded, gzipped JSON.
Each log event message is one flow log line; lines are forwarded to the
delivery stream, where the decorator enriches them before delivery to
Elasticsearch. Control messages sent by CloudWatch Logs to check the
subscription are skipped.
"""

import base64
import gzip
import json
import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

from flowlog.config import Config, load_config

logger = logging.getLogger(__name__)

CONTROL_MESSAGE = "CONTROL_MESSAGE"


def decode_subscription_data(data: str) -> Dict[str, Any]:
    """Decode the `awslogs.data` payload of a subscription event."""
    return json.loads(gzip.decompress(base64.b64decode(data)).decode('utf-8'))


def create_records(log_data: Dict[str, Any]) -> List[Dict[str, bytes]]:
    """Create Firehose records from a CloudWatch Logs payload."""
    if log_data.get('messageType') == CONTROL_MESSAGE:
        logger.info("Skipping control message")
        return []

    return [
        {'Data': f"{event['message']}\n".encode('utf-8')}
        for event in log_data.get('logEvents', [])
    ]


def put_records(firehose_client, stream_name: str, records: List[Dict[str, bytes]], batch_size: int = 500) -> int:
    """Send records to Firehose in batches.

    Returns:
        Number of records Firehose failed to accept

    Raises:
        ClientError: If a PutRecordBatch call fails outright.
    """
    failed = 0
    for i in range(0, len(records), batch_size):
        chunk = records[i:i + batch_size]
        try:
            response = firehose_client.put_record_batch(DeliveryStreamName=stream_name, Records=chunk)
        except ClientError as e:
            logger.error(f"[ERROR - putRecordBatch] {e}")
            raise

        failed_count = response.get('FailedPutCount', 0)
        if failed_count:
            logger.warning(f"[Firehose] {failed_count} of {len(chunk)} records were rejected")
        else:
            logger.info(f"[Firehose] putRecordBatch successful ({len(chunk)} records)")
        failed += failed_count
    return failed


def lambda_handler(
    event: Dict[str, Any],
    context: Any,
    firehose_client=None,
    config: Optional[Config] = None,
) -> Dict[str, int]:
    """AWS Lambda entry point for CloudWatch Logs subscription events."""
    config = config or load_config()
    if not config.delivery.stream_name:
        raise ValueError("No delivery stream configured; set DELIVERY_STREAM_NAME")

    log_data = decode_subscription_data(event['awslogs']['data'])
    records = create_records(log_data)

    failed = 0
    if records:
        firehose_client = firehose_client or boto3.client('firehose', region_name=config.aws.region)
        failed = put_records(
            firehose_client,
            config.delivery.stream_name,
            records,
            batch_size=config.delivery.max_batch_size,
        )

    received = len(log_data.get('logEvents', []))
    logger.info(f"Forwarded {len(records) - failed} of {received} log events")
    return {'received': received, 'forwarded': len(records) - failed, 'failed': failed}
