"""Firehose transformation handler that decorates VPC Flow Logs.

For each flow log entry the handler appends the Security Group IDs of the
Elastic Network Interface (ENI) that captured the traffic, the traffic
direction, and the location of the requestor.

  VPC --> CloudWatch --> Lambda#ingestor --> Kinesis  --> Elasticsearch
          (Flow Logs)                        Firehose
                                                +
                                         Lambda#decorator
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import boto3

from flowlog.config import Config, load_config
from flowlog.geolocation import GeoResolver
from flowlog.pipeline import DecorationPipeline
from flowlog.schemas import RawRecord
from flowlog.secrets import CredentialProvider

logger = logging.getLogger(__name__)

_pipeline: Optional[DecorationPipeline] = None


def setup_logging(level: str = "INFO") -> None:
    """Configure structured logging for the Lambda runtime."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))


def create_pipeline(config: Config, session: Optional[boto3.Session] = None) -> DecorationPipeline:
    """Build the pipeline and its AWS collaborators from configuration."""
    session = session or boto3.Session(profile_name=config.aws.profile)
    ec2_client = session.client('ec2', region_name=config.aws.region)

    credentials = None
    if config.geolocation.enabled:
        ssm_client = session.client('ssm', region_name=config.aws.region)
        credentials = CredentialProvider(ssm_client, config.geolocation.api_key_parameter)

    resolver = GeoResolver(
        endpoint=config.geolocation.endpoint,
        credentials=credentials,
        enabled=config.geolocation.enabled,
    )
    return DecorationPipeline(ec2_client, resolver)


def get_pipeline() -> DecorationPipeline:
    """Return the process-wide pipeline, creating it on first use.

    The pipeline holds the cached geocode credential, so it lives for the
    lifetime of the Lambda execution environment.
    """
    global _pipeline
    if _pipeline is None:
        config = load_config()
        setup_logging(config.logging.level)
        _pipeline = create_pipeline(config)
        logger.info(f"Initialized decorator for environment {config.environment}")
    return _pipeline


def lambda_handler(event: Dict[str, Any], context: Any, pipeline: Optional[DecorationPipeline] = None) -> Dict[str, Any]:
    """AWS Lambda entry point for Firehose data transformation.

    Builds the ENI mapping and then decorates the records passed from
    Firehose. Errors other than per-record failures are re-raised so that
    Firehose retries the whole batch.
    """
    if 'records' not in event:
        raise ValueError("Invalid event format: missing 'records'")

    pipeline = pipeline or get_pipeline()

    try:
        records = [RawRecord(**record) for record in event['records']]
        outcomes, _ = asyncio.run(pipeline.decorate(records))
    except Exception as e:
        logger.error(f"[ERROR] {e}")
        raise

    logger.info(f"Finished processing records, pushing {len(outcomes)} records to Elasticsearch...")
    return {'records': [outcome.to_firehose() for outcome in outcomes]}
