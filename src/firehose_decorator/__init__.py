"""Kinesis Firehose data transformation Lambda for VPC Flow Logs.

The decorator receives batches of raw flow log records from Firehose,
enriches each one with ENI security groups, traffic direction and source
geolocation, and returns per-record results for delivery to Elasticsearch.
"""

__version__ = "0.1.0"
