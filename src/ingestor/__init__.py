"""CloudWatch Logs subscription Lambda forwarding VPC Flow Logs to Firehose."""

__version__ = "0.1.0"
