"""VPC Flow Log decoration core.

This package enriches VPC Flow Log records delivered by Kinesis Firehose:
- Flow log line parsing
- ENI to security group mapping and traffic direction
- Source address geolocation
- Per-record Firehose transformation results
"""

__version__ = "0.1.0"
