"""Tests for the CloudWatch Logs to Firehose ingestor."""

import base64
import gzip
import json

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from flowlog.config import Config, DeliveryConfig
from ingestor.handler import create_records, decode_subscription_data, lambda_handler, put_records

STREAM = "flowlogs-test"


def subscription_event(payload):
    data = base64.b64encode(gzip.compress(json.dumps(payload).encode("utf-8"))).decode("ascii")
    return {"awslogs": {"data": data}}


def data_message(*messages):
    return {
        "messageType": "DATA_MESSAGE",
        "owner": "123456789012",
        "logGroup": "vpc-flow-logs",
        "logStream": "eni-4ff3618a-all",
        "subscriptionFilters": ["to-firehose"],
        "logEvents": [
            {"id": str(i), "timestamp": 1490365358000, "message": m} for i, m in enumerate(messages)
        ],
    }


def _config(batch_size=500):
    return Config(delivery=DeliveryConfig(stream_name=STREAM, max_batch_size=batch_size))


def test_decode_subscription_data(sample_line):
    event = subscription_event(data_message(sample_line))
    decoded = decode_subscription_data(event["awslogs"]["data"])
    assert decoded["logEvents"][0]["message"] == sample_line


def test_create_records_appends_newline(sample_line):
    records = create_records(data_message(sample_line, sample_line))
    assert records == [{"Data": (sample_line + "\n").encode("utf-8")}] * 2


def test_control_message_skipped():
    payload = {"messageType": "CONTROL_MESSAGE", "logEvents": [
        {"id": "", "timestamp": 1490365358000, "message": "CWL CONTROL MESSAGE: Checking health of destination Firehose."}
    ]}
    assert create_records(payload) == []


def test_lambda_handler_puts_records(sample_line):
    firehose = boto3.client("firehose", region_name="us-east-1")
    stub = Stubber(firehose)
    stub.add_response(
        "put_record_batch",
        {"FailedPutCount": 0, "RequestResponses": [{"RecordId": "a"}]},
        expected_params={"DeliveryStreamName": STREAM, "Records": [{"Data": (sample_line + "\n").encode("utf-8")}]},
    )
    stub.activate()

    result = lambda_handler(subscription_event(data_message(sample_line)), None, firehose_client=firehose, config=_config())

    assert result == {"received": 1, "forwarded": 1, "failed": 0}
    stub.assert_no_pending_responses()
    stub.deactivate()


def test_put_records_batches_and_counts_failures():
    firehose = boto3.client("firehose", region_name="us-east-1")
    stub = Stubber(firehose)
    stub.add_response("put_record_batch", {
        "FailedPutCount": 0,
        "RequestResponses": [{"RecordId": "a"}, {"RecordId": "b"}],
    })
    stub.add_response("put_record_batch", {
        "FailedPutCount": 1,
        "RequestResponses": [{"ErrorCode": "ServiceUnavailableException", "ErrorMessage": "slow down"}],
    })
    stub.activate()

    records = [{"Data": f"line {i}\n".encode("utf-8")} for i in range(3)]
    failed = put_records(firehose, STREAM, records, batch_size=2)

    assert failed == 1
    stub.assert_no_pending_responses()
    stub.deactivate()


def test_put_records_client_error_propagates():
    firehose = boto3.client("firehose", region_name="us-east-1")
    stub = Stubber(firehose)
    stub.add_client_error("put_record_batch", service_error_code="ResourceNotFoundException", http_status_code=400)
    stub.activate()

    with pytest.raises(ClientError):
        put_records(firehose, STREAM, [{"Data": b"x\n"}])

    stub.deactivate()


def test_lambda_handler_control_message_makes_no_call():
    class NoCallFirehose:
        def put_record_batch(self, **kwargs):
            raise AssertionError("should not be called")

    event = subscription_event({"messageType": "CONTROL_MESSAGE", "logEvents": []})
    result = lambda_handler(event, None, firehose_client=NoCallFirehose(), config=_config())

    assert result == {"received": 0, "forwarded": 0, "failed": 0}


def test_lambda_handler_requires_stream_name(sample_line):
    with pytest.raises(ValueError, match="delivery stream"):
        lambda_handler(subscription_event(data_message(sample_line)), None, config=Config())
