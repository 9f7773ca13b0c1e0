import io
import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import (
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    ParamValidationError,
    ReadTimeoutError,
)

from resume_pipeline.api.aws_clients import (
    BedrockModelClient,
    ComprehendNerClient,
    LambdaStageSubmitter,
    S3DocumentStorage,
    TextractOcrClient,
)
from resume_pipeline.core.document_reader import OcrTextExtractor
from resume_pipeline.core.exceptions import (
    DocumentNotFoundError,
    OcrServiceError,
    StorageError,
    TextExtractionError,
)
from resume_pipeline.core.models import DocumentIdentity, ModelPrompt
from resume_pipeline.core.retry import ocr_policy


def client_error(code, status=400, operation="Operation"):
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation,
    )


def test_s3_read_and_size():
    s3 = MagicMock()
    s3.get_object.return_value = {"Body": io.BytesIO(b"data")}
    s3.head_object.return_value = {"ContentLength": 4}
    storage = S3DocumentStorage(client=s3)

    assert storage.read("bucket", "key.pdf") == b"data"
    assert storage.size("bucket", "key.pdf") == 4
    s3.get_object.assert_called_once_with(Bucket="bucket", Key="key.pdf")


@pytest.mark.parametrize("code,status,expected", [
    ("NoSuchKey", 404, DocumentNotFoundError),
    ("404", 404, DocumentNotFoundError),
    ("AccessDenied", 403, StorageError),
])
def test_s3_errors_are_translated(code, status, expected):
    s3 = MagicMock()
    s3.get_object.side_effect = client_error(code, status)

    with pytest.raises(expected):
        S3DocumentStorage(client=s3).read("bucket", "key.pdf")


def test_textract_blocks():
    textract = MagicMock()
    textract.detect_document_text.return_value = {"Blocks": [
        {"BlockType": "PAGE"},
        {"BlockType": "LINE", "Text": "Jane Smith", "Geometry": {"BoundingBox": {"Top": 0.1}}},
    ]}

    blocks = TextractOcrClient(client=textract).detect_text("bucket", "cv.pdf")

    assert [b.block_type for b in blocks] == ["PAGE", "LINE"]
    assert blocks[0].vertical_position is None
    assert blocks[1].text == "Jane Smith"
    assert blocks[1].vertical_position == 0.1
    textract.detect_document_text.assert_called_once_with(
        Document={"S3Object": {"Bucket": "bucket", "Name": "cv.pdf"}}
    )


@pytest.mark.parametrize("code,status,transient", [
    ("ThrottlingException", 400, True),
    ("ProvisionedThroughputExceededException", 400, True),
    ("InternalServerError", 500, True),
    ("SomethingElse", 503, True),
    ("InvalidS3ObjectException", 400, False),
    ("UnsupportedDocumentException", 400, False),
])
def test_textract_error_classification(code, status, transient):
    textract = MagicMock()
    textract.detect_document_text.side_effect = client_error(code, status)

    with pytest.raises(OcrServiceError) as exc_info:
        TextractOcrClient(client=textract).detect_text("bucket", "cv.pdf")

    assert exc_info.value.transient is transient
    assert exc_info.value.service_code == code


@pytest.mark.parametrize("error,transient", [
    (NoCredentialsError(), False),
    (ParamValidationError(report="bad"), False),
    (EndpointConnectionError(endpoint_url="https://textract"), True),
    (ReadTimeoutError(endpoint_url="https://textract"), True),
])
def test_textract_botocore_error_classification(error, transient):
    textract = MagicMock()
    textract.detect_document_text.side_effect = error

    with pytest.raises(OcrServiceError) as exc_info:
        TextractOcrClient(client=textract).detect_text("bucket", "cv.pdf")

    assert exc_info.value.transient is transient


@pytest.mark.parametrize("error", [NoCredentialsError(), ParamValidationError(report="bad")])
def test_textract_configuration_errors_fail_without_retry(error):
    textract = MagicMock()
    textract.detect_document_text.side_effect = error
    extractor = OcrTextExtractor(TextractOcrClient(client=textract), ocr_policy(2, 0.0))

    with pytest.raises(TextExtractionError):
        extractor.extract(DocumentIdentity(container_id="bucket", key="cv.pdf"))

    assert textract.detect_document_text.call_count == 1


def test_comprehend_entities():
    comprehend = MagicMock()
    comprehend.detect_entities.return_value = {"Entities": [
        {"Type": "PERSON", "Text": "Jane Smith", "Score": 0.97},
    ]}

    [entity] = ComprehendNerClient(client=comprehend).detect_entities("Jane Smith")

    assert entity.type == "PERSON"
    assert entity.score == 0.97
    comprehend.detect_entities.assert_called_once_with(Text="Jane Smith", LanguageCode="en")


def test_bedrock_request_body_and_reply():
    bedrock = MagicMock()
    bedrock.invoke_model.return_value = {
        "body": io.BytesIO(json.dumps({"content": [{"type": "text", "text": "{\"fit_score\": 1}"}]}).encode())
    }
    client = BedrockModelClient("model-id", client=bedrock)

    reply = client.invoke(ModelPrompt(system="sys", user="hello", max_tokens=100, temperature=0.2))

    assert reply == "{\"fit_score\": 1}"
    kwargs = bedrock.invoke_model.call_args.kwargs
    assert kwargs["modelId"] == "model-id"
    body = json.loads(kwargs["body"])
    assert body["anthropic_version"] == "bedrock-2023-05-31"
    assert body["system"] == "sys"
    assert body["max_tokens"] == 100
    assert body["messages"] == [{"role": "user", "content": "hello"}]


@pytest.mark.parametrize("status,accepted", [(202, True), (200, False), (500, False)])
def test_lambda_submitter_acceptance(sample_payload, status, accepted):
    lambda_client = MagicMock()
    lambda_client.invoke.return_value = {"StatusCode": status}

    assert LambdaStageSubmitter("Analyzer", client=lambda_client).submit(sample_payload) is accepted

    kwargs = lambda_client.invoke.call_args.kwargs
    assert kwargs["InvocationType"] == "Event"
    assert json.loads(kwargs["Payload"])["correlationId"] == "corr-1"
