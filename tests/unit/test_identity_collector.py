"""Unit tests for the creator identity collector."""

import json

import pytest

from app.collectors.identity import IdentityCollector
from app.core.errors import ErrorCode, ForensicsError, ai_error
from app.schemas.v1.common import AccountAge
from app.schemas.v1.forensics import CreatorIdentity

IDENTITY_JSON = json.dumps(
    {
        "platforms_found": ["LinkedIn", "Twitter"],
        "scam_reports_found": False,
        "is_disposable_email": False,
        "identity_consistent": True,
        "account_age": "ESTABLISHED",
        "trust_score": 82,
        "red_flags": [],
        "green_flags": ["Consistent professional history"],
        "summary": "Long-standing public presence.",
    }
)


@pytest.mark.asyncio
async def test_search_then_extract(mock_provider):
    mock_provider.generate.side_effect = ["grounded findings", IDENTITY_JSON]
    collector = IdentityCollector(mock_provider)

    result = await collector.collect(CreatorIdentity(full_name="Jane Doe", email="jane@example.org"))

    assert result.ok
    assert result.value.trust_score == 82
    assert result.value.account_age == AccountAge.ESTABLISHED

    search_call, extract_call = mock_provider.generate.await_args_list
    assert search_call.kwargs["search"] is True
    assert "Jane Doe" in search_call.args[0][0]
    assert "jane@example.org" in search_call.args[0][0]
    assert extract_call.kwargs["response_schema"].__name__ == "IdentityForensics"
    assert "grounded findings" in extract_call.args[0][0]


@pytest.mark.asyncio
async def test_unparseable_extraction_yields_none(mock_provider):
    mock_provider.generate.side_effect = ["findings", "{not json"]

    result = await IdentityCollector(mock_provider).collect(CreatorIdentity(username="jdoe"))

    assert result.value is None
    assert result.error.code == ErrorCode.AI_PARSE_FAILED


@pytest.mark.asyncio
async def test_model_failure_yields_none(mock_provider):
    mock_provider.generate.side_effect = ai_error(ErrorCode.AI_NO_RESPONSE, "identity_search")

    result = await IdentityCollector(mock_provider).collect(CreatorIdentity(username="jdoe"))

    assert result.value is None
    assert isinstance(result.error, ForensicsError)
    assert mock_provider.generate.await_count == 1
