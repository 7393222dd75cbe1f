"""Unit tests for the Gemini provider wrapper."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from google.genai import errors as genai_errors

from app.core.config import GeminiConfig
from app.core.errors import ErrorCode, ForensicsError
from app.llm.provider import (
    GeminiProvider,
    UploadedFile,
    extract_raw_output,
    file_part,
)
from app.schemas.v1.assessments import AssessmentResult


def _api_error(code: int) -> genai_errors.APIError:
    return genai_errors.APIError(
        code, {"error": {"code": code, "message": "upstream said no", "status": "UNAVAILABLE"}}
    )


def _fake_client(**aio) -> SimpleNamespace:
    return SimpleNamespace(aio=SimpleNamespace(**aio))


def _provider(client) -> GeminiProvider:
    return GeminiProvider(GeminiConfig(model="gemini-test"), client=client)


def test_extract_raw_output_joins_text_outputs():
    outputs = [
        {"text": "First section"},
        SimpleNamespace(text="Second section"),
        {"type": "thought"},
        "Third section",
    ]

    assert extract_raw_output(outputs) == "First section\n\nSecond section\n\nThird section"


def test_extract_raw_output_empty():
    assert extract_raw_output(None) == ""
    assert extract_raw_output([]) == ""


def test_file_part():
    part = file_part("https://signed.example/a.jpg", "image/jpeg")
    assert part.file_data.file_uri == "https://signed.example/a.jpg"
    assert part.file_data.mime_type == "image/jpeg"


@pytest.mark.asyncio
async def test_generate_with_search():
    generate_content = AsyncMock(return_value=SimpleNamespace(text="  grounded analysis  "))
    provider = _provider(_fake_client(models=SimpleNamespace(generate_content=generate_content)))

    text = await provider.generate(
        ["hello"], operation="test", system_instruction="be careful", search=True
    )

    assert text == "grounded analysis"
    kwargs = generate_content.await_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert kwargs["contents"][0].text == "hello"
    assert kwargs["config"].system_instruction == "be careful"
    assert kwargs["config"].tools[0].google_search is not None
    assert kwargs["config"].response_schema is None


@pytest.mark.asyncio
async def test_generate_with_schema():
    generate_content = AsyncMock(return_value=SimpleNamespace(text='{"score": 1}'))
    provider = _provider(_fake_client(models=SimpleNamespace(generate_content=generate_content)))

    await provider.generate(["extract"], operation="test", response_schema=AssessmentResult)

    config = generate_content.await_args.kwargs["config"]
    assert config.response_mime_type == "application/json"
    assert config.response_schema is AssessmentResult
    assert not config.tools


@pytest.mark.asyncio
async def test_generate_empty_text_raises_no_response():
    generate_content = AsyncMock(return_value=SimpleNamespace(text=None))
    provider = _provider(_fake_client(models=SimpleNamespace(generate_content=generate_content)))

    with pytest.raises(ForensicsError) as exc_info:
        await provider.generate(["hello"], operation="test")

    assert exc_info.value.code == ErrorCode.AI_NO_RESPONSE
    assert "No response from Gemini" in exc_info.value.message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "expected"),
    [(429, ErrorCode.AI_RATE_LIMITED), (500, ErrorCode.AI_NO_RESPONSE)],
)
async def test_generate_maps_api_errors(status, expected):
    generate_content = AsyncMock(side_effect=_api_error(status))
    provider = _provider(_fake_client(models=SimpleNamespace(generate_content=generate_content)))

    with pytest.raises(ForensicsError) as exc_info:
        await provider.generate(["hello"], operation="test")

    assert exc_info.value.code == expected


@pytest.mark.asyncio
async def test_wait_until_active_polls_file_state():
    states = iter(["PROCESSING", "ACTIVE"])

    async def get(name):
        return SimpleNamespace(
            name=name, uri="https://gen.example/f", mime_type="video/mp4", state=next(states)
        )

    provider = _provider(_fake_client(files=SimpleNamespace(get=get)))
    pending = UploadedFile(name="files/1", uri="", mime_type="video/mp4", state="PROCESSING")

    active = await provider.wait_until_active(pending, interval_seconds=0, max_attempts=5)

    assert active.state == "ACTIVE"
    assert active.uri == "https://gen.example/f"


@pytest.mark.asyncio
async def test_wait_until_active_times_out():
    get = AsyncMock(
        return_value=SimpleNamespace(name="files/1", uri="", mime_type="video/mp4", state="PROCESSING")
    )
    provider = _provider(_fake_client(files=SimpleNamespace(get=get)))
    pending = UploadedFile(name="files/1", uri="", mime_type="video/mp4", state="PROCESSING")

    with pytest.raises(ForensicsError) as exc_info:
        await provider.wait_until_active(pending, interval_seconds=0, max_attempts=3)

    assert exc_info.value.code == ErrorCode.MEDIA_PROCESSING_TIMEOUT
    assert get.await_count == 3


@pytest.mark.asyncio
async def test_wait_until_active_failed_state():
    get = AsyncMock(
        return_value=SimpleNamespace(name="files/1", uri="", mime_type="video/mp4", state="FAILED")
    )
    provider = _provider(_fake_client(files=SimpleNamespace(get=get)))
    pending = UploadedFile(name="files/1", uri="", mime_type="video/mp4", state="PROCESSING")

    with pytest.raises(ForensicsError) as exc_info:
        await provider.wait_until_active(pending, interval_seconds=0, max_attempts=3)

    assert exc_info.value.code == ErrorCode.MEDIA_PROCESSING_FAILED


@pytest.mark.asyncio
async def test_delete_file_swallows_api_errors():
    delete = AsyncMock(side_effect=_api_error(404))
    provider = _provider(_fake_client(files=SimpleNamespace(delete=delete)))

    await provider.delete_file("files/1")

    delete.assert_awaited_once_with(name="files/1")


@pytest.mark.asyncio
async def test_interactions():
    create = AsyncMock(return_value=SimpleNamespace(id="int-42"))
    get = AsyncMock(
        return_value=SimpleNamespace(status="COMPLETED", outputs=[SimpleNamespace(text="report")])
    )
    provider = _provider(_fake_client(interactions=SimpleNamespace(create=create, get=get)))

    interaction_id = await provider.create_interaction("research this charity")
    snapshot = await provider.get_interaction(interaction_id)

    assert interaction_id == "int-42"
    assert create.await_args.kwargs["background"] is True
    assert create.await_args.kwargs["input"] == "research this charity"
    assert snapshot.status == "completed"
    assert extract_raw_output(snapshot.outputs) == "report"
