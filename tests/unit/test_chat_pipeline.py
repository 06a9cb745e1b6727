import pytest

from rag_pipeline.chat_pipeline import FALLBACK_MESSAGE, ChatPipeline, ChatState
from rag_pipeline.embedder import Embedder
from rag_pipeline.llm_engine import GeminiClient
from rag_pipeline.prompt_builder import FORUM_BLOCK_END, FORUM_BLOCK_START
from rag_pipeline.retriever import ForumRetriever
from tests.conftest import BrokenModel, DocumentlessCollection, FakeCollection, FakeFetcher, make_genai_client, videos


def _sent_parts(genai_client):
    return genai_client.aio.models.generate_content.call_args.kwargs["contents"][0].parts


def _pipeline(embedder, retriever, genai_client, fetcher=None, max_attachments=2):
    return ChatPipeline(
        embedder        = embedder,
        retriever       = retriever,
        generator       = GeminiClient(api_key="k", client=genai_client),
        fetcher         = fetcher or FakeFetcher({}),
        max_attachments = max_attachments,
    )


@pytest.mark.asyncio
async def test_full_happy_path_visits_every_state(embedder, genai_client):
    retriever = ForumRetriever(FakeCollection("aphids reported in corn", distance=0.18))
    pipeline = _pipeline(embedder, retriever, genai_client)

    outcome = await pipeline.answer("pest issues", {"city": "Evanston"})

    assert outcome.ok
    assert outcome.text == "Irrigate early in the morning."
    assert outcome.forum_context_used
    assert outcome.trace == [
        ChatState.IDLE, ChatState.EMBEDDING, ChatState.RETRIEVING,
        ChatState.ASSEMBLING, ChatState.GENERATING, ChatState.DONE,
    ]
    prompt = _sent_parts(genai_client)[0].text
    assert prompt.index(FORUM_BLOCK_START) < prompt.index("aphids reported in corn") < prompt.index(FORUM_BLOCK_END)
    assert prompt.endswith("pest issues")


@pytest.mark.asyncio
async def test_irrigation_scenario_sends_single_text_part(embedder, empty_retriever, genai_client):
    pipeline = _pipeline(embedder, empty_retriever, genai_client)

    outcome = await pipeline.answer("When should I irrigate?", {"city": "Evanston", "plot_size": 50})

    assert outcome.ok
    assert not outcome.forum_context_used
    parts = _sent_parts(genai_client)
    assert len(parts) == 1
    assert "Evanston" in parts[0].text and "50" in parts[0].text
    assert parts[0].text.endswith("When should I irrigate?")
    assert FORUM_BLOCK_START not in parts[0].text


@pytest.mark.asyncio
async def test_embedding_failure_still_answers(genai_client):
    retriever = ForumRetriever(FakeCollection("never used", distance=0.0))
    pipeline = _pipeline(Embedder(model_name="x", model=BrokenModel()), retriever, genai_client)

    outcome = await pipeline.answer("pest issues", {"city": "Evanston"})

    assert outcome.ok
    assert outcome.text
    assert ChatState.RETRIEVING not in outcome.trace
    assert outcome.trace == [
        ChatState.IDLE, ChatState.EMBEDDING, ChatState.ASSEMBLING,
        ChatState.GENERATING, ChatState.DONE,
    ]
    assert retriever.collection.queries == []


@pytest.mark.asyncio
async def test_retrieval_failure_degrades_to_no_match(embedder, genai_client):
    pipeline = _pipeline(embedder, ForumRetriever(FakeCollection(fail=True)), genai_client)

    outcome = await pipeline.answer("pest issues")

    assert outcome.ok
    assert not outcome.forum_context_used
    assert FORUM_BLOCK_START not in _sent_parts(genai_client)[0].text


@pytest.mark.asyncio
async def test_match_without_document_text_is_no_forum_context(embedder, genai_client):
    pipeline = _pipeline(embedder, ForumRetriever(DocumentlessCollection()), genai_client)

    outcome = await pipeline.answer("pest issues")

    assert outcome.ok
    assert outcome.state == ChatState.DONE
    assert not outcome.forum_context_used
    assert FORUM_BLOCK_START not in _sent_parts(genai_client)[0].text


@pytest.mark.asyncio
async def test_blank_query_skips_embedding_and_retrieval(genai_client):
    model_calls = []

    class RecordingModel:
        def encode(self, texts, **kwargs):
            model_calls.append(texts)
            raise AssertionError("should not embed")

    pipeline = _pipeline(Embedder(model_name="x", model=RecordingModel()), ForumRetriever(FakeCollection()), genai_client)

    outcome = await pipeline.answer("   ", {"city": "Evanston"})

    assert outcome.ok
    assert outcome.trace == [ChatState.IDLE, ChatState.ASSEMBLING, ChatState.GENERATING, ChatState.DONE]
    assert model_calls == []


@pytest.mark.asyncio
async def test_generation_failure_returns_fallback(embedder):
    genai_client = make_genai_client(error=ConnectionError("upstream reset"))
    retriever = ForumRetriever(FakeCollection("aphids reported in corn", distance=0.1))
    pipeline = _pipeline(embedder, retriever, genai_client)

    outcome = await pipeline.answer("pest issues")

    assert not outcome.ok
    assert outcome.text == FALLBACK_MESSAGE
    assert outcome.state == ChatState.ERRORED
    assert outcome.trace[-1] == ChatState.ERRORED
    assert "upstream reset" not in outcome.text


@pytest.mark.asyncio
async def test_unexpected_error_is_errored_state(embedder, empty_retriever, genai_client):
    pipeline = _pipeline(embedder, empty_retriever, genai_client)
    pipeline.system_template = "{missing_placeholder}"

    outcome = await pipeline.answer("pest issues")

    assert not outcome.ok
    assert outcome.state == ChatState.ERRORED
    assert outcome.trace[-2] == ChatState.ASSEMBLING
    assert outcome.text == FALLBACK_MESSAGE


@pytest.mark.asyncio
async def test_three_videos_cap_two_attached_in_order(embedder, empty_retriever, genai_client):
    items = videos(3)
    fetcher = FakeFetcher({v.url: v.name.encode() for v in items})
    pipeline = _pipeline(embedder, empty_retriever, genai_client, fetcher=fetcher)

    outcome = await pipeline.answer("how do my fields look?", {}, items)

    assert outcome.videos_attached == 2
    parts = _sent_parts(genai_client)
    assert len(parts) == 3
    assert parts[0].text.endswith("how do my fields look?")
    assert [p.inline_data.data for p in parts[1:]] == [b"field0.mp4", b"field1.mp4"]


@pytest.mark.asyncio
async def test_failed_video_is_omitted(embedder, empty_retriever, genai_client):
    items = videos(2)
    fetcher = FakeFetcher({items[1].url: b"second"})
    pipeline = _pipeline(embedder, empty_retriever, genai_client, fetcher=fetcher)

    outcome = await pipeline.answer("check crops", {}, items)

    assert outcome.ok
    assert outcome.videos_attached == 1
    parts = _sent_parts(genai_client)
    assert [p.inline_data.data for p in parts[1:]] == [b"second"]
