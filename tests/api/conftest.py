import httpx
import pytest
from fastapi.testclient import TestClient

from backend.main import create_app
from farm_services.profile_store import FarmProfile, ProfileStore
from farm_services.video_store import VideoStore
from farm_services.weather_client import WeatherClient
from rag_pipeline.chat_pipeline import ChatPipeline
from rag_pipeline.embedder import Embedder
from rag_pipeline.llm_engine import GeminiClient
from rag_pipeline.retriever import ForumRetriever
from tests.conftest import FakeCollection, FakeFetcher, FakeModel, make_genai_client

STORAGE = "https://storage.test/videos"


def weather_payload():
    return {"periods": [{
        "name": "Tonight", "temperature": 55, "temperatureUnit": "F",
        "shortForecast": "Clear", "windSpeed": "5 mph", "windDirection": "S",
        "startTime": "2026-10-19T18:00:00-05:00", "endTime": "2026-10-20T06:00:00-05:00",
        "isDaytime": False, "probabilityOfPrecipitation": {"value": 10},
    }]}


@pytest.fixture
def collection():
    return FakeCollection("aphids reported in corn", distance=0.18)


@pytest.fixture
def genai_client():
    return make_genai_client("Scout for aphids weekly.")


@pytest.fixture
def fetcher():
    return FakeFetcher({})


@pytest.fixture
def weather_handler():
    return lambda request: httpx.Response(200, json=weather_payload())


@pytest.fixture
def app(tmp_path, collection, genai_client, fetcher, weather_handler):
    app = create_app()
    app.state.profile_store = ProfileStore(str(tmp_path / "profiles.json"))
    app.state.video_store = VideoStore(base_url=STORAGE)
    app.state.weather_client = WeatherClient(
        base_url="https://weather.test/forecast",
        client=httpx.AsyncClient(transport=httpx.MockTransport(weather_handler)),
    )
    app.state.chat_pipeline = ChatPipeline(
        embedder        = Embedder(model_name="fake", model=FakeModel()),
        retriever       = ForumRetriever(collection),
        generator       = GeminiClient(api_key="k", client=genai_client),
        fetcher         = fetcher,
        max_attachments = 2,
    )
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def onboarded(app):
    """An onboarded user u1 in Evanston with two videos."""
    store = app.state.profile_store
    store.create(FarmProfile(
        user_id="u1", first_name="Ada", last_name="Lovelace", city="Evanston",
        state="IL", country="USA", latitude=42.05, longitude=-87.68, plot_size=50,
    ))
    store.add_video("u1", "north.mp4")
    store.add_video("u1", "south.mp4")
    return {"X-User-Id": "u1"}
