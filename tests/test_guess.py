import pytest

from cityguess.exceptions import CityNotFound, InvalidToken, UserNotFound
from cityguess.models.game import City, GuessRequest
from cityguess.services.cities import CityCatalogue
from cityguess.services.guess import GuessOrchestrator


@pytest.fixture
def test_cities():
    return CityCatalogue({
        "1": City(city="Testville", state="New Jersey", latitude=40.0, longitude=-74.0, population="1000", rank="1"),
        "2": City(city="Farville", state="California", latitude=34.0, longitude=-118.0, population="500", rank="2"),
    })


@pytest.fixture
def orchestrator(verifier, test_cities, rank_store):
    return GuessOrchestrator(verifier, test_cities, rank_store, max_points=5000, decay_km=2000.0)


async def test_exact_guess_scores_maximum(orchestrator, verifier, make_user):
    user_id = await make_user("a@example.com")
    token = verifier.issue_token(user_id, "a@example.com")

    result = await orchestrator.submit(token, GuessRequest(lat=40.0, lng=-74.0, city_id="1"))

    assert result.distance_km == 0.0
    assert result.score == 5000
    assert result.total_score == 5000
    assert result.num_guesses == 1
    assert result.rank == 1
    assert result.city.city == "Testville"


async def test_guess_a_degree_off(orchestrator, verifier, make_user):
    user_id = await make_user("a@example.com")
    token = verifier.issue_token(user_id, "a@example.com")

    result = await orchestrator.submit(token, GuessRequest(lat=41.0, lng=-74.0, city_id="1"))

    assert result.distance_km == pytest.approx(111.195, abs=0.01)
    assert result.distance_miles == pytest.approx(69.09, abs=0.01)
    assert 0 < result.score < 5000


async def test_scores_accumulate(orchestrator, verifier, make_user):
    user_id = await make_user("a@example.com")
    token = verifier.issue_token(user_id, "a@example.com")

    first = await orchestrator.submit(token, GuessRequest(lat=40.0, lng=-74.0, city_id="1"))
    second = await orchestrator.submit(token, GuessRequest(lat=34.0, lng=-118.0, city_id="2"))

    assert second.total_score == first.score + second.score
    assert second.num_guesses == 2


async def test_anonymous_guess_is_rejected_before_scoring(orchestrator, rank_store, make_user):
    user_id = await make_user("a@example.com")

    with pytest.raises(InvalidToken):
        await orchestrator.submit(None, GuessRequest(lat=40.0, lng=-74.0, city_id="1"))

    entry = await rank_store.get_rank(user_id)
    assert entry.num_guesses == 0


async def test_unknown_city_is_not_scored(orchestrator, verifier, rank_store, make_user):
    user_id = await make_user("a@example.com")
    token = verifier.issue_token(user_id, "a@example.com")

    with pytest.raises(CityNotFound):
        await orchestrator.submit(token, GuessRequest(lat=40.0, lng=-74.0, city_id="999"))

    entry = await rank_store.get_rank(user_id)
    assert entry.num_guesses == 0
    assert entry.total_score == 0


async def test_token_for_deleted_user(orchestrator, verifier, db):
    token = verifier.issue_token(4242, "ghost@example.com")
    with pytest.raises(UserNotFound):
        await orchestrator.submit(token, GuessRequest(lat=40.0, lng=-74.0, city_id="1"))
