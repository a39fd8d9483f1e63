"""Driver video list filtering and search."""

from fleetlearn.training.schemas import TrainingVideoResponse
from fleetlearn.training.service import filter_training_videos


def _video(title: str, category: str | None = None, annual: bool = False, description: str | None = None):
    return TrainingVideoResponse(
        assignment_id=f"a-{title}",
        video_id=f"v-{title}",
        title=title,
        description=description,
        category=category,
        is_annual_renewal=annual,
    )


VIDEOS = [
    _video("Hazmat basics", category="Safety", annual=True, description="Placards and spills"),
    _video("Backing up", category="Driving"),
    _video("Fatigue", category="safety", description="Hours of service rules"),
]


def _titles(videos) -> list[str]:
    return [v.title for v in videos]


def test_all_keeps_everything() -> None:
    assert _titles(filter_training_videos(VIDEOS, "all")) == ["Hazmat basics", "Backing up", "Fatigue"]


def test_renewal_keeps_annual_only() -> None:
    assert _titles(filter_training_videos(VIDEOS, "renewal")) == ["Hazmat basics"]


def test_category_is_case_insensitive() -> None:
    assert _titles(filter_training_videos(VIDEOS, "SAFETY")) == ["Hazmat basics", "Fatigue"]


def test_unknown_category_matches_nothing() -> None:
    assert filter_training_videos(VIDEOS, "night-driving") == []


def test_search_matches_title_or_description() -> None:
    assert _titles(filter_training_videos(VIDEOS, "all", "back")) == ["Backing up"]
    assert _titles(filter_training_videos(VIDEOS, "all", "HOURS")) == ["Fatigue"]


def test_search_combines_with_filter() -> None:
    assert _titles(filter_training_videos(VIDEOS, "safety", "spill")) == ["Hazmat basics"]


def test_blank_search_is_ignored() -> None:
    assert len(filter_training_videos(VIDEOS, "all", "   ")) == 3
