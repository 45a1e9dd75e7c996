"""Tutorial topics, YouTube lessons, views and reviews."""

import pytest

from app.crud.tutorials import TutorialCRUD, extract_youtube_id, youtube_thumbnail
from app.crud.user import UserCRUD
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError

VIDEO = "dQw4w9WgXcQ"


@pytest.mark.parametrize("url", [
    f"https://www.youtube.com/watch?v={VIDEO}",
    f"https://www.youtube.com/watch?v={VIDEO}&t=42s",
    f"https://youtu.be/{VIDEO}?si=share",
    f"https://www.youtube.com/embed/{VIDEO}",
    f"https://www.youtube.com/v/{VIDEO}",
    f"  {VIDEO}  ",
])
def test_extract_youtube_id(url):
    assert extract_youtube_id(url) == VIDEO


@pytest.mark.parametrize("url", ["", "https://vimeo.com/12345", "https://youtu.be/short", "not a video"])
def test_extract_youtube_id_rejects_other_urls(url):
    assert extract_youtube_id(url) is None


def test_thumbnail_falls_back_to_hq():
    assert youtube_thumbnail(VIDEO, "huge") == f"https://img.youtube.com/vi/{VIDEO}/hqdefault.jpg"


@pytest.fixture
def tutorials(store):
    return TutorialCRUD(store)


@pytest.fixture
def topic(tutorials):
    return tutorials.create_topic({"title": "Python", "is_published": True, "lessons_count": 99}, "admin")


def test_topics_are_ordered_and_published(tutorials, topic):
    draft = tutorials.create_topic({"title": "Rascunho"}, "admin")
    assert topic["order"] == 0
    assert topic["lessons_count"] == 0
    assert draft["order"] == 1

    assert [t["id"] for t in tutorials.list_topics()] == [topic["id"]]
    assert len(tutorials.list_topics(published_only=False)) == 2
    with pytest.raises(NotFoundError):
        tutorials.get_topic_with_lessons(draft["id"])


def test_lessons_parse_the_video(tutorials, topic):
    first = tutorials.create_lesson(topic["id"], {"title": "Intro", "youtube_url": f"https://youtu.be/{VIDEO}"})
    assert first["youtube_id"] == VIDEO
    assert first["embed_url"] == f"https://www.youtube.com/embed/{VIDEO}"
    assert first["order"] == 0
    second = tutorials.create_lesson(topic["id"], {"title": "Listas", "youtube_url": VIDEO})
    assert second["order"] == 1

    with pytest.raises(ValidationError):
        tutorials.create_lesson(topic["id"], {"title": "Quebrado", "youtube_url": "https://vimeo.com/1"})

    full = tutorials.get_topic_with_lessons(topic["id"])
    assert full["lessons_count"] == 2
    assert [lesson["title"] for lesson in full["lessons"]] == ["Intro", "Listas"]

    tutorials.delete_lesson(first["id"])
    assert tutorials.require(topic["id"])["lessons_count"] == 1


def test_views_and_completion_count_once(tutorials, topic, make_user, store):
    alice = make_user("alice")
    bob = make_user("bob")
    lesson = tutorials.create_lesson(topic["id"], {"title": "Intro", "youtube_url": VIDEO})

    assert tutorials.record_view(alice, lesson["id"])["recorded"] is True
    assert tutorials.record_view(alice, lesson["id"])["recorded"] is False
    tutorials.record_view(bob, lesson["id"])

    assert tutorials.complete_lesson(alice, lesson["id"]) == {"completed": True}
    assert tutorials.complete_lesson(alice, lesson["id"]) == {"completed": False}
    assert UserCRUD(store).get_profile("alice")["completed_modules"] == 1

    assert tutorials.overall_stats() == {"total_views": 2, "unique_viewers": 2, "completions": 1}
    stats = tutorials.lesson_stats()
    assert len(stats) == 1
    assert stats[0]["views"] == 2
    assert stats[0]["completions"] == 1
    assert stats[0]["topic_title"] == "Python"


def test_reviews(tutorials, topic, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    review = tutorials.add_review(alice, topic["id"], 5, "  Muito bom  ")
    assert review["comment"] == "Muito bom"
    assert review["is_approved"] is True
    tutorials.add_review(bob, topic["id"], 2)
    with pytest.raises(ConflictError):
        tutorials.add_review(alice, topic["id"], 1)

    assert tutorials.average_rating(topic["id"]) == {"average": 3.5, "count": 2}
    tutorials.set_review_approval(f"bob_{topic['id']}", False)
    assert tutorials.average_rating(topic["id"]) == {"average": 5.0, "count": 1}
    assert len(tutorials.list_reviews(topic["id"], approved_only=False)) == 2


def test_delete_topic_removes_its_lessons(tutorials, topic):
    tutorials.create_lesson(topic["id"], {"title": "Intro", "youtube_url": VIDEO})
    tutorials.create_lesson(topic["id"], {"title": "Listas", "youtube_url": VIDEO})
    assert tutorials.delete_topic(topic["id"]) == 2
    assert tutorials.list_lessons(topic["id"]) == []
    with pytest.raises(NotFoundError):
        tutorials.delete_topic(topic["id"])
