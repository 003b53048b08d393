"""
Tests for application wiring
"""

import json

from learnhub.app import LearnHubApp
from learnhub.config import Settings


def make_settings(tmp_path, **overrides):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'db' / 'learnhub.db'}",
        content_dir=str(tmp_path / "courses"),
        **overrides,
    )


class TestLearnHubApp:
    """Test LearnHubApp start-up"""

    def test_start_without_content(self, tmp_path):
        app = LearnHubApp(make_settings(tmp_path))
        app.start()

        assert app.content_store.list_course_ids() == []
        assert (tmp_path / "db" / "learnhub.db").exists()

    def test_points_config_from_settings(self, tmp_path):
        app = LearnHubApp(make_settings(tmp_path, correct_answer_points=7))

        assert app.points_service.config.correct_answer_points == 7

    def test_answer_flow(self, tmp_path):
        course_dir = tmp_path / "courses" / "basics"
        course_dir.mkdir(parents=True)
        (course_dir / "root.json").write_text(json.dumps({"name": "Basics"}))
        (course_dir / "l1.json").write_text(
            json.dumps(
                {
                    "lessonId": "l1",
                    "exercises": [{"id": "q1", "type": "true_false", "correctAnswer": True}],
                }
            )
        )

        app = LearnHubApp(make_settings(tmp_path))
        app.start()
        user = app.user_service.create_user("alice", "alice@example.com")

        result = app.exercise_service.submit_answer(user["id"], "basics", "l1", "q1", True)

        assert result.is_correct is True
        assert app.points_service.get_user_total_points(user["id"]).total_points == 10
