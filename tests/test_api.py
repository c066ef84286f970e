"""HTTP tests for the learner API."""

from datetime import datetime, timedelta, timezone

from lingoleap.db import Base, engine
from lingoleap.learning_path import learning_path_system

from conftest import login


class TestAuth:
    """Tests for registration, login and the current user."""

    def test_register_login_and_me(self, client, learner):
        """A registered learner can sign in and read their profile."""
        user, headers = learner
        assert user["id"] == 2
        assert user["level"] == "beginner"
        response = client.get("/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["username"] == "amy"

    def test_duplicate_username(self, client, learner):
        """Usernames are unique."""
        response = client.post(
            "/auth/register",
            json={"username": "amy", "password": "another1", "first_name": "A", "last_name": "B"},
        )
        assert response.status_code == 409

    def test_bad_password(self, client, learner):
        """Wrong passwords are rejected with 401."""
        response = client.post("/auth/token", data={"username": "amy", "password": "nope"})
        assert response.status_code == 401

    def test_requires_token(self, client):
        """Protected endpoints need a bearer token."""
        assert client.get("/auth/me").status_code == 401

    def test_update_profile(self, client, learner):
        """Learners can change their own level."""
        _, headers = learner
        response = client.patch("/api/users/me", json={"level": "intermediate"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["level"] == "intermediate"


class TestUsers:
    """Tests for per-learner resources."""

    def test_other_learner_is_forbidden(self, client, learner):
        """Learners cannot read another learner's stats."""
        _, headers = learner
        assert client.get("/api/users/1/stats", headers=headers).status_code == 403

    def test_public_profile(self, client):
        """Profiles are looked up by username."""
        assert client.get("/api/users/liming").json()["xp"] == 1250
        assert client.get("/api/users/ghost").status_code == 404

    def test_activity_feed(self, client, sample_learner):
        """The feed is newest first and honours the limit."""
        response = client.get("/api/users/1/activities", params={"limit": 2}, headers=sample_learner)
        assert response.status_code == 200
        feed = response.json()
        assert len(feed) == 2
        assert feed[0]["type"] == "lesson_completed"

    def test_vocabulary_practice(self, client, sample_learner):
        """Practising a word records mastery; unknown words are 404."""
        response = client.post("/api/users/1/vocabulary/1/practice", json={"correct": True}, headers=sample_learner)
        assert response.status_code == 200
        assert response.json()["mastery_level"] == 10
        missing = client.post("/api/users/1/vocabulary/999/practice", json={"correct": True}, headers=sample_learner)
        assert missing.status_code == 404

    def test_adaptive_endpoints(self, client, sample_learner):
        """Learners without history get the default difficulty."""
        response = client.post("/api/users/1/adaptive-difficulty", headers=sample_learner)
        assert response.status_code == 200
        assert response.json()["optimal_difficulty"] == 0.3
        response = client.get("/api/users/1/recommendations", headers=sample_learner)
        assert response.status_code == 200
        assert response.json()["profile"]["current_level"] == "intermediate"


class TestLessonsAndProgress:
    """Tests for lessons and the lesson completion flow."""

    def test_list_and_filter_lessons(self, client):
        """Lessons can be listed, filtered and fetched."""
        assert len(client.get("/api/lessons").json()) == 8
        grammar = client.get("/api/lessons", params={"category": "grammar"}).json()
        assert [lesson["id"] for lesson in grammar] == [4]
        assert client.get("/api/lessons/99").status_code == 404

    def test_complete_lesson(self, client, learner):
        """The first completion awards lesson XP, badges and a challenge step."""
        user, headers = learner
        body = {"user_id": user["id"], "lesson_id": 3, "completed": True, "score": 95, "time_spent": 20}
        response = client.post("/api/progress", json=body, headers=headers)
        assert response.status_code == 200, response.text
        result = response.json()
        assert result["first_completion"] is True
        # 40 lesson XP + First Steps (50) + Pronunciation Pro (75)
        assert result["xp_gained"] == 165
        assert result["xp"] == 165
        assert result["xp_level"] == 2
        assert result["streak"] == 1
        assert {a["title"] for a in result["achievements_unlocked"]} == {"First Steps", "Pronunciation Pro"}
        assert result["challenge"]["current_count"] == 1

        again = client.post("/api/progress", json=body, headers=headers).json()
        assert again["first_completion"] is False
        assert again["xp_gained"] == 0
        assert again["progress"]["attempts"] == 2

        stats = client.get(f"/api/users/{user['id']}/stats", headers=headers).json()
        assert stats["lessons_completed"] == 1
        assert stats["achievements_earned"] == 2

    def test_partial_attempt(self, client, learner):
        """Unfinished attempts are stored without rewards."""
        user, headers = learner
        body = {"user_id": user["id"], "lesson_id": 2, "completed": False, "score": 30}
        result = client.post("/api/progress", json=body, headers=headers).json()
        assert result["xp_gained"] == 0
        assert result["progress"]["completed"] is False

    def test_progress_checks(self, client, learner):
        """Progress for others or for unknown lessons is refused."""
        _, headers = learner
        other = client.post("/api/progress", json={"user_id": 1, "lesson_id": 3, "completed": True}, headers=headers)
        assert other.status_code == 403
        missing = client.post("/api/progress", json={"user_id": 2, "lesson_id": 99, "completed": True}, headers=headers)
        assert missing.status_code == 404


class TestAchievementsApi:
    """Tests for achievement, streak and leaderboard endpoints."""

    def test_public_list_hides_secrets(self, client):
        """Secret achievements are not listed publicly."""
        titles = [a["title"] for a in client.get("/api/achievements").json()]
        assert len(titles) == 5
        assert "Monthly Master" not in titles

    def test_leaderboard(self, client, learner):
        """The XP board ranks the sample learner first; unknown boards are 400."""
        board = client.get("/api/achievements/leaderboard/xp").json()
        assert board[0]["rank"] == 1
        assert board[0]["display_name"] == "Li Ming"
        assert client.get("/api/achievements/leaderboard/foo").status_code == 400

    def test_streak_freeze(self, client, learner):
        """Freezes need prior activity and count down."""
        user, headers = learner
        assert client.post("/api/achievements/streak/freeze", headers=headers).status_code == 409
        streak = client.post("/api/achievements/streak", headers=headers).json()
        assert streak["streak"] == 1
        response = client.post("/api/achievements/streak/freeze", headers=headers)
        assert response.status_code == 200
        assert response.json()["freezes_remaining"] == 2

    def test_share(self, client, sample_learner):
        """Only earned achievements can be shared."""
        assert client.post("/api/achievements/3/share", headers=sample_learner).json()["share_count"] == 1
        assert client.post("/api/achievements/1/share", headers=sample_learner).status_code == 404


class TestDailyChallenge:
    """Tests for the daily challenge endpoints."""

    def test_complete_challenge(self, client, sample_learner):
        """Three steps complete the speaking challenge and award its XP."""
        challenge = client.get("/api/daily-challenge").json()
        assert challenge["completion_requirement"] == {"type": "speaking", "count": 3}
        steps = [client.post(f"/api/daily-challenge/{challenge['id']}/progress", headers=sample_learner).json() for _ in range(3)]
        assert [s["just_completed"] for s in steps] == [False, False, True]
        assert steps[-1]["xp_gained"] == 100
        assert client.get("/api/users/liming").json()["xp"] == 1350

    def test_unknown_challenge(self, client, sample_learner):
        """Unknown challenges are 404."""
        assert client.post("/api/daily-challenge/99/progress", headers=sample_learner).status_code == 404


class TestVocabularyApi:
    """Tests for the word list and review queue."""

    def test_filters(self, client):
        """Words can be filtered by level."""
        words = client.get("/api/vocabulary", params={"level": "beginner"}).json()
        assert words
        assert all(w["level"] == "beginner" for w in words)

    def test_review_queue(self, client, sample_learner):
        """Freshly practised words are not yet due."""
        client.post("/api/users/1/vocabulary/1/practice", json={"correct": True}, headers=sample_learner)
        assert client.get("/api/vocabulary/review", headers=sample_learner).json() == []


class TestLearningPathApi:
    """Tests for the learning path endpoints."""

    def test_recommendations(self, client, sample_learner):
        """The sample learner gets ten recommendations, grammar practice first."""
        response = client.get("/api/learning-path/1/recommendations", headers=sample_learner)
        assert response.status_code == 200
        recommendations = response.json()
        assert len(recommendations) == 10
        assert recommendations[0]["id"] == "practice_grammar"
        assert client.get("/api/learning-path/1/next", headers=sample_learner).json()["id"] == "practice_grammar"

    def test_assess(self, client, sample_learner):
        """Assessment averages level and score; unknown skills are 400."""
        bad = client.post("/api/learning-path/1/assess", json={"skill_area": "cooking", "score": 80}, headers=sample_learner)
        assert bad.status_code == 400
        good = client.post("/api/learning-path/1/assess", json={"skill_area": "grammar", "score": 80}, headers=sample_learner)
        assert good.json()["level"] == 69

    def test_other_learner_path(self, client, sample_learner, learner):
        """Learners cannot read each other's paths."""
        assert client.get("/api/learning-path/2", headers=sample_learner).status_code == 403

    def test_new_learner_path(self, client, learner):
        """Registration creates a path at the beginner baseline."""
        user, headers = learner
        path = client.get(f"/api/learning-path/{user['id']}", headers=headers).json()
        assert path["skill_assessment"]["grammar"]["level"] == 30

    def test_record_activity(self, client, sample_learner):
        """Activities are recorded with an id."""
        body = {"topic": "articles", "skill_area": "grammar", "difficulty": 50, "time_spent": 10, "score": 70, "accuracy": 70}
        response = client.post("/api/learning-path/1/activities", json=body, headers=sample_learner)
        assert response.status_code == 201
        assert response.json()["id"].startswith("activity_")


class TestDashboardApi:
    """Tests for dashboard goals and recommendations."""

    def test_goal_lifecycle(self, client, sample_learner):
        """Goals are created, listed and completed."""
        deadline = (datetime.now(timezone.utc) + timedelta(days=7)).isoformat()
        goal = client.post(
            "/api/dashboard/goals",
            json={"type": "vocabulary", "title": "Learn 20 words", "target_value": 20, "deadline": deadline},
            headers=sample_learner,
        )
        assert goal.status_code == 201
        goal_id = goal.json()["id"]
        assert [g["id"] for g in client.get("/api/dashboard/goals/1", headers=sample_learner).json()] == [goal_id]
        updated = client.patch(f"/api/dashboard/goals/{goal_id}/progress", json={"progress": 20}, headers=sample_learner)
        assert updated.json()["status"] == "completed"
        missing = client.patch("/api/dashboard/goals/nope/progress", json={"progress": 1}, headers=sample_learner)
        assert missing.status_code == 404

    def test_goal_of_other_learner(self, client, sample_learner, learner):
        """Goals of other learners look missing."""
        deadline = (datetime.now(timezone.utc) + timedelta(days=7)).isoformat()
        goal_id = client.post(
            "/api/dashboard/goals",
            json={"type": "grammar", "title": "Tenses", "target_value": 5, "deadline": deadline},
            headers=sample_learner,
        ).json()["id"]
        _, headers = learner
        assert client.patch(f"/api/dashboard/goals/{goal_id}/progress", json={"progress": 1}, headers=headers).status_code == 404

    def test_recommendations(self, client, sample_learner):
        """Weak skills show up as practice recommendations."""
        recommendations = client.get("/api/dashboard/recommendations/1", headers=sample_learner).json()
        assert recommendations[0]["title"] == "Improve writing"

    def test_streak(self, client, sample_learner):
        """Recording a study day starts the dashboard streak."""
        assert client.post("/api/dashboard/streak/1", headers=sample_learner).json()["current_streak"] == 1


def test_login_helper_for_sample_learner(client, sample_learner):
    """The seeded learner can sign in again with the same password."""
    assert login(client, "liming", "liming-pass")["Authorization"].startswith("Bearer ")


class TestLearningPathOwnership:
    """Tests tying in-memory learning paths to persisted learners."""

    def test_unseeded_database_first_learner_gets_own_path(self, client):
        """Without sample content the first learner starts from the beginner baseline."""
        learning_path_system.reset()
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        response = client.post(
            "/auth/register",
            json={"username": "bob", "password": "secret123", "first_name": "Bob", "last_name": "Lee"},
        )
        assert response.json()["id"] == 1
        headers = login(client, "bob", "secret123")
        path = client.get("/api/learning-path/1", headers=headers).json()
        assert path["current_level"] == "beginner"
        assert path["skill_assessment"]["grammar"]["level"] == 30
        assert path["progress_goals"] == []
        assert path["learning_history"] == []

    def test_path_rebuilt_after_restart(self, client, learner):
        """Learners whose in-memory path is gone get a fresh one and keep feeding it."""
        user, headers = learner
        learning_path_system.reset()
        response = client.get(f"/api/learning-path/{user['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json()["current_level"] == "beginner"

        learning_path_system.reset()
        body = {"user_id": user["id"], "lesson_id": 3, "completed": True, "score": 70}
        assert client.post("/api/progress", json=body, headers=headers).status_code == 200
        history = learning_path_system.get_learning_path(user["id"]).learning_history
        assert [(a.skill_area, a.topic) for a in history] == [("speaking", "school")]

    def test_null_preference_is_ignored(self, client, sample_learner):
        """Explicit nulls leave preferences unchanged instead of failing."""
        response = client.patch(
            "/api/learning-path/1/preferences",
            json={"learning_style": None, "session_duration": 45},
            headers=sample_learner,
        )
        assert response.status_code == 200
        assert response.json()["learning_style"] == "mixed"
        assert response.json()["session_duration"] == 45

    def test_level_change_updates_path(self, client, learner):
        """Changing the profile level relabels the existing path."""
        user, headers = learner
        client.patch("/api/users/me", json={"level": "intermediate"}, headers=headers)
        path = client.get(f"/api/learning-path/{user['id']}", headers=headers).json()
        assert path["current_level"] == "intermediate"
