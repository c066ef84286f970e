"""Tests for the adaptive lesson engine."""

from datetime import datetime, timedelta

import pytest

from lingoleap.adaptive import (
    AdaptiveLearningEngine,
    calculate_mastery_levels,
    calculate_optimal_difficulty,
    detect_learning_style,
    get_difficulty_score,
    identify_review_content,
    identify_strengths_weaknesses,
    review_interval_days,
)
from lingoleap.models import Lesson, User, UserProgress

NOW = datetime(2024, 5, 20, 12, 0, 0)


def lesson(lesson_id, topic, level="intermediate", minutes=15, **content):
    return Lesson(
        id=lesson_id, title=f"Lesson {lesson_id}", description="", category="grammar",
        level=level, topic=topic, content=content, xp_reward=25, estimated_minutes=minutes,
        is_offline_available=True,
    )


def progress(lesson_id, score, days_ago=1, time_spent=15, completed=True):
    return UserProgress(
        user_id=1, lesson_id=lesson_id, completed=completed, score=score,
        completed_at=NOW - timedelta(days=days_ago), time_spent=time_spent, attempts=1,
    )


class TestDifficulty:
    """Tests for lesson difficulty and optimal difficulty."""

    def test_level_difficulty(self):
        """Levels map to base difficulties with content modifiers."""
        assert get_difficulty_score(lesson(1, "a", level="beginner")) == pytest.approx(0.2)
        assert get_difficulty_score(lesson(1, "a", level="unknown")) == pytest.approx(0.5)
        hard = lesson(1, "a", level="advanced", minutes=40, complexity="high", vocabulary=list(range(25)))
        assert get_difficulty_score(hard) == pytest.approx(1.0)

    def test_optimal_difficulty_default(self):
        """No scored history starts at 0.3."""
        assert calculate_optimal_difficulty([]) == 0.3
        assert calculate_optimal_difficulty([progress(1, None)]) == 0.3

    def test_optimal_difficulty_raises_for_strong_learners(self):
        """High success pushes difficulty up by 0.1."""
        history = [progress(1, 95) for _ in range(5)]
        assert calculate_optimal_difficulty(history) == pytest.approx(1.0)
        history = [progress(1, 88) for _ in range(5)]
        assert calculate_optimal_difficulty(history) == pytest.approx(0.98)

    def test_optimal_difficulty_lowers_for_struggling_learners(self):
        """Low averages pull difficulty down by 0.1."""
        history = [progress(1, 50) for _ in range(5)]
        assert calculate_optimal_difficulty(history) == pytest.approx(0.4)

    def test_optimal_difficulty_middle(self):
        """Middling results return the average itself."""
        history = [progress(1, 75) for _ in range(5)]
        assert calculate_optimal_difficulty(history) == pytest.approx(0.75)


class TestProfileAnalysis:
    """Tests for mastery, strengths and learning style."""

    def test_mastery_weights_later_scores(self):
        """Later entries carry weight 1.1^index; zero scores are skipped."""
        lessons = [lesson(1, "food")]
        mastery = calculate_mastery_levels([progress(1, 60), progress(1, 80), progress(1, 0)], lessons)
        assert mastery["food"] == pytest.approx((60 + 80 * 1.1) / 2.1)

    def test_strengths_and_weaknesses(self):
        """Topics 10 points away from the average split into strengths and weaknesses."""
        strengths, weaknesses = identify_strengths_weaknesses({"a": 95, "b": 70, "c": 40, "d": 75})
        assert strengths == ["a"]
        assert weaknesses == ["c"]
        assert identify_strengths_weaknesses({}) == ([], [])

    def test_learning_style(self):
        """One clearly dominant style wins; ties are mixed."""
        lessons = [lesson(1, "a", hasAudio=True), lesson(2, "b", hasImages=True)]
        assert detect_learning_style([progress(1, 90), progress(1, 90), progress(2, 50)], lessons) == "auditory"
        assert detect_learning_style([progress(1, 90), progress(2, 90)], lessons) == "mixed"

    def test_review_intervals(self):
        """Better scores wait longer before review."""
        assert [review_interval_days(s) for s in (95, 85, 75, 50)] == [7, 5, 3, 1]

    def test_review_content(self):
        """Only lessons past their interval are due, lowest score minus age first."""
        lessons = [lesson(1, "a"), lesson(2, "b"), lesson(3, "c")]
        history = [progress(1, 95, days_ago=2), progress(2, 60, days_ago=2), progress(3, 75, days_ago=10)]
        due = identify_review_content(history, lessons, NOW)
        assert [l.id for l in due] == [2, 3]


class TestEngine:
    """Tests for AdaptiveLearningEngine."""

    def test_analyze_and_recommend(self):
        """Profiles drive lesson, review and practice recommendations."""
        lessons = [
            lesson(1, "food", level="beginner", hasImages=True),
            lesson(2, "travel", level="beginner", hasImages=True),
            lesson(3, "school", level="beginner"),
            lesson(4, "work", level="intermediate"),
        ]
        history = [
            progress(1, 95, days_ago=8),
            progress(2, 40, days_ago=3),
            progress(3, 70, days_ago=2),
            progress(4, 70, days_ago=60),
        ]
        user = User(id=1, username="u", first_name="U", last_name="", level="beginner")
        engine = AdaptiveLearningEngine()

        profile = engine.analyze_user_performance(user, history, lessons, NOW)
        assert profile.strengths == ["food"]
        assert profile.weaknesses == ["travel"]
        assert "work" not in profile.mastery_levels
        assert profile.current_level == "beginner"

        recommendations = engine.generate_recommendations(profile, lessons, history, NOW)
        assert len(recommendations) <= 5
        assert recommendations[0].type == "lesson"
        assert recommendations[0].content.topic == "travel"
        assert [r.priority for r in recommendations] == sorted((r.priority for r in recommendations), reverse=True)
        review = next(r for r in recommendations if r.type == "review")
        assert review.estimated_time == 9
