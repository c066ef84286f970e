"""Tests for the personalized dashboard."""

from datetime import date, datetime, timedelta, timezone

import pytest

from lingoleap.dashboard import DashboardGoalInput, PersonalizedDashboard
from lingoleap.errors import GoalNotFoundError
from lingoleap.learning_path import AILearningPathSystem, LearningActivityInput


@pytest.fixture
def paths():
    return AILearningPathSystem(sample_user_id=1)


@pytest.fixture
def board(paths):
    return PersonalizedDashboard(paths)


def goal_input(priority="medium", target=10, days=14):
    return DashboardGoalInput(
        type="vocabulary", title=f"{priority} goal", target_value=target,
        deadline=datetime.now(timezone.utc) + timedelta(days=days), priority=priority,
    )


class TestGoals:
    """Tests for dashboard goals."""

    def test_create_and_complete_goal(self, board):
        """Progress is capped at the target and completes the goal."""
        goal = board.create_goal(1, goal_input(target=10))
        assert goal.status == "active"
        updated = board.update_goal_progress(goal.id, 25)
        assert updated.current_value == 10
        assert updated.status == "completed"

    def test_update_unknown_goal(self, board):
        """Unknown goal ids raise GoalNotFoundError."""
        with pytest.raises(GoalNotFoundError):
            board.update_goal_progress("missing", 1)

    def test_goals_sorted_active_then_priority(self, board):
        """Active goals first, then high > medium > low."""
        low = board.create_goal(1, goal_input("low"))
        high = board.create_goal(1, goal_input("high"))
        medium = board.create_goal(1, goal_input("medium"))
        done = board.create_goal(1, goal_input("high", target=1))
        board.update_goal_progress(done.id, 1)
        board.create_goal(2, goal_input("high"))
        assert [g.id for g in board.get_user_goals(1)] == [high.id, medium.id, low.id, done.id]


class TestStudyStreak:
    """Tests for study streak tracking."""

    def test_consecutive_days(self, board):
        """Consecutive calendar days extend the streak."""
        start = date(2024, 5, 5)  # Sunday
        for offset in range(3):
            streak = board.update_study_streak(1, start + timedelta(days=offset))
        assert streak.current_streak == 3
        assert streak.longest_streak == 3
        assert streak.weekly_progress == 3

    def test_same_day_is_unchanged(self, board):
        """Studying twice on one day does not count twice."""
        board.update_study_streak(1, date(2024, 5, 6))
        streak = board.update_study_streak(1, date(2024, 5, 6))
        assert streak.current_streak == 1
        assert streak.weekly_progress == 1

    def test_gap_resets(self, board):
        """Missing a day resets the current streak but keeps the longest."""
        board.update_study_streak(1, date(2024, 5, 6))
        board.update_study_streak(1, date(2024, 5, 7))
        streak = board.update_study_streak(1, date(2024, 5, 10))
        assert streak.current_streak == 1
        assert streak.longest_streak == 2

    def test_weekly_progress_resets_on_sunday(self, board):
        """A new week starting on Sunday resets weekly progress."""
        board.update_study_streak(1, date(2024, 5, 10))  # Friday
        board.update_study_streak(1, date(2024, 5, 11))  # Saturday
        streak = board.update_study_streak(1, date(2024, 5, 12))  # Sunday
        assert streak.current_streak == 3
        assert streak.weekly_progress == 1


class TestRecommendationsAndInsights:
    """Tests for daily recommendations, insights and dashboard achievements."""

    def test_weaknesses_from_learning_path(self, board):
        """The two lowest skills of the sample learner are writing and grammar."""
        weaknesses = board.analyze_weaknesses(1)
        assert [w.skill for w in weaknesses] == ["writing", "grammar"]
        assert "Practice essays" in weaknesses[0].recommended_actions
        assert board.analyze_weaknesses(99) == []

    def test_daily_recommendations(self, board):
        """Weak skills and active goals become recommendations sorted by priority."""
        goal = board.create_goal(1, goal_input("high"))
        recommendations = board.get_daily_recommendations(1)
        assert [r.type for r in recommendations] == ["practice", "practice", "lesson"]
        assert recommendations[0].title == "Improve writing"
        assert recommendations[2].content["goal_id"] == goal.id
        # Same-day calls reuse the generated list
        assert board.get_daily_recommendations(1) is recommendations

    def test_review_items_from_history(self, paths, board):
        """Old, low-scoring activities come back as review items."""
        paths.record_learning_activity(1, LearningActivityInput(
            topic="articles", skill_area="grammar", difficulty=40, time_spent=10, score=60, accuracy=60,
            completed_at=datetime.now(timezone.utc) - timedelta(days=2),
        ))
        items = board.get_items_for_review(1)
        assert items == [{"type": "grammar", "topic": "articles", "last_reviewed": items[0]["last_reviewed"]}]
        types = [r.type for r in board.generate_daily_recommendations(1)]
        assert "review" in types

    def test_insights(self, board):
        """Long streaks and low-confidence skills both surface."""
        start = date.today() - timedelta(days=6)
        for offset in range(7):
            board.update_study_streak(1, start + timedelta(days=offset))
        insights = board.get_learning_insights(1)
        titles = [i.title for i in insights]
        assert "Great Study Streak!" in titles
        assert "Areas for Focus" in titles
        assert board.get_learning_insights(1) is board.insights[1]

    def test_streak_achievements(self, board):
        """A 7-day streak earns Week Warrior."""
        start = date(2024, 5, 1)
        for offset in range(7):
            board.update_study_streak(3, start + timedelta(days=offset))
        assert [a.id for a in board.check_achievements(3)] == ["week-streak"]
        assert board.check_achievements(4) == []
