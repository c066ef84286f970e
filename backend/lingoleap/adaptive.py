from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from .models import Lesson, User, UserProgress
from .schemas import LessonOut


LEVEL_DIFFICULTY: Dict[str, float] = {
    "beginner": 0.2,
    "intermediate": 0.5,
    "advanced": 0.8,
    "expert": 1.0,
}

STYLE_MARKERS: Dict[str, Tuple[str, ...]] = {
    "visual": ("hasImages", "hasCharts"),
    "auditory": ("hasAudio", "hasSpeaking"),
    "kinesthetic": ("hasInteraction", "hasGames"),
}

RECENT_DAYS = 30
DEFAULT_DIFFICULTY = 0.3
DEFAULT_SESSION_MINUTES = 15.0


class LearningProfile(BaseModel):
    user_id: int
    current_level: str
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    learning_style: Literal["visual", "auditory", "kinesthetic", "mixed"] = "mixed"
    difficulty_preference: float = DEFAULT_DIFFICULTY
    average_session_time: float = DEFAULT_SESSION_MINUTES
    preferred_topics: List[str] = Field(default_factory=list)
    mastery_levels: Dict[str, float] = Field(default_factory=dict)
    last_updated: datetime = Field(default_factory=datetime.utcnow)


class AdaptiveRecommendation(BaseModel):
    type: Literal["lesson", "review", "challenge", "practice"]
    content: LessonOut
    reasoning: str
    difficulty: float
    estimated_time: int
    priority: float


def review_interval_days(score: float) -> int:
    """Days to wait before reviewing content completed with ``score``."""
    if score >= 90:
        return 7
    if score >= 80:
        return 5
    if score >= 70:
        return 3
    return 1


def get_difficulty_score(lesson: Lesson) -> float:
    score = LEVEL_DIFFICULTY.get(lesson.level, 0.5)
    content = lesson.content or {}
    if content.get("complexity") == "high":
        score += 0.1
    if len(content.get("vocabulary") or []) > 20:
        score += 0.05
    if (lesson.estimated_minutes or 0) > 30:
        score += 0.05
    return min(1.0, max(0.1, score))


def calculate_optimal_difficulty(progress_history: Sequence[UserProgress]) -> float:
    if not progress_history:
        return DEFAULT_DIFFICULTY
    recent_scores = [p.score / 100 for p in progress_history if p.score is not None][:10]
    if not recent_scores:
        return DEFAULT_DIFFICULTY

    average = sum(recent_scores) / len(recent_scores)
    success_rate = len([s for s in recent_scores if s >= 0.7]) / len(recent_scores)

    if success_rate > 0.8 and average > 0.85:
        return min(1.0, average + 0.1)
    if success_rate < 0.6 or average < 0.6:
        return max(0.1, average - 0.1)
    return average


def calculate_mastery_levels(progress_history: Sequence[UserProgress], lessons: Sequence[Lesson]) -> Dict[str, float]:
    lesson_map = {lesson.id: lesson for lesson in lessons}
    topic_scores: Dict[str, List[float]] = {}
    for progress in progress_history:
        lesson = lesson_map.get(progress.lesson_id)
        if lesson is None or not progress.score:
            continue
        topic_scores.setdefault(lesson.topic, []).append(progress.score)

    mastery: Dict[str, float] = {}
    for topic, scores in topic_scores.items():
        # Later entries weigh more
        weights = [1.1 ** index for index in range(len(scores))]
        mastery[topic] = sum(s * w for s, w in zip(scores, weights)) / sum(weights)
    return mastery


def identify_strengths_weaknesses(mastery_levels: Dict[str, float]) -> Tuple[List[str], List[str]]:
    if not mastery_levels:
        return [], []
    average = sum(mastery_levels.values()) / len(mastery_levels)
    strengths = sorted(
        (item for item in mastery_levels.items() if item[1] > average + 10),
        key=lambda item: item[1],
        reverse=True,
    )
    weaknesses = sorted(
        (item for item in mastery_levels.items() if item[1] < average - 10),
        key=lambda item: item[1],
    )
    return [topic for topic, _ in strengths[:3]], [topic for topic, _ in weaknesses[:3]]


def detect_learning_style(progress_history: Sequence[UserProgress], lessons: Sequence[Lesson]) -> str:
    lesson_map = {lesson.id: lesson for lesson in lessons}
    style_scores = {style: 0.0 for style in STYLE_MARKERS}
    for progress in progress_history:
        lesson = lesson_map.get(progress.lesson_id)
        if lesson is None or not progress.score:
            continue
        score = progress.score / 100
        content = lesson.content or {}
        for style, markers in STYLE_MARKERS.items():
            if any(content.get(marker) for marker in markers):
                style_scores[style] += score

    max_score = max(style_scores.values())
    dominant = [style for style, score in style_scores.items() if score > max_score * 0.8]
    if len(dominant) == 1:
        return dominant[0]
    return "mixed"


def calculate_average_session_time(progress_history: Sequence[UserProgress]) -> float:
    times = [p.time_spent for p in progress_history if p.time_spent and p.time_spent > 0]
    if not times:
        return DEFAULT_SESSION_MINUTES
    return sum(times) / len(times)


def identify_preferred_topics(progress_history: Sequence[UserProgress], lessons: Sequence[Lesson]) -> List[str]:
    lesson_map = {lesson.id: lesson for lesson in lessons}
    engagement: Dict[str, float] = {}
    for progress in progress_history:
        lesson = lesson_map.get(progress.lesson_id)
        if lesson is None:
            continue
        score = (
            (progress.score or 0) * 0.4
            + (progress.time_spent or 0) * 0.3
            + (100 if progress.completed else 0) * 0.3
        )
        engagement[lesson.topic] = engagement.get(lesson.topic, 0.0) + score
    ranked = sorted(engagement.items(), key=lambda item: item[1], reverse=True)
    return [topic for topic, _ in ranked[:5]]


def identify_review_content(
    progress_history: Sequence[UserProgress],
    lessons: Sequence[Lesson],
    now: Optional[datetime] = None,
) -> List[Lesson]:
    now = now or datetime.utcnow()
    lesson_map = {lesson.id: lesson for lesson in lessons}
    candidates: List[Tuple[Lesson, float, float]] = []
    for progress in progress_history:
        if progress.completed_at is None or not progress.score:
            continue
        lesson = lesson_map.get(progress.lesson_id)
        if lesson is None:
            continue
        days_since = (now - progress.completed_at) / timedelta(days=1)
        if days_since >= review_interval_days(progress.score):
            candidates.append((lesson, progress.score, days_since))

    # Low scores and long gaps first
    candidates.sort(key=lambda c: c[1] - c[2])
    return [lesson for lesson, _, _ in candidates[:10]]


def select_optimal_lesson(lessons: Sequence[Lesson], profile: LearningProfile) -> Lesson:
    best: Optional[Lesson] = None
    best_score = -math.inf
    for lesson in lessons:
        score = 0.0
        content = lesson.content or {}
        markers = STYLE_MARKERS.get(profile.learning_style, ())
        if any(content.get(marker) for marker in markers):
            score += 2
        time_diff = abs(lesson.estimated_minutes - profile.average_session_time)
        score += max(0.0, 3 - time_diff / 5)
        if lesson.topic in profile.preferred_topics:
            score += 1
        if score > best_score:
            best, best_score = lesson, score
    return best


def get_next_level_content(profile: LearningProfile, lessons: Sequence[Lesson]) -> Optional[Lesson]:
    target = min(1.0, profile.difficulty_preference + 0.1)
    candidates = [
        lesson for lesson in lessons
        if target - 0.05 <= get_difficulty_score(lesson) <= target + 0.05
    ]
    if not candidates:
        return None
    preferred = [lesson for lesson in candidates if lesson.topic in profile.strengths]
    return preferred[0] if preferred else candidates[0]


class AdaptiveLearningEngine:
    def analyze_user_performance(
        self,
        user: User,
        progress_history: Sequence[UserProgress],
        lessons: Sequence[Lesson],
        now: Optional[datetime] = None,
    ) -> LearningProfile:
        now = now or datetime.utcnow()
        cutoff = now - timedelta(days=RECENT_DAYS)
        recent = sorted(
            (p for p in progress_history if p.completed_at is not None and p.completed_at > cutoff),
            key=lambda p: p.completed_at,
            reverse=True,
        )
        mastery = calculate_mastery_levels(recent, lessons)
        strengths, weaknesses = identify_strengths_weaknesses(mastery)
        return LearningProfile(
            user_id=user.id,
            current_level=user.level,
            strengths=strengths,
            weaknesses=weaknesses,
            learning_style=detect_learning_style(recent, lessons),
            difficulty_preference=calculate_optimal_difficulty(recent),
            average_session_time=calculate_average_session_time(recent),
            preferred_topics=identify_preferred_topics(recent, lessons),
            mastery_levels=mastery,
            last_updated=now,
        )

    def calculate_optimal_difficulty(self, progress_history: Sequence[UserProgress]) -> float:
        return calculate_optimal_difficulty(progress_history)

    def generate_recommendations(
        self,
        profile: LearningProfile,
        available_lessons: Sequence[Lesson],
        progress_history: Sequence[UserProgress],
        now: Optional[datetime] = None,
    ) -> List[AdaptiveRecommendation]:
        recommendations: List[AdaptiveRecommendation] = []

        def add(kind: str, lesson: Lesson, reasoning: str, minutes: int, priority: float) -> None:
            recommendations.append(AdaptiveRecommendation(
                type=kind,
                content=LessonOut.model_validate(lesson),
                reasoning=reasoning,
                difficulty=get_difficulty_score(lesson),
                estimated_time=minutes,
                priority=priority,
            ))

        for weakness in profile.weaknesses[:2]:
            matches = [
                lesson for lesson in available_lessons
                if lesson.topic == weakness and get_difficulty_score(lesson) <= profile.difficulty_preference + 0.2
            ]
            if matches:
                lesson = select_optimal_lesson(matches, profile)
                add("lesson", lesson, f"Targeted practice for {weakness} - identified as area for improvement",
                    lesson.estimated_minutes, 0.9)

        for lesson in identify_review_content(progress_history, available_lessons, now)[:3]:
            # Review takes less time than the first pass
            add("review", lesson, "Spaced repetition - optimal time for review based on forgetting curve",
                math.ceil(lesson.estimated_minutes * 0.6), 0.7)

        next_level = get_next_level_content(profile, available_lessons)
        if next_level is not None:
            add("challenge", next_level, "Ready for next difficulty level based on recent performance",
                next_level.estimated_minutes, 0.8)

        for strength in profile.strengths[:1]:
            matches = [
                lesson for lesson in available_lessons
                if lesson.topic == strength and get_difficulty_score(lesson) >= profile.difficulty_preference - 0.1
            ]
            if matches:
                lesson = select_optimal_lesson(matches, profile)
                add("practice", lesson, f"Building on {strength} strength - maintaining momentum",
                    lesson.estimated_minutes, 0.6)

        recommendations.sort(key=lambda r: r.priority, reverse=True)
        return recommendations[:5]


adaptive_engine = AdaptiveLearningEngine()
