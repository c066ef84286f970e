from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .errors import ProfileNotFoundError


logger = logging.getLogger(__name__)


SKILLS: List[str] = ["vocabulary", "grammar", "speaking", "listening", "reading", "writing", "pronunciation"]

# Starting level for every skill of a freshly created learning path
LEVEL_BASELINE: Dict[str, float] = {"beginner": 30, "intermediate": 55, "advanced": 80}

RECENT_PERFORMANCE_WINDOW = 10
PATTERN_WINDOW = 20
TIME_PATTERN_WINDOW = 5
MAX_RECOMMENDATIONS = 10


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _mean(numbers: List[float]) -> float:
    return sum(numbers) / len(numbers) if numbers else 0.0


def _topic_label(topic: str) -> str:
    return topic.replace("_", " ")


def _title(skill: str) -> str:
    return skill[:1].upper() + skill[1:]


class SkillLevel(BaseModel):
    level: float = Field(ge=1, le=100)
    confidence: float = Field(ge=0, le=1)
    recent_performance: List[float] = Field(default_factory=list)
    time_spent: float = 0  # minutes
    exercises_completed: int = 0
    accuracy: float = 0
    improvement: float = 0
    mastered_topics: List[str] = Field(default_factory=list)
    struggling_topics: List[str] = Field(default_factory=list)
    last_assessed: Optional[datetime] = None


class SkillAssessment(BaseModel):
    vocabulary: SkillLevel
    grammar: SkillLevel
    speaking: SkillLevel
    listening: SkillLevel
    reading: SkillLevel
    writing: SkillLevel
    pronunciation: SkillLevel
    overall_score: float
    last_assessed: datetime = Field(default_factory=_now)

    def skill(self, name: str) -> Optional[SkillLevel]:
        if name not in SKILLS:
            return None
        return getattr(self, name)

    def levels(self) -> List[float]:
        return [getattr(self, name).level for name in SKILLS]


class ActivityMistake(BaseModel):
    question: str = ""
    user_answer: str = ""
    correct_answer: str = ""
    category: str
    timestamp: datetime = Field(default_factory=_now)


class LearningActivityInput(BaseModel):
    type: Literal["lesson", "exercise", "quiz", "game", "assessment"] = "exercise"
    topic: str
    skill_area: str
    difficulty: float = Field(ge=0)
    time_spent: float = Field(ge=0)
    score: float = Field(ge=0, le=100)
    accuracy: float = Field(ge=0, le=100)
    completed_at: datetime = Field(default_factory=_now)
    mistakes: List[ActivityMistake] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)


class LearningActivity(LearningActivityInput):
    id: str


class LearningPreferences(BaseModel):
    preferred_learning_time: str = "evening"
    session_duration: int = 30
    difficulty_preference: Literal["adaptive", "challenging", "comfortable"] = "adaptive"
    learning_style: Literal["visual", "auditory", "kinesthetic", "mixed"] = "mixed"
    focus_areas: List[str] = Field(default_factory=list)
    motivation_factors: List[str] = Field(default_factory=list)
    avoidance_topics: List[str] = Field(default_factory=list)


class LearningRecommendation(BaseModel):
    id: str
    type: Literal["lesson", "review", "practice", "assessment", "game"]
    title: str
    description: str
    reasoning: str
    target_skill: str
    difficulty: float
    estimated_time: int
    priority: float
    prerequisites: List[str] = Field(default_factory=list)
    expected_outcome: str
    confidence_level: float
    created_at: datetime = Field(default_factory=_now)
    expires_at: Optional[datetime] = None


class GoalMilestone(BaseModel):
    id: str
    title: str
    target: float
    current: float = 0
    completed: bool = False
    completed_at: Optional[datetime] = None
    reward: Optional[str] = None


class LearningGoalInput(BaseModel):
    title: str
    description: str = ""
    target_skill: str
    target_level: float = Field(ge=1, le=100)
    current_level: float = Field(default=1, ge=0, le=100)
    deadline: datetime
    milestones: List[GoalMilestone] = Field(default_factory=list)
    is_active: bool = True
    priority: Literal["low", "medium", "high"] = "medium"


class LearningGoal(LearningGoalInput):
    id: str
    progress: float = 0


class AIInsight(BaseModel):
    type: Literal["strength", "weakness", "pattern", "recommendation", "warning"]
    category: str
    message: str
    confidence: float
    actionable: bool
    supporting_data: Any = None
    created_at: datetime = Field(default_factory=_now)


class LearningPattern(BaseModel):
    pattern: str
    frequency: int
    impact: Literal["positive", "negative", "neutral"]
    recommendation: str
    examples: List[str] = Field(default_factory=list)


class SkillGap(BaseModel):
    skill: str
    current_level: float
    difference: float


class LearningPathData(BaseModel):
    user_id: int
    current_level: str
    skill_assessment: SkillAssessment
    learning_history: List[LearningActivity] = Field(default_factory=list)
    preferences: LearningPreferences = Field(default_factory=LearningPreferences)
    recommendations: List[LearningRecommendation] = Field(default_factory=list)
    progress_goals: List[LearningGoal] = Field(default_factory=list)
    weakness_areas: List[str] = Field(default_factory=list)
    strength_areas: List[str] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=_now)


def calculate_priority(level: float, confidence: float) -> int:
    # Lower level and lower confidence both push the priority up
    level_score = max(1.0, (100 - level) / 20)
    confidence_score = max(1.0, (1 - confidence) * 5)
    return round_half_up(level_score + confidence_score)


def calculate_variance(numbers: List[float]) -> float:
    if not numbers:
        return 0.0
    mean = _mean(numbers)
    return sum((n - mean) ** 2 for n in numbers) / len(numbers)


def calculate_trend(numbers: List[float]) -> float:
    if len(numbers) < 2:
        return 0.0
    half = len(numbers) // 2
    return _mean(numbers[half:]) - _mean(numbers[:half])


def identify_skill_gaps(assessment: SkillAssessment) -> List[SkillGap]:
    levels = assessment.levels()
    average = _mean(levels)
    gaps = [
        SkillGap(skill=skill, current_level=level, difference=average - level)
        for skill, level in zip(SKILLS, levels)
    ]
    gaps = [gap for gap in gaps if gap.difference > 10]
    return sorted(gaps, key=lambda gap: gap.difference, reverse=True)


def recalculate_overall_score(assessment: SkillAssessment) -> None:
    assessment.overall_score = _mean(assessment.levels())


def analyze_mistakes_for_topics(mistakes: List[ActivityMistake], skill: SkillLevel) -> None:
    categories = [m.category for m in mistakes]
    for category in categories:
        if category not in skill.struggling_topics and categories.count(category) >= 2:
            skill.struggling_topics.append(category)
    skill.mastered_topics = [topic for topic in skill.mastered_topics if topic not in categories]


def update_skill_assessment(path: LearningPathData, activity: LearningActivity) -> None:
    skill = path.skill_assessment.skill(activity.skill_area)
    if skill is not None:
        skill.recent_performance.append(activity.score)
        if len(skill.recent_performance) > RECENT_PERFORMANCE_WINDOW:
            skill.recent_performance = skill.recent_performance[-RECENT_PERFORMANCE_WINDOW:]

        skill.time_spent += activity.time_spent
        skill.exercises_completed += 1
        total_accuracy = skill.accuracy * (skill.exercises_completed - 1) + activity.accuracy
        skill.accuracy = total_accuracy / skill.exercises_completed

        # Move 10% of the way toward the recent average
        recent_average = _mean(skill.recent_performance)
        adjustment = (recent_average - skill.level) * 0.1
        skill.level = max(1.0, min(100.0, skill.level + adjustment))

        # Consistent scores mean higher confidence
        variance = calculate_variance(skill.recent_performance)
        skill.confidence = max(0.1, min(1.0, 1 - variance / 1000))

        analyze_mistakes_for_topics(activity.mistakes, skill)
    else:
        logger.debug("activity %s targets untracked skill area %r", activity.id, activity.skill_area)

    recalculate_overall_score(path.skill_assessment)


def _analyze_time_patterns(activities: List[LearningActivity]) -> Optional[LearningPattern]:
    if len(activities) < TIME_PATTERN_WINDOW:
        return None
    average_time = _mean([a.time_spent for a in activities])
    recent_average = _mean([a.time_spent for a in activities[-TIME_PATTERN_WINDOW:]])
    if average_time <= 0:
        return None

    if recent_average > average_time * 1.3:
        change = (recent_average / average_time - 1) * 100
        return LearningPattern(
            pattern="Increased study time",
            frequency=TIME_PATTERN_WINDOW,
            impact="positive",
            recommendation="Maintain this excellent study commitment! Consider breaking longer sessions into smaller chunks for better retention.",
            examples=[f"Recent sessions averaging {change:.0f}% longer than usual"],
        )
    if recent_average < average_time * 0.7:
        return LearningPattern(
            pattern="Decreased study time",
            frequency=TIME_PATTERN_WINDOW,
            impact="negative",
            recommendation="Try to maintain consistent study duration. Even short 10-15 minute sessions can be effective.",
            examples=["Recent sessions significantly shorter than usual"],
        )
    return None


def _analyze_difficulty_progression(activities: List[LearningActivity]) -> Optional[LearningPattern]:
    difficulties = [a.difficulty for a in activities]
    progressing = all(curr >= prev - 1 for prev, curr in zip(difficulties, difficulties[1:]))
    if progressing and len(difficulties) > 3:
        return LearningPattern(
            pattern="Steady difficulty progression",
            frequency=len(difficulties),
            impact="positive",
            recommendation="Excellent progression! You're challenging yourself appropriately.",
            examples=["Difficulty levels: " + " -> ".join(f"{d:g}" for d in difficulties)],
        )
    return None


def _analyze_accuracy_patterns(activities: List[LearningActivity]) -> Optional[LearningPattern]:
    accuracies = [a.accuracy for a in activities]
    trend = calculate_trend(accuracies)
    if trend > 5:
        return LearningPattern(
            pattern="Improving accuracy",
            frequency=len(accuracies),
            impact="positive",
            recommendation="Great improvement in accuracy! Keep up the focused practice.",
            examples=[f"Accuracy improved by {trend:.1f}% over recent activities"],
        )
    if trend < -5:
        return LearningPattern(
            pattern="Declining accuracy",
            frequency=len(accuracies),
            impact="negative",
            recommendation="Consider reviewing fundamentals or slowing down to focus on accuracy.",
            examples=[f"Accuracy declined by {abs(trend):.1f}% over recent activities"],
        )
    return None


def detect_learning_patterns(path: LearningPathData) -> List[LearningPattern]:
    recent = path.learning_history[-PATTERN_WINDOW:]
    patterns: List[LearningPattern] = []
    for analyzer in (_analyze_time_patterns, _analyze_difficulty_progression, _analyze_accuracy_patterns):
        pattern = analyzer(recent)
        if pattern is not None:
            patterns.append(pattern)
    return patterns


def _sample_path(user_id: int) -> LearningPathData:
    def skill(level, confidence, recent, time_spent, completed, accuracy, improvement, mastered, struggling):
        return SkillLevel(
            level=level,
            confidence=confidence,
            recent_performance=recent,
            time_spent=time_spent,
            exercises_completed=completed,
            accuracy=accuracy,
            improvement=improvement,
            mastered_topics=mastered,
            struggling_topics=struggling,
        )

    assessment = SkillAssessment(
        vocabulary=skill(65, 0.8, [85, 78, 92, 88, 75], 180, 24, 83.5, 12,
                         ["family", "food", "daily_routines"], ["business_vocabulary", "academic_terms"]),
        grammar=skill(58, 0.65, [72, 65, 78, 70, 69], 140, 18, 70.8, 5,
                      ["present_tense", "basic_questions"], ["past_perfect", "conditional_sentences", "passive_voice"]),
        speaking=skill(72, 0.85, [88, 92, 85, 90, 87], 95, 12, 88.4, 18,
                       ["greetings", "introductions", "simple_conversations"], ["formal_presentations", "debate_skills"]),
        listening=skill(68, 0.75, [78, 82, 75, 85, 79], 120, 15, 79.8, 8,
                        ["casual_conversations", "news_clips"], ["accents", "fast_speech", "technical_content"]),
        reading=skill(70, 0.82, [85, 89, 82, 87, 91], 200, 22, 86.8, 15,
                      ["articles", "short_stories", "instructions"], ["academic_texts", "complex_fiction"]),
        writing=skill(55, 0.6, [68, 62, 75, 70, 65], 85, 10, 68.0, 3,
                      ["simple_sentences", "personal_letters"], ["essays", "formal_writing", "complex_structures"]),
        pronunciation=skill(75, 0.88, [92, 88, 95, 90, 87], 60, 8, 90.4, 22,
                            ["vowel_sounds", "basic_consonants"], ["th_sounds", "r_sounds", "stress_patterns"]),
        overall_score=66.1,
    )
    goal = LearningGoal(
        id=f"grammar_goal_{user_id}",
        title="Master Past Tense Forms",
        description="Achieve 85% accuracy in past tense exercises",
        target_skill="grammar",
        target_level=85,
        current_level=58,
        deadline=_now() + timedelta(days=30),
        milestones=[
            GoalMilestone(id="past_simple", title="Past Simple Mastery", target=90, current=75),
            GoalMilestone(id="past_continuous", title="Past Continuous Mastery", target=85, current=45),
        ],
        progress=62,
        is_active=True,
        priority="high",
    )
    return LearningPathData(
        user_id=user_id,
        current_level="intermediate",
        skill_assessment=assessment,
        preferences=LearningPreferences(
            preferred_learning_time="evening",
            session_duration=30,
            difficulty_preference="adaptive",
            learning_style="mixed",
            focus_areas=["grammar", "writing"],
            motivation_factors=["achievements", "progress_tracking", "social_features"],
            avoidance_topics=["business_english"],
        ),
        progress_goals=[goal],
        weakness_areas=["grammar", "writing"],
        strength_areas=["speaking", "pronunciation"],
    )


class AILearningPathSystem:
    """Per-learner skill assessment, activity history and recommendations.

    State lives in process memory keyed by user id. Unknown users get empty
    results (or ``None``) rather than errors, except through
    :meth:`get_learning_path_or_raise`. Pass ``sample_user_id`` to start with
    the sample intermediate learner's path under that id.
    """

    def __init__(self, *, sample_user_id: Optional[int] = None) -> None:
        self.learning_paths: Dict[int, LearningPathData] = {}
        self.insights: Dict[int, List[AIInsight]] = {}
        if sample_user_id is not None:
            self.seed_sample_path(sample_user_id)

    def seed_sample_path(self, user_id: int) -> LearningPathData:
        sample = _sample_path(user_id)
        self.learning_paths[user_id] = sample
        return sample

    def reset(self) -> None:
        self.learning_paths.clear()
        self.insights.clear()

    def get_learning_path(self, user_id: int) -> Optional[LearningPathData]:
        return self.learning_paths.get(user_id)

    def get_learning_path_or_raise(self, user_id: int) -> LearningPathData:
        path = self.learning_paths.get(user_id)
        if path is None:
            raise ProfileNotFoundError(user_id)
        return path

    def create_learning_path(self, user_id: int, current_level: str = "beginner") -> LearningPathData:
        """Return the learner's path, creating one at ``current_level`` if missing.

        An existing path keeps its skills and history; only its level label
        follows ``current_level``.
        """
        existing = self.learning_paths.get(user_id)
        if existing is not None:
            if existing.current_level != current_level:
                existing.current_level = current_level
                existing.last_updated = _now()
            return existing
        baseline = LEVEL_BASELINE.get(current_level, LEVEL_BASELINE["beginner"])
        skills = {name: SkillLevel(level=baseline, confidence=0.5) for name in SKILLS}
        path = LearningPathData(
            user_id=user_id,
            current_level=current_level,
            skill_assessment=SkillAssessment(**skills, overall_score=baseline),
        )
        self.learning_paths[user_id] = path
        logger.info("created learning path for user %s at %s", user_id, current_level)
        return path

    # Recommendation engine
    def generate_personalized_recommendations(self, user_id: int) -> List[LearningRecommendation]:
        path = self.learning_paths.get(user_id)
        if path is None:
            return []

        assessment = path.skill_assessment
        recommendations: List[LearningRecommendation] = []

        for skill_name in path.weakness_areas:
            skill = assessment.skill(skill_name)
            if skill is None:
                continue
            priority = calculate_priority(skill.level, skill.confidence)
            for topic in skill.struggling_topics:
                label = _topic_label(topic)
                recommendations.append(LearningRecommendation(
                    id=f"review_{skill_name}_{topic}",
                    type="review",
                    title=f"Review {label} in {skill_name}",
                    description=f"Targeted practice for {label} to improve your {skill_name} skills",
                    reasoning=f"Your accuracy in {label} is below your average. Focused review will help strengthen this area.",
                    target_skill=skill_name,
                    difficulty=max(1.0, skill.level - 10),
                    estimated_time=15,
                    priority=priority,
                    expected_outcome=f"Improve {label} understanding by 15-20%",
                    confidence_level=0.85,
                ))
            if skill.level < 75:
                recommendations.append(LearningRecommendation(
                    id=f"practice_{skill_name}",
                    type="practice",
                    title=f"Progressive {_title(skill_name)} Practice",
                    description=f"Structured practice exercises to build your {skill_name} skills",
                    reasoning=f"Your {skill_name} level ({skill.level:g}) indicates room for improvement with focused practice.",
                    target_skill=skill_name,
                    difficulty=skill.level + 5,
                    estimated_time=25,
                    priority=priority,
                    prerequisites=list(skill.mastered_topics),
                    expected_outcome=f"Increase {skill_name} level by 5-10 points",
                    confidence_level=0.9,
                ))

        for skill_name in path.strength_areas:
            skill = assessment.skill(skill_name)
            if skill is None or skill.level <= 70:
                continue
            recommendations.append(LearningRecommendation(
                id=f"advanced_{skill_name}",
                type="lesson",
                title=f"Advanced {_title(skill_name)} Challenges",
                description=f"Take your strong {skill_name} skills to the next level",
                reasoning=f"Your excellent {skill_name} performance ({skill.level:g}) suggests you're ready for advanced content.",
                target_skill=skill_name,
                difficulty=skill.level + 10,
                estimated_time=30,
                priority=3,
                prerequisites=list(skill.mastered_topics),
                expected_outcome=f"Master advanced {skill_name} concepts",
                confidence_level=0.75,
            ))

        for gap in identify_skill_gaps(assessment):
            recommendations.append(LearningRecommendation(
                id=f"balance_{gap.skill}",
                type="lesson",
                title=f"Balanced Development: {_title(gap.skill)}",
                description=f"Bring your {gap.skill} skills in line with your other abilities",
                reasoning=(
                    f"Your {gap.skill} level ({gap.current_level:g}) is {gap.difference:.1f} points below your average. "
                    "Balancing skills improves overall fluency."
                ),
                target_skill=gap.skill,
                difficulty=gap.current_level + 3,
                estimated_time=20,
                priority=4,
                expected_outcome="Close the skill gap and improve overall balance",
                confidence_level=0.8,
            ))

        recommendations.sort(key=lambda r: r.priority * r.confidence_level, reverse=True)
        path.recommendations = recommendations[:MAX_RECOMMENDATIONS]
        return path.recommendations

    def get_next_recommendation(self, user_id: int) -> Optional[LearningRecommendation]:
        recommendations = self.generate_personalized_recommendations(user_id)
        return recommendations[0] if recommendations else None

    def purge_expired_recommendations(self, now: Optional[datetime] = None) -> int:
        now = _aware(now or _now())
        removed = 0
        for path in self.learning_paths.values():
            kept = [r for r in path.recommendations if r.expires_at is None or _aware(r.expires_at) > now]
            removed += len(path.recommendations) - len(kept)
            path.recommendations = kept
        return removed

    # Activity tracking
    def record_learning_activity(self, user_id: int, activity: LearningActivityInput) -> LearningActivity:
        full_activity = LearningActivity(id=f"activity_{uuid.uuid4().hex}", **activity.model_dump())

        path = self.learning_paths.get(user_id)
        if path is not None:
            path.learning_history.append(full_activity)
            update_skill_assessment(path, full_activity)
            path.last_updated = _now()
            logger.debug(
                "recorded %s activity for user %s (skill=%s score=%s)",
                full_activity.type, user_id, full_activity.skill_area, full_activity.score,
            )
        return full_activity

    def assess_skill_level(self, user_id: int, skill_area: str, score: float) -> Optional[SkillLevel]:
        path = self.learning_paths.get(user_id)
        if path is None:
            return None
        skill = path.skill_assessment.skill(skill_area)
        if skill is None:
            raise ValueError(f"unknown skill area: {skill_area}")
        skill.level = max(1, min(100, round_half_up((skill.level + score) / 2)))
        skill.last_assessed = _now()
        path.skill_assessment.last_assessed = skill.last_assessed
        recalculate_overall_score(path.skill_assessment)
        return skill

    # Insights
    def generate_ai_insights(self, user_id: int) -> List[AIInsight]:
        path = self.learning_paths.get(user_id)
        if path is None:
            return []

        insights: List[AIInsight] = []
        for pattern in detect_learning_patterns(path):
            insights.append(AIInsight(
                type="strength" if pattern.impact == "positive" else "weakness",
                category="learning_pattern",
                message=f"Pattern detected: {pattern.pattern}. {pattern.recommendation}",
                confidence=0.8,
                actionable=True,
                supporting_data=pattern.examples,
            ))
        insights.extend(self._analyze_progress(path))
        insights.extend(self._analyze_goals(path))

        self.insights[user_id] = insights
        return insights

    def _analyze_progress(self, path: LearningPathData) -> List[AIInsight]:
        insights: List[AIInsight] = []
        overall = path.skill_assessment.overall_score
        if overall > 70:
            insights.append(AIInsight(
                type="strength",
                category="overall_progress",
                message="You're making excellent progress! Your overall skill level is strong.",
                confidence=0.9,
                actionable=False,
                supporting_data={"overall_score": overall},
            ))
        gaps = identify_skill_gaps(path.skill_assessment)
        if gaps:
            insights.append(AIInsight(
                type="recommendation",
                category="skill_balance",
                message=f"Focus on improving {gaps[0].skill} to balance your skills better.",
                confidence=0.85,
                actionable=True,
                supporting_data=[gap.model_dump() for gap in gaps],
            ))
        return insights

    def _analyze_goals(self, path: LearningPathData) -> List[AIInsight]:
        insights: List[AIInsight] = []
        now = _now()
        for goal in path.progress_goals:
            if not goal.is_active:
                continue
            seconds_left = (_aware(goal.deadline) - now).total_seconds()
            days_left = math.ceil(seconds_left / 86400)
            if days_left < 7 and goal.progress < 80:
                insights.append(AIInsight(
                    type="warning",
                    category="goal_deadline",
                    message=f'Goal "{goal.title}" needs attention - {days_left} days left with {goal.progress:g}% progress.',
                    confidence=0.95,
                    actionable=True,
                    supporting_data=goal.model_dump(mode="json"),
                ))
        return insights

    # Preferences and goals
    def update_learning_preferences(self, user_id: int, changes: Dict[str, Any]) -> bool:
        path = self.learning_paths.get(user_id)
        if path is None:
            return False
        path.preferences = LearningPreferences(**{**path.preferences.model_dump(), **changes})
        path.last_updated = _now()
        return True

    def create_learning_goal(self, user_id: int, goal: LearningGoalInput) -> Optional[LearningGoal]:
        path = self.learning_paths.get(user_id)
        if path is None:
            return None
        new_goal = LearningGoal(id=f"goal_{uuid.uuid4().hex[:12]}_{user_id}", progress=0, **goal.model_dump())
        path.progress_goals.append(new_goal)
        return new_goal


learning_path_system = AILearningPathSystem()
