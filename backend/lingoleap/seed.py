"""Sample content for a fresh database."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .learning_path import learning_path_system
from .models import Achievement, Activity, DailyChallenge, Lesson, User, UserAchievement, Vocabulary


logger = logging.getLogger(__name__)


SAMPLE_LESSONS = [
    {
        "title": "Chinese New Year Traditions",
        "description": "Learn to describe traditional Chinese festivals in English. Practice cultural vocabulary and storytelling.",
        "category": "cultural",
        "level": "intermediate",
        "topic": "festivals",
        "content": {
            "vocabulary": ["celebration", "tradition", "festival", "family", "reunion"],
            "exercises": [
                {"type": "vocabulary", "words": ["红包", "春联", "团圆饭"]},
                {"type": "speaking", "prompt": "Describe your favorite Chinese New Year tradition"},
            ],
            "hasImages": True,
            "hasSpeaking": True,
        },
        "xp_reward": 50,
        "estimated_minutes": 15,
    },
    {
        "title": "Food & Cooking Vocabulary",
        "description": "Master essential cooking and food vocabulary through interactive exercises.",
        "category": "vocabulary",
        "level": "beginner",
        "topic": "food",
        "content": {
            "vocabulary": ["ingredient", "recipe", "delicious", "spicy", "sweet"],
            "exercises": [
                {"type": "matching", "pairs": [["rice", "米饭"], ["noodles", "面条"]]},
                {"type": "speaking", "prompt": "Describe your favorite Chinese dish"},
            ],
            "hasImages": True,
            "hasGames": True,
        },
        "xp_reward": 30,
        "estimated_minutes": 20,
    },
    {
        "title": "School Life Conversations",
        "description": "Practice everyday school conversations and academic vocabulary.",
        "category": "speaking",
        "level": "beginner",
        "topic": "school",
        "content": {
            "vocabulary": ["homework", "classmate", "teacher", "study", "exam"],
            "exercises": [
                {"type": "dialogue", "scenario": "Asking for help with homework"},
                {"type": "role-play", "situation": "Introducing yourself to new classmates"},
            ],
            "hasSpeaking": True,
            "hasInteraction": True,
        },
        "xp_reward": 40,
        "estimated_minutes": 25,
    },
    {
        "title": "Telling Stories in the Past Tense",
        "description": "Use regular and irregular past forms to describe a weekend trip.",
        "category": "grammar",
        "level": "intermediate",
        "topic": "past_tense",
        "content": {
            "vocabulary": ["went", "saw", "bought", "visited", "enjoyed"],
            "exercises": [{"type": "fill-blank", "sentences": 10}],
            "hasCharts": True,
        },
        "xp_reward": 35,
        "estimated_minutes": 20,
    },
    {
        "title": "At the Airport",
        "description": "Follow check-in and boarding announcements and answer comprehension questions.",
        "category": "listening",
        "level": "intermediate",
        "topic": "travel",
        "content": {
            "vocabulary": ["boarding pass", "gate", "delay", "luggage", "departure"],
            "exercises": [{"type": "listening", "clips": 4}],
            "hasAudio": True,
        },
        "xp_reward": 30,
        "estimated_minutes": 15,
    },
    {
        "title": "Reading Technology News",
        "description": "Read a short news article about artificial intelligence and summarize its main points.",
        "category": "reading",
        "level": "advanced",
        "topic": "technology",
        "content": {
            "vocabulary": ["algorithm", "innovation", "privacy", "device", "network"],
            "exercises": [{"type": "summary", "words": 80}],
            "complexity": "high",
        },
        "xp_reward": 45,
        "estimated_minutes": 35,
    },
    {
        "title": "Writing a Polite Email",
        "description": "Write a short email to a teacher asking for an extension.",
        "category": "writing",
        "level": "intermediate",
        "topic": "email_writing",
        "content": {
            "vocabulary": ["request", "deadline", "appreciate", "regards", "sincerely"],
            "exercises": [{"type": "writing", "prompt": "Ask for two more days on your essay"}],
        },
        "xp_reward": 40,
        "estimated_minutes": 25,
    },
    {
        "title": "Tricky Sounds: th and r",
        "description": "Listen and repeat minimal pairs to improve difficult English sounds.",
        "category": "pronunciation",
        "level": "beginner",
        "topic": "sounds",
        "content": {
            "vocabulary": ["think", "sink", "right", "light", "three"],
            "exercises": [{"type": "repeat", "pairs": [["think", "sink"], ["right", "light"]]}],
            "hasAudio": True,
            "hasSpeaking": True,
        },
        "xp_reward": 25,
        "estimated_minutes": 10,
    },
]

SAMPLE_VOCABULARY = [
    ("ingredient", "One of the foods used to make a dish", "/ɪnˈɡriːdiənt/", "beginner", "food", "Rice is the main ingredient.", "配料"),
    ("recipe", "Instructions for cooking a dish", "/ˈresəpi/", "beginner", "food", "My grandmother's recipe is secret.", "食谱"),
    ("delicious", "Having a very pleasant taste", "/dɪˈlɪʃəs/", "beginner", "food", "These dumplings are delicious!", "美味的"),
    ("classmate", "A student in the same class", "/ˈklɑːsmeɪt/", "beginner", "school", "My classmate helped me with homework.", "同学"),
    ("reunion", "A meeting of people after a long time apart", "/riːˈjuːniən/", "intermediate", "festivals", "We have a family reunion every spring.", "团聚"),
    ("tradition", "A custom passed down over generations", "/trəˈdɪʃn/", "intermediate", "festivals", "Giving red envelopes is a tradition.", "传统"),
    ("departure", "The act of leaving, especially on a journey", "/dɪˈpɑːtʃə/", "intermediate", "travel", "Our departure was delayed by an hour.", "出发"),
    ("innovation", "A new idea, method or device", "/ˌɪnəˈveɪʃn/", "advanced", "technology", "The phone was a great innovation.", "创新"),
]


def _create_achievements(db: Session) -> dict:
    first_steps = Achievement(
        title="First Steps", description="Complete your first lesson", icon="fas fa-baby",
        category="milestone", requirement=[{"metric": "lessons_completed", "target": 1}], xp_reward=50,
    )
    pronunciation_pro = Achievement(
        title="Pronunciation Pro", description="Achieve 90% accuracy in speaking exercises", icon="fas fa-microphone",
        category="speaking", requirement=[{"metric": "speaking_score", "target": 90}], xp_reward=75,
    )
    week_warrior = Achievement(
        title="Week Warrior", description="Maintain a 7-day learning streak", icon="fas fa-fire",
        category="streak", requirement=[{"metric": "streak", "target": 7}], xp_reward=100,
    )
    xp_hunter = Achievement(
        title="XP Hunter", description="Earn 2000 XP", icon="fas fa-star",
        category="milestone", requirement=[{"metric": "xp", "target": 2000}], xp_reward=100,
    )
    vocabulary_builder = Achievement(
        title="Vocabulary Builder", description="Master 10 words", icon="fas fa-book",
        category="vocabulary", requirement=[{"metric": "vocabulary_mastered", "target": 10}], xp_reward=100,
    )
    db.add_all([first_steps, pronunciation_pro, week_warrior, xp_hunter, vocabulary_builder])
    db.flush()
    monthly_master = Achievement(
        title="Monthly Master", description="Maintain a 30-day learning streak", icon="fas fa-crown",
        category="streak", requirement=[{"metric": "longest_streak", "target": 30}],
        prerequisites=[week_warrior.id], xp_reward=500, is_secret=True,
    )
    db.add(monthly_master)
    db.flush()
    return {"pronunciation_pro": pronunciation_pro, "week_warrior": week_warrior}


def seed_sample_data(db: Session, today: Optional[date] = None) -> bool:
    """Populate an empty database. Returns False when content already exists."""
    if db.query(User).first() is not None or db.query(Lesson).first() is not None:
        return False
    today = today or date.today()
    now = datetime.utcnow()

    # Sample learner; gets the sample intermediate learning path below
    user = User(
        id=1, username="liming", first_name="Li", last_name="Ming", level="intermediate",
        xp=1250, streak=7, longest_streak=7, last_active_date=today, preferences={"language": "both"},
    )
    db.add(user)
    db.add_all(Lesson(**lesson) for lesson in SAMPLE_LESSONS)
    db.add_all(
        Vocabulary(word=w, definition=d, pronunciation=p, level=lv, topic=t, example_sentence=ex, translation=zh)
        for w, d, p, lv, t, ex, zh in SAMPLE_VOCABULARY
    )
    earned = _create_achievements(db)
    for achievement in earned.values():
        db.add(UserAchievement(user_id=user.id, achievement_id=achievement.id, earned_at=now - timedelta(hours=4)))

    db.add(DailyChallenge(
        title="Speaking Champion",
        description="Complete 3 speaking exercises to earn bonus XP!",
        date=today,
        content={"skill": "speaking"},
        xp_reward=100,
        completion_requirement={"type": "speaking", "count": 3},
    ))
    db.add_all([
        Activity(user_id=user.id, type="lesson_completed", title='Completed "Food & Cooking" lesson',
                 description="+30 XP", xp_gained=30, created_at=now - timedelta(hours=2)),
        Activity(user_id=user.id, type="badge_earned", title='Earned "Pronunciation Pro" badge',
                 description="Speaking accuracy > 90%", xp_gained=0, created_at=now - timedelta(hours=4)),
        Activity(user_id=user.id, type="group_activity", title="Joined group debate session",
                 description="Topic: Social Media Impact", xp_gained=0, created_at=now - timedelta(hours=6)),
    ])
    db.commit()
    learning_path_system.seed_sample_path(user.id)
    logger.info("seeded sample data (%d lessons, %d words)", len(SAMPLE_LESSONS), len(SAMPLE_VOCABULARY))
    return True


def ensure_daily_challenge(db: Session, today: Optional[date] = None) -> DailyChallenge:
    """Return today's challenge, rotating a new one in when the day has none."""
    today = today or date.today()
    challenge = db.query(DailyChallenge).filter(DailyChallenge.date == today).first()
    if challenge is not None:
        return challenge
    rotation = [
        ("Speaking Champion", "Complete 3 speaking exercises to earn bonus XP!", "speaking", 3, 100),
        ("Word Collector", "Finish 2 vocabulary lessons today", "vocabulary", 2, 80),
        ("Grammar Guru", "Complete a grammar lesson", "grammar", 1, 60),
    ]
    title, description, kind, count, xp = rotation[today.toordinal() % len(rotation)]
    challenge = DailyChallenge(
        title=title, description=description, date=today, content={"skill": kind},
        xp_reward=xp, completion_requirement={"type": kind, "count": count},
    )
    db.add(challenge)
    db.commit()
    db.refresh(challenge)
    return challenge
