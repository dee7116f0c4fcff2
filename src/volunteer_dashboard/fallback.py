"""
Demo datasets served when the insights tables are missing.

These keep the dashboard populated on a fresh or misconfigured backend. They
are returned verbatim and never mixed with live rows.
"""

from __future__ import annotations

from .models import (
    CategoryCount,
    ChartPoint,
    EventEngagement,
    EventInsights,
    EventSatisfaction,
    EventTypeTasks,
    FeedbackInsights,
    MonthCount,
    RatedEvent,
    RatingBucket,
    SkillCount,
    TaskInsights,
    VolunteerInsights,
)

FALLBACK_EVENT_INSIGHTS = EventInsights(
    total_events=45,
    active_events=12,
    completed_events=33,
    completion_rate=73,
    top_events=(
        EventEngagement(id=1, title="Annual Charity Gala", volunteer_count=25, max_volunteers=30, engagement_rate=83),
        EventEngagement(id=2, title="Community Clean-up", volunteer_count=42, max_volunteers=50, engagement_rate=84),
        EventEngagement(id=3, title="Youth Mentoring Workshop", volunteer_count=18, max_volunteers=20, engagement_rate=90),
        EventEngagement(id=4, title="Fundraising Marathon", volunteer_count=35, max_volunteers=40, engagement_rate=88),
        EventEngagement(id=5, title="Food Drive", volunteer_count=28, max_volunteers=35, engagement_rate=80),
    ),
    satisfaction_rates=(
        EventSatisfaction(id=1, title="Annual Charity Gala", satisfaction_rate=4.8, feedback_count=22),
        EventSatisfaction(id=2, title="Community Clean-up", satisfaction_rate=4.6, feedback_count=38),
        EventSatisfaction(id=3, title="Youth Mentoring Workshop", satisfaction_rate=4.9, feedback_count=18),
        EventSatisfaction(id=4, title="Fundraising Marathon", satisfaction_rate=4.5, feedback_count=32),
        EventSatisfaction(id=5, title="Food Drive", satisfaction_rate=4.7, feedback_count=25),
    ),
    event_completion_over_time=tuple(
        ChartPoint(name=name, value=value)
        for name, value in (
            ("Jan", 2),
            ("Feb", 3),
            ("Mar", 4),
            ("Apr", 2),
            ("May", 5),
            ("Jun", 3),
            ("Jul", 4),
            ("Aug", 6),
            ("Sep", 2),
            ("Oct", 3),
            ("Nov", 1),
            ("Dec", 0),
        )
    ),
    event_type_preferences=(
        CategoryCount(type="Fundraising", count=85),
        CategoryCount(type="Community Service", count=65),
        CategoryCount(type="Educational", count=45),
        CategoryCount(type="Environmental", count=40),
        CategoryCount(type="Cultural", count=30),
    ),
)

FALLBACK_TASK_INSIGHTS = TaskInsights(
    total_tasks=240,
    event_type_tasks=EventTypeTasks(physical=150, virtual=90),
    comparison_text="Physical events have 67% more tasks than virtual events",
)

FALLBACK_VOLUNTEER_INSIGHTS = VolunteerInsights(
    total_volunteers=350,
    active_volunteers=185,
    new_volunteers_this_month=28,
    participation_rate=53,
    volunteer_growth=(
        MonthCount(month="Jun 2023", count=15),
        MonthCount(month="Jul 2023", count=22),
        MonthCount(month="Aug 2023", count=18),
        MonthCount(month="Sep 2023", count=25),
        MonthCount(month="Oct 2023", count=20),
        MonthCount(month="Nov 2023", count=28),
    ),
    skill_distribution=(
        SkillCount(skill="Communication", count=95),
        SkillCount(skill="Leadership", count=75),
        SkillCount(skill="Organization", count=65),
        SkillCount(skill="Problem Solving", count=55),
        SkillCount(skill="Technical", count=45),
        SkillCount(skill="Creative", count=35),
        SkillCount(skill="Language", count=25),
    ),
)

# Same events as the satisfaction chart above, re-ranked by rating.
FALLBACK_FEEDBACK_INSIGHTS = FeedbackInsights(
    total_feedbacks=135,
    avg_rating=4.67,
    top_rated_events=(
        RatedEvent(id=3, title="Youth Mentoring Workshop", avg_rating=4.9, feedback_count=18),
        RatedEvent(id=1, title="Annual Charity Gala", avg_rating=4.8, feedback_count=22),
        RatedEvent(id=5, title="Food Drive", avg_rating=4.7, feedback_count=25),
        RatedEvent(id=2, title="Community Clean-up", avg_rating=4.6, feedback_count=38),
        RatedEvent(id=4, title="Fundraising Marathon", avg_rating=4.5, feedback_count=32),
    ),
    rating_distribution=(
        RatingBucket(stars=1, count=0),
        RatingBucket(stars=2, count=2),
        RatingBucket(stars=3, count=5),
        RatingBucket(stars=4, count=33),
        RatingBucket(stars=5, count=95),
    ),
)
