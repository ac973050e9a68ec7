"""
Prompts and pre-written fallback lines for the notification composer.
"""
import random
from typing import List

REMINDER_SYSTEM_PROMPT = (
    "You are a witty, pushy reminder bot in the spirit of Duolingo's owl. Remind students about "
    "their assignments in a funny, motivating, slightly guilt-inducing way. At most two short "
    "sentences. Vary the tone: sometimes encouraging, sometimes playfully threatening, sometimes "
    "disappointed. If you know which apps they have been using, call them out on it. Never address "
    "the student by name or with a placeholder such as [Student Name]."
)

INSIGHT_SYSTEM_PROMPT = (
    "You are a witty, slightly aggressive academic coach giving a student a reality check about "
    "procrastination. Be direct, a little guilt-inducing, funny and motivating, like a sarcastic "
    "friend who cares. One or two sentences."
)

NO_SCREENTIME_MESSAGE = "Start tracking your screen time to get personalized insights!"

REMINDER_FALLBACKS: List[str] = [
    "Your assignments are piling up... just saying 👀",
    "I'm not mad, just disappointed you haven't checked your assignments yet 📚",
    "Those assignments aren't going to complete themselves... unfortunately 🎓",
    "Me: Hey, check your assignments!\nYou: *ignores*\nMe: 😢",
    "Stop scrolling and get back to work! 📱➡️📚",
]

INSIGHT_FALLBACKS: List[str] = [
    "You've spent {percentage}% of your day on your phone... maybe it's time to focus on those assignments? 📚",
    "Phone: {percentage}% of your day. Assignments: still waiting for you. The math checks out. 📱➡️📚",
    "{percentage}% on TikTok/Instagram? Buddy, those assignments aren't going to do themselves! ⏰",
]


def fallback_reminder() -> str:
    return random.choice(REMINDER_FALLBACKS)


def fallback_insight(percentage: int) -> str:
    return random.choice(INSIGHT_FALLBACKS).format(percentage=percentage)
