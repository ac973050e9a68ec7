"""
Notification composer: turns assignments (and the latest screen-time snapshot) into a short,
AI-written nudge. Any failure of the AI call falls back to a pre-written line, so callers
always get a non-empty string and never an exception.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from anthropic import Anthropic

from blinky.plugins.composer.templates import (
    INSIGHT_SYSTEM_PROMPT,
    REMINDER_SYSTEM_PROMPT,
    fallback_insight,
    fallback_reminder,
)
from blinky.plugins.screentime.service import get_latest_screentime

DEFAULT_MODEL = "claude-3-5-haiku-latest"


def _usage_line(app_usage: Iterable[Dict[str, Any]]) -> str:
    return ", ".join(f"{a.get('appName')} ({a.get('usageMinutes') or 0}m)" for a in app_usage)


def build_assignment_context(assignments: Iterable[Any], with_time: bool = True) -> str:
    """One "- title (course) due date [time]" line per assignment."""
    lines = []
    for a in assignments:
        due = " ".join(part for part in (a.date, a.time if with_time else None) if part) or "soon"
        lines.append(f"- {a.title or 'Untitled assignment'} ({a.course or 'unknown course'}) due {due}")
    return "\n".join(lines)


class NotificationComposer:
    """Builds reminder and insight messages with an Anthropic Messages client (or fallbacks only when client is None)."""

    def __init__(self, client: Optional[Any] = None, model: str = DEFAULT_MODEL):
        self.client = client
        self.model = model
        self.logger = logging.getLogger(self.__class__.__name__)

    def _complete(self, system: str, prompt: str, temperature: float, max_tokens: int) -> Optional[str]:
        """One chat-style request; returns stripped text or None when the answer is empty."""
        if self.client is None:
            return None
        response = self.client.messages.create(
            model=self.model,
            system=system,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        text = "".join(
            getattr(block, "text", "") or ""
            for block in (response.content or [])
            if getattr(block, "type", "text") == "text"
        )
        return text.strip() or None

    def _screentime_context(self, email: str) -> str:
        try:
            snapshot = get_latest_screentime(email)
        except Exception as e:
            self.logger.error(f"Error fetching screen time context for {email}: {e}")
            return ""
        if snapshot is None or not snapshot.app_usage:
            return ""
        top_apps = _usage_line(snapshot.app_usage[:3])
        return (
            f"\n\nThe student's top apps today: {top_apps}. "
            "Feel free to mention these cheekily to guilt them about procrastinating."
        )

    def compose_reminder(self, email: str, assignments: List[Any]) -> str:
        """Short reminder push body (high temperature, ~100 tokens)."""
        prompt = (
            "Write a short notification for a student with these upcoming assignments:\n"
            f"{build_assignment_context(assignments)}{self._screentime_context(email)}"
        )
        try:
            text = self._complete(REMINDER_SYSTEM_PROMPT, prompt, temperature=1.0, max_tokens=100)
        except Exception as e:
            self.logger.error(f"Error generating reminder for {email}: {e}")
            text = None
        if not text:
            self.logger.info(f"Using fallback reminder for {email}")
            return fallback_reminder()
        return text

    def compose_insight(self, assignments: List[Any], app_usage: List[Dict[str, Any]], percentage: int) -> str:
        """Reality-check message for the insights screen (temperature 0.9, ~80 tokens)."""
        prompt = (
            f"This student has spent {percentage}% of their day on these apps: {_usage_line(app_usage)}. "
            "They have these assignments due soon:\n"
            f"{build_assignment_context(assignments, with_time=False) or 'No specific assignments yet'}\n\n"
            "Give them a reality check about how their day is going."
        )
        try:
            text = self._complete(INSIGHT_SYSTEM_PROMPT, prompt, temperature=0.9, max_tokens=80)
        except Exception as e:
            self.logger.error(f"Error generating insight message: {e}")
            text = None
        if not text:
            return fallback_insight(percentage)
        return text


def build_composer(config_data: Dict[str, Any]) -> NotificationComposer:
    """Composer configured from the ai: section. Without an api key only fallback lines are used."""
    ai_config = config_data.get("ai") or {}
    model = ai_config.get("model") or DEFAULT_MODEL
    api_key = ai_config.get("api_key")
    if not api_key:
        logging.warning("No AI api key configured; reminders will use fallback messages")
        return NotificationComposer(client=None, model=model)
    client = Anthropic(
        api_key=api_key,
        timeout=float(ai_config.get("timeout") or 20),
        max_retries=int(ai_config.get("max_retries") or 0),
    )
    return NotificationComposer(client=client, model=model)
