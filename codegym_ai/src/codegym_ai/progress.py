"""
Gamification Progress

Tracks problems attempted and solved, daily solving streaks, time spent,
per-language and per-complexity tallies, and achievement unlocks. The record
is persisted under the codegym-progress key.

Invariants:
- achievement progress never exceeds its max
- solved never exceeds total in any tally
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from pydantic import Field, ValidationError, model_validator

from codegym_ai.schemas import COMPLEXITIES, LANGUAGES, CamelModel
from codegym_ai.storage import PROGRESS_KEY, KeyValueStore

logger = logging.getLogger(__name__)

SPEED_DEMON_MINUTES = 5.0


class Tally(CamelModel):
    solved: int = 0
    total: int = 0

    @model_validator(mode="after")
    def _keep_consistent(self):
        self.solved = max(self.solved, 0)
        self.total = max(self.total, self.solved)
        return self

    @property
    def percent(self) -> int:
        return round(self.solved / self.total * 100) if self.total else 0


class Achievement(CamelModel):
    id: str
    name: str
    description: str
    icon: str
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None
    progress: int = 0
    max_progress: int = 1

    @model_validator(mode="after")
    def _clamp(self):
        self.progress = max(0, min(self.progress, self.max_progress))
        return self

    def advance_to(self, value: int, now: Optional[datetime] = None) -> bool:
        """
        Raise progress to value (never lowers it). Returns True on a new unlock.
        """
        self.progress = max(self.progress, min(value, self.max_progress))
        if not self.unlocked and self.progress >= self.max_progress:
            self.unlocked = True
            self.unlocked_at = now or datetime.now()
            return True
        return False


def default_achievements() -> List[Achievement]:
    return [
        Achievement(id="first-problem", name="First Steps", description="Solve your first coding problem", icon="🎯", max_progress=1),
        Achievement(id="streak-3", name="On Fire!", description="Maintain a 3-day solving streak", icon="🔥", max_progress=3),
        Achievement(id="streak-7", name="Week Warrior", description="Maintain a 7-day solving streak", icon="⚡", max_progress=7),
        Achievement(id="language-master", name="Polyglot", description="Solve problems in all three languages", icon="🌍", max_progress=3),
        Achievement(id="complexity-climber", name="Difficulty Climber", description="Solve problems of all complexity levels", icon="🏔️", max_progress=3),
        Achievement(id="speed-demon", name="Speed Demon", description="Solve a problem in under 5 minutes", icon="⚡", max_progress=1),
    ]


class ProgressRecord(CamelModel):
    total_problems: int = 0
    solved_problems: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_time: float = 0.0
    average_time: float = 0.0
    last_solved_on: Optional[date] = None
    languages: Dict[str, Tally] = Field(default_factory=lambda: {lang: Tally() for lang in LANGUAGES})
    complexity: Dict[str, Tally] = Field(default_factory=lambda: {c: Tally() for c in COMPLEXITIES})
    achievements: List[Achievement] = Field(default_factory=default_achievements)

    @model_validator(mode="after")
    def _fill_defaults(self):
        for lang in LANGUAGES:
            self.languages.setdefault(lang, Tally())
        for level in COMPLEXITIES:
            self.complexity.setdefault(level, Tally())
        known = {a.id for a in self.achievements}
        self.achievements.extend(a for a in default_achievements() if a.id not in known)
        self.total_problems = max(self.total_problems, self.solved_problems)
        return self

    @property
    def overall_percent(self) -> int:
        return round(self.solved_problems / self.total_problems * 100) if self.total_problems else 0

    def achievement(self, achievement_id: str) -> Achievement:
        for a in self.achievements:
            if a.id == achievement_id:
                return a
        raise KeyError(achievement_id)


class ProgressTracker:
    """Loads the progress record on init and saves it after every change."""

    def __init__(self, store: KeyValueStore, key: str = PROGRESS_KEY):
        self.store = store
        self.key = key
        self.record = self._load()

    def _load(self) -> ProgressRecord:
        data = self.store.load_json(self.key)
        if data is None:
            return ProgressRecord()
        try:
            return ProgressRecord.model_validate(data)
        except ValidationError as e:
            logger.error(f"Failed to parse saved progress, starting fresh: {e.error_count()} error(s)")
            return ProgressRecord()

    def save(self) -> None:
        self.store.save_json(self.key, self.record.to_wire())

    def record_attempt(self, language: str, complexity: str) -> None:
        """A new problem was loaded for the learner."""
        rec = self.record
        rec.total_problems += 1
        rec.languages[language].total += 1
        rec.complexity[complexity].total += 1
        self.save()

    def record_solve(
        self,
        language: str,
        complexity: str,
        minutes: float,
        solved_on: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> List[Achievement]:
        """
        Record a correct solution and update streaks and achievements.

        Args:
            language: Language of the solved problem
            complexity: Complexity of the solved problem
            minutes: Time from problem load to correct run
            solved_on: Day of the solve (defaults to today)
            now: Timestamp used for unlocks (defaults to now)

        Returns:
            Achievements unlocked by this solve
        """
        rec = self.record
        solved_on = solved_on or date.today()
        minutes = max(minutes, 0.0)

        rec.solved_problems += 1
        rec.total_problems = max(rec.total_problems, rec.solved_problems)
        for tally in (rec.languages[language], rec.complexity[complexity]):
            tally.solved += 1
            tally.total = max(tally.total, tally.solved)

        if rec.last_solved_on == solved_on:
            rec.current_streak = max(rec.current_streak, 1)
        elif rec.last_solved_on == solved_on - timedelta(days=1):
            rec.current_streak += 1
        else:
            rec.current_streak = 1
        rec.last_solved_on = solved_on
        rec.longest_streak = max(rec.longest_streak, rec.current_streak)

        rec.total_time += minutes
        rec.average_time = rec.total_time / rec.solved_problems

        languages_solved = sum(1 for t in rec.languages.values() if t.solved > 0)
        levels_solved = sum(1 for t in rec.complexity.values() if t.solved > 0)
        targets = {
            "first-problem": rec.solved_problems,
            "streak-3": rec.current_streak,
            "streak-7": rec.current_streak,
            "language-master": languages_solved,
            "complexity-climber": levels_solved,
            "speed-demon": 1 if minutes < SPEED_DEMON_MINUTES else 0,
        }
        unlocked = []
        for achievement in rec.achievements:
            if achievement.id in targets and achievement.advance_to(targets[achievement.id], now):
                logger.info(f"🏆 Achievement unlocked: {achievement.name}")
                unlocked.append(achievement)

        self.save()
        return unlocked
