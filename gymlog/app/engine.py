"""
GymLog Engine.

Application facade that wires the event store, checkpointing, backups,
derived views and the rotation scheduler together, and turns host
commands into events.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Sequence

from gymlog.app.config import GymLogConfig, get_config
from gymlog.core.errors import CorruptStoreError, EngineInitError
from gymlog.core.events import (
    EventType,
    ExerciseCreatedEvent,
    ExerciseNoteLoggedEvent,
    ExerciseUpdatedEvent,
    GymCreatedEvent,
    GymUpdatedEvent,
    PlanCreatedEvent,
    PlanDeletedEvent,
    RotationActivatedEvent,
    RotationAdvancedEvent,
    RotationCreatedEvent,
    SetLoggedEvent,
    TemplateCreatedEvent,
    TemplateDeletedEvent,
    WorkoutFinishedEvent,
    WorkoutSavedEvent,
    WorkoutStartedEvent,
)
from gymlog.core.events.base import utc_now
from gymlog.core.store import EventStore
from gymlog.domain.rotation import RotationScheduler
from gymlog.domain.views import DerivedViewEngine
from gymlog.systems.backup import BackupCodec, ImportDeduplicator, ImportResult, export_backup
from gymlog.systems.storage import CheckpointManager, CheckpointResult, RecoveryResult
from gymlog.utils.ids import generate_entity_id, generate_session_id
from gymlog.utils.logging import get_logger, log_error, log_operation


logger = get_logger("app.engine")


@dataclass(frozen=True)
class QuickStart:
    """Next workout suggested by the active rotation."""

    rotation_id: str
    rotation_name: str
    plan_id: str
    gym_id: Optional[str]
    position: int
    total: int


class GymLogEngine:
    """Local event-sourced workout log.

    Usage:
        with GymLogEngine.open(config) as engine:
            gym = engine.create_gym("Home")
            session = engine.start_workout(gym.gym_id, plan_id)
            engine.log_set(session.session_id, exercise_id, 1, 100.0, 5)
            engine.finish_workout(session.session_id)
            engine.checkpoint()
    """

    def __init__(self, config: GymLogConfig | None = None):
        """Build the components without touching the disk.

        Prefer ``GymLogEngine.open`` which also recovers the durable store.
        """
        self.config = config or get_config()
        self.store = EventStore()
        self.checkpoints = CheckpointManager(
            self.store,
            self.config.db_path,
            backup_path=self.config.backup_path,
        )
        self.codec = BackupCodec()
        self.importer = ImportDeduplicator(
            self.store,
            codec=self.codec,
            extension=self.config.backup.extension,
        )
        self.views = DerivedViewEngine(
            self.store,
            warmup_tiers=self.config.views.warmup_tiers,
            weight_increment=self.config.views.weight_increment,
            ghost_tie_break=self.config.views.ghost_tie_break,
        )
        self.rotation = RotationScheduler(self.store)
        self.recovery: Optional[RecoveryResult] = None

    @classmethod
    def open(cls, config: GymLogConfig | None = None) -> "GymLogEngine":
        """Create an engine and rehydrate it from the durable store.

        Raises:
            EngineInitError: The durable store exists but cannot be read
                and no valid backup image is available
        """
        engine = cls(config)
        engine.config.data_dir.mkdir(parents=True, exist_ok=True)
        try:
            engine.recovery = engine.checkpoints.recover()
        except CorruptStoreError as exc:
            log_error(logger, "open", exc, {"db": engine.config.db_path})
            raise EngineInitError(f"Cannot open event store: {exc}") from exc

        log_operation(logger, "Engine ready", {
            "events": engine.recovery.event_count,
            "from_backup": engine.recovery.from_backup,
        })
        return engine

    def close(self) -> None:
        """Flush anything not yet checkpointed."""
        if self.checkpoints.has_pending():
            self.checkpoint()

    def __enter__(self) -> "GymLogEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ========== Catalog Commands ==========

    def create_gym(self, name: str, location: Optional[str] = None, gym_id: Optional[str] = None) -> GymCreatedEvent:
        event = GymCreatedEvent(
            gym_id=gym_id or generate_entity_id("gym"),
            name=name,
            location=location,
        )
        self.store.append(event)
        return event

    def update_gym(self, gym_id: str, name: str, location: Optional[str] = None) -> GymUpdatedEvent:
        event = GymUpdatedEvent(gym_id=gym_id, name=name, location=location)
        self.store.append(event)
        return event

    def create_exercise(
        self,
        name: str,
        muscle_group: str,
        is_global: bool = True,
        gym_id: Optional[str] = None,
        exercise_id: Optional[str] = None,
    ) -> ExerciseCreatedEvent:
        event = ExerciseCreatedEvent(
            exercise_id=exercise_id or generate_entity_id("exercise"),
            name=name,
            muscle_group=muscle_group,
            is_global=is_global,
            gym_id=gym_id,
        )
        self.store.append(event)
        return event

    def update_exercise(
        self,
        exercise_id: str,
        name: str,
        muscle_group: str,
        is_global: bool = True,
        gym_id: Optional[str] = None,
    ) -> ExerciseUpdatedEvent:
        event = ExerciseUpdatedEvent(
            exercise_id=exercise_id,
            name=name,
            muscle_group=muscle_group,
            is_global=is_global,
            gym_id=gym_id,
        )
        self.store.append(event)
        return event

    # ========== Structure Commands ==========

    def create_template(
        self,
        name: str,
        exercise_ids: Sequence[str],
        template_id: Optional[str] = None,
    ) -> TemplateCreatedEvent:
        event = TemplateCreatedEvent(
            template_id=template_id or generate_entity_id("template"),
            name=name,
            exercise_ids=list(exercise_ids),
        )
        self.store.append(event)
        return event

    def delete_template(self, template_id: str) -> TemplateDeletedEvent:
        """Tombstone a template. Workouts run from it keep their history."""
        event = TemplateDeletedEvent(template_id=template_id)
        self.store.append(event)
        return event

    def create_plan(
        self,
        name: str,
        exercise_ids: Sequence[str],
        plan_id: Optional[str] = None,
    ) -> PlanCreatedEvent:
        event = PlanCreatedEvent(
            plan_id=plan_id or generate_entity_id("plan"),
            name=name,
            exercise_ids=list(exercise_ids),
        )
        self.store.append(event)
        return event

    def delete_plan(self, plan_id: str) -> PlanDeletedEvent:
        event = PlanDeletedEvent(plan_id=plan_id)
        self.store.append(event)
        return event

    def create_rotation(
        self,
        name: str,
        plan_ids: Sequence[str],
        default_gym_id: Optional[str] = None,
    ) -> RotationCreatedEvent:
        return self.rotation.create_rotation(name, plan_ids, default_gym_id=default_gym_id)

    def activate_rotation(self, rotation_id: str) -> RotationActivatedEvent:
        return self.rotation.activate(rotation_id)

    # ========== Workout Commands ==========

    def start_workout(
        self,
        gym_id: str,
        plan_id: str,
        started_at: Optional[datetime] = None,
        session_id: Optional[str] = None,
    ) -> WorkoutStartedEvent:
        event = WorkoutStartedEvent(
            session_id=session_id or generate_session_id(),
            gym_id=gym_id,
            plan_id=plan_id,
            started_at=started_at or utc_now(),
        )
        self.store.append(event)
        return event

    def log_set(
        self,
        session_id: str,
        exercise_id: str,
        set_number: int,
        weight: float,
        reps: int,
        rir: Optional[int] = None,
    ) -> SetLoggedEvent:
        event = SetLoggedEvent(
            session_id=session_id,
            exercise_id=exercise_id,
            set_number=set_number,
            weight=weight,
            reps=reps,
            rir=rir,
        )
        self.store.append(event)
        return event

    def log_note(
        self,
        session_id: str,
        exercise_id: str,
        text: str,
        logged_at: Optional[datetime] = None,
    ) -> ExerciseNoteLoggedEvent:
        event = ExerciseNoteLoggedEvent(
            session_id=session_id,
            exercise_id=exercise_id,
            text=text,
            logged_at=logged_at or utc_now(),
        )
        self.store.append(event)
        return event

    def finish_workout(self, session_id: str) -> Optional[RotationAdvancedEvent]:
        """Finish and save a workout, then advance the rotation if it applies.

        Returns:
            The rotation_advanced event, or None when the rotation did not move

        Raises:
            KeyError: No workout_started event for ``session_id``
        """
        started = self.store.query(
            event_types=[EventType.WORKOUT_STARTED], entity_id=session_id
        ).first()
        if started is None:
            raise KeyError(session_id)

        shape = {
            "session_id": started.session_id,
            "gym_id": started.gym_id,
            "plan_id": started.plan_id,
            "started_at": started.started_at,
        }
        with self.store.exclusive():
            self.store.append(WorkoutFinishedEvent(**shape))
            self.store.append(WorkoutSavedEvent(**shape))
        return self.rotation.record_completion(session_id)

    # ========== Durability ==========

    def checkpoint(self) -> CheckpointResult:
        """Persist everything appended since the last checkpoint.

        Raises:
            StorageWriteError: Nothing was written; safe to retry
        """
        return self.checkpoints.checkpoint()

    def clear_historical(self) -> int:
        """Drop all but gyms and exercises, then checkpoint the result.

        Returns:
            Number of events left in the store
        """
        remaining = self.store.clear_historical()
        self.checkpoint()
        return remaining

    # ========== Backup ==========

    def export_backup(self, directory: str | Path | None = None, day: date | None = None) -> Path:
        return export_backup(
            self.store,
            directory or self.config.export_dir,
            day=day,
            codec=self.codec,
            prefix=self.config.backup.filename_prefix,
            extension=self.config.backup.extension,
        )

    def import_backup(self, path: str | Path) -> ImportResult:
        """Merge a backup file into the store, skipping events already present."""
        return self.importer.import_file(path)

    # ========== Queries ==========

    def event_count(self) -> int:
        return self.store.count()

    def event_counts(self) -> dict[str, int]:
        return self.store.counts_by_type()

    def next_workout(self) -> Optional[QuickStart]:
        state = self.rotation.state()
        if state is None:
            return None
        position, total = state.position
        return QuickStart(
            rotation_id=state.rotation_id,
            rotation_name=state.name,
            plan_id=state.current_plan_id,
            gym_id=state.default_gym_id,
            position=position,
            total=total,
        )
