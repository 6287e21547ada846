"""Unified retrieval exception taxonomy.

Provides a shared base exception hierarchy for all retrieval stages,
catalogs, and the orchestrator. Every domain exception inherits from
``PipelineError`` and carries structured context fields that let the
orchestrator decide whether a failure drops one scene or aborts the run.

Taxonomy categories
-------------------
- ``ValidationError``: configuration/input violations, never retryable.
- ``TransientError``: temporary failures (I/O, busy storage), retryable.
- ``PermanentError``: unrecoverable per-scene failures, not retryable.
- ``ContractError``: a stage's band contract is not met, never retryable.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload, which is what the skip manifest records.

Per-pixel domain violations (zero transmittance, log of a non-positive
argument) are *not* exceptions: they surface as ``NaN`` in the output.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all retrieval-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Pipeline stage where the error occurred
            (e.g. ``"emissivity"``, ``"atmospheric_correction"``).
        code: Machine-readable error code (e.g. ``"MISSING_BAND"``).
        retryable: Whether the caller could retry the operation.
        correlation_id: Run or scene correlation identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(PipelineError):
    """Input or configuration validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(PipelineError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(PipelineError):
    """Unrecoverable domain failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(PipelineError):
    """A stage's required inputs are not present. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Retrieval-domain errors
# ---------------------------------------------------------------------------


class MissingBandError(ContractError):
    """A stage's required input band (or band role) is absent.

    Fatal for the scene: the orchestrator drops it and records the
    scene id and band name in the skip manifest.

    Attributes:
        band: Name of the missing band or band role.
        scene_id: Scene the raster belongs to (empty if unknown).
    """

    default_code = "MISSING_BAND"

    def __init__(self, band: str, *, scene_id: str = "", stage: str = "") -> None:
        self.band = band
        self.scene_id = scene_id
        where = f" in scene {scene_id!r}" if scene_id else ""
        super().__init__(
            f"Required band {band!r} is missing{where}",
            stage=stage,
            correlation_id=scene_id,
        )


class UnrecognizedSensorError(ValidationError):
    """No coefficient set or band table exists for the sensor identifier.

    Fatal for the whole run: it indicates misconfiguration, not bad data.
    """

    default_stage = "config"
    default_code = "UNRECOGNIZED_SENSOR"

    def __init__(self, sensor: object, *, known: tuple[str, ...] = ()) -> None:
        self.sensor = sensor
        suffix = f". Known sensors: {', '.join(known)}" if known else ""
        super().__init__(f"Unrecognized sensor {sensor!r}{suffix}")


class UnjoinedSceneError(PermanentError):
    """A scene has no unique counterpart across the two source catalogs.

    Never raised out of the join: the join phase records its
    ``to_error_dict()`` in the skip manifest and moves on.
    """

    default_stage = "join"
    default_code = "UNJOINED_SCENE"

    def __init__(self, scene_id: str, *, source: str, matches: int = 0) -> None:
        self.scene_id = scene_id
        self.source = source
        self.matches = matches
        super().__init__(
            f"Scene {scene_id!r} from {source} catalog has {matches} counterpart(s); expected 1",
            correlation_id=scene_id,
        )


class MissingCalibrationError(ContractError):
    """A scene's metadata lacks a thermal calibration constant.

    Fatal for the scene only; the orchestrator records it in the skip
    manifest like a missing band.
    """

    default_stage = "calibration"
    default_code = "MISSING_CALIBRATION"

    def __init__(self, key: str, *, scene_id: str = "") -> None:
        self.key = key
        self.scene_id = scene_id
        super().__init__(
            f"Calibration constant {key!r} missing or not numeric for scene {scene_id!r}",
            correlation_id=scene_id,
        )
