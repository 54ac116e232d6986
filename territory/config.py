"""
Tunables for the territory claim engine.
"""

import os
from dataclasses import dataclass, fields, replace

KMH = 1 / 3.6


@dataclass(frozen=True)
class ClaimSettings:
    # Loop closure
    closure_distance_m: float = 30.0  # newest fix this close to the start closes the loop
    min_closure_points: int = 10
    min_path_length_m: float = 50.0

    # Sample filter
    max_accuracy_m: float = 50.0
    min_sample_spacing_m: float = 10.0  # closer fixes are skipped (GPS jitter)
    speed_warning_mps: float = 15.0 * KMH
    max_speed_mps: float = 30.0 * KMH
    warning_display_seconds: float = 3.0

    # Polygon validation
    min_area_m2: float = 100.0
    min_vertex_spacing_m: float = 3.0
    geodesic_area: bool = False

    # Building placement
    placement_clearance_m: float = 8.0

    @classmethod
    def from_env(cls, prefix: str = "TERRITORY_", environ=None) -> "ClaimSettings":
        """Build settings from e.g. TERRITORY_MAX_SPEED_MPS=6.5; unset variables keep defaults."""
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = environ.get(prefix + f.name.upper())
            if raw is None or raw == "":
                continue
            if f.type in (bool, "bool"):
                overrides[f.name] = raw.strip().lower() in ("1", "true", "yes", "on")
            elif f.type in (int, "int"):
                overrides[f.name] = int(raw)
            else:
                overrides[f.name] = float(raw)
        settings = cls(**overrides)
        validate_settings(settings)
        return settings

    def with_overrides(self, **kwargs) -> "ClaimSettings":
        settings = replace(self, **kwargs)
        validate_settings(settings)
        return settings


def validate_settings(settings: ClaimSettings) -> None:
    """
    Raise ValueError listing every invalid tunable.
    """
    errors = []
    positive = (
        "closure_distance_m",
        "min_path_length_m",
        "max_accuracy_m",
        "speed_warning_mps",
        "max_speed_mps",
        "min_area_m2",
        "placement_clearance_m",
    )
    for name in positive:
        value = getattr(settings, name)
        if value is None or value <= 0:
            errors.append(f"{name} must be positive, got {value}")
    for name in ("min_sample_spacing_m", "min_vertex_spacing_m", "warning_display_seconds"):
        value = getattr(settings, name)
        if value is None or value < 0:
            errors.append(f"{name} must not be negative, got {value}")
    if settings.min_closure_points < 4:
        errors.append(f"min_closure_points must be at least 4, got {settings.min_closure_points}")
    if settings.speed_warning_mps > settings.max_speed_mps:
        errors.append(
            f"speed_warning_mps ({settings.speed_warning_mps}) must not exceed max_speed_mps ({settings.max_speed_mps})"
        )

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)


# Global settings instance
settings = ClaimSettings()


def get_settings() -> ClaimSettings:
    return settings
