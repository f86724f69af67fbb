"""Closed vocabularies shared by the models and the scoring services."""

from __future__ import annotations

from typing import Optional

from django.db import models


class Degree(models.TextChoices):
    NONE = "0", "0 - No defect"
    MINOR = "1", "1 - Minor"
    MODERATE = "2", "2 - Moderate"
    SEVERE = "3", "3 - Severe"
    NOT_APPLICABLE = "X", "X - Not present / record only"
    UNABLE = "U", "U - Unable to inspect"

    @property
    def numeric(self) -> Optional[int]:
        return int(self.value) if self.value.isdigit() else None


class Extent(models.TextChoices):
    LOCALISED = "1", "1 - Less than 10%"
    LIMITED = "2", "2 - 10 to 30%"
    WIDESPREAD = "3", "3 - 30 to 60%"
    EXTENSIVE = "4", "4 - More than 60%"
    UNABLE = "U", "U - Unable to inspect"

    @property
    def numeric(self) -> Optional[int]:
        return int(self.value) if self.value.isdigit() else None


class Relevancy(models.TextChoices):
    LOW = "1", "1 - Low"
    MEDIUM = "2", "2 - Medium"
    HIGH = "3", "3 - High"
    CRITICAL = "4", "4 - Critical"
    UNABLE = "U", "U - Unable to inspect"

    @property
    def numeric(self) -> Optional[int]:
        return int(self.value) if self.value.isdigit() else None


class Urgency(models.TextChoices):
    RECORD_ONLY = "R", "Record Only"
    UNABLE = "U", "Unable to Inspect"
    ROUTINE = "0", "Routine"
    LOW = "1", "Low"
    MEDIUM = "2", "Medium"
    HIGH = "3", "High"
    CRITICAL = "4", "Critical"


class RatingStatus(models.TextChoices):
    COMPLETE = "complete", "Scored"
    RECORD_ONLY = "record_only", "Record only / no defect"
    UNABLE = "unable", "Unable to inspect"
    INCOMPLETE = "incomplete", "Rating incomplete"
    MALFORMED = "malformed", "Rating not recognised"


class CIBand(models.TextChoices):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class PriorityCategory(models.TextChoices):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
