from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

MSG_DATA_RECEIVED = "Data received successfully"
MSG_ANOMALY_SUBSTITUTED = "Anomaly detected, returning last valid measurement"
MSG_ANOMALY_NO_HISTORY = "Anomaly detected and no valid previous measurement found"
MSG_TARGET_UPDATED = "Target weight updated successfully"
MSG_INVALID_DATA = "Invalid data received"
MSG_INVALID_TARGET = "Invalid target weight"


class ReadingIn(BaseModel):
    # El sensor manda weight como número o string ("3000.5"); la validación
    # real la hace el pipeline para responder 400 en vez de 422.
    model_config = ConfigDict(extra="ignore")

    weight: Optional[Any] = None
    status: Optional[Any] = None


class TargetWeightIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    targetWeight: Optional[Any] = None


class IngestAccepted(BaseModel):
    message: str = MSG_DATA_RECEIVED
    weight: float
    targetWeight: float
    status: str
    is_anomaly: bool


class SubstitutedReading(BaseModel):
    weight: float
    status: str
    timestamp: str
    message: str = MSG_ANOMALY_SUBSTITUTED


class MessageOut(BaseModel):
    message: str


class ErrorOut(BaseModel):
    error: str
