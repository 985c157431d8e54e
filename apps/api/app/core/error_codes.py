from enum import Enum


class ErrorCode(str, Enum):
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_FULL = "EVENT_FULL"
    EVENT_CANCELLED = "EVENT_CANCELLED"
    EVENT_STARTED = "EVENT_STARTED"
    ALREADY_JOINED = "ALREADY_JOINED"
    NOT_PARTICIPANT = "NOT_PARTICIPANT"
    NOT_EVENT_OWNER = "NOT_EVENT_OWNER"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_FIELD = "INVALID_FIELD"
    CAPACITY_BELOW_PARTICIPANTS = "CAPACITY_BELOW_PARTICIPANTS"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
