"""Object metadata shared by every platform resource.

Resources use snake_case attributes and camelCase aliases, so a platform
JSON document validates directly::

    Pod.model_validate({"metadata": {"name": "p", "deletionTimestamp": None}})
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class APIModel(BaseModel):
    """Base for every platform schema: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ConditionStatus:
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ObjectMeta(APIModel):
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    resource_version: str = ""
    creation_timestamp: datetime | None = None
    deletion_timestamp: datetime | None = None


class ObjectReference(APIModel):
    kind: str = ""
    name: str
    namespace: str = ""


class Resource(APIModel):
    """A named, namespaced platform object.

    ``kind`` identifies the resource type in the object store and in the
    ResourceCollection; subclasses override it.
    """

    kind: ClassVar[str] = ""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def labels(self) -> dict[str, str]:
        return self.metadata.labels

    @property
    def annotations(self) -> dict[str, str]:
        return self.metadata.annotations


class GenericCondition(APIModel):
    """Condition shape shared by pods, workloads and jobs."""

    type: str
    status: str = ConditionStatus.UNKNOWN
    reason: str = ""
    message: str = ""
    last_transition_time: datetime | None = None


def find_condition(conditions: list[GenericCondition], condition_type: str) -> GenericCondition | None:
    """Return the first condition of ``condition_type``, or None."""
    for condition in conditions:
        if condition.type == condition_type:
            return condition
    return None
