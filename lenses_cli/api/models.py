"""
Data Models for API Client Module
===================================

Typed views over the JSON payloads exchanged with the Lenses API. Each
model converts from the wire form with ``from_dict`` and back with
``to_dict``; unknown keys are ignored so newer servers stay compatible.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from lenses_cli.api.errors import LensesError


class ExecutionMode(str, Enum):
    """SQL execution mode of the Lenses box."""

    INVALID = "INVALID"
    IN_PROCESS = "IN_PROC"
    CONNECT = "CONNECT"
    KUBERNETES = "KUBERNETES"

    @classmethod
    def match(cls, value: Optional[str]) -> "ExecutionMode":
        """Case-insensitive lookup; anything unrecognised is ``INVALID``."""
        try:
            return cls((value or "").upper())
        except ValueError:
            return cls.INVALID


@dataclass
class User:
    """The session user returned by the auth endpoint."""

    token: str = ""
    name: str = ""
    schema_registry_delete: bool = False
    roles: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            token=data.get("token") or "",
            name=data.get("user") or "",
            schema_registry_delete=bool(data.get("schemaRegistryDelete", False)),
            roles=list(data.get("roles") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "user": self.name,
            "schemaRegistryDelete": self.schema_registry_delete,
            "roles": self.roles,
        }


@dataclass
class LicenseInfo:
    client_id: str = ""
    is_respected: bool = False
    max_brokers: int = 0
    max_messages: int = 0
    expiry: int = 0
    years_to_expire: int = 0
    months_to_expire: int = 0
    days_to_expire: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LicenseInfo":
        return cls(
            client_id=data.get("clientId") or "",
            is_respected=bool(data.get("isRespected", False)),
            max_brokers=int(data.get("maxBrokers") or 0),
            max_messages=int(data.get("maxMessages") or 0),
            expiry=int(data.get("expiry") or 0),
        )

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.expiry // 1000, tz=timezone.utc)

    def compute_expiry(self, now: Optional[float] = None) -> None:
        """Fill the years/months/days-to-expire fields, keeping only the largest unit."""
        now = time.time() if now is None else now
        remaining = self.expiry // 1000 - now
        self.days_to_expire = int(remaining / 3600 / 24)
        self.months_to_expire = int(self.days_to_expire / 30)
        self.years_to_expire = int(self.months_to_expire / 12)

        if self.years_to_expire > 0:
            self.days_to_expire = 0
            self.months_to_expire = 0
        elif self.months_to_expire > 0:
            self.days_to_expire = 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "clientId": self.client_id,
            "isRespected": self.is_respected,
            "maxBrokers": self.max_brokers,
            "expiry": self.expiry,
        }
        for key, value in (
            ("maxMessages", self.max_messages),
            ("yearsToExpire", self.years_to_expire),
            ("monthsToExpire", self.months_to_expire),
            ("daysToExpire", self.days_to_expire),
        ):
            if value:
                data[key] = value
        return data


@dataclass
class ConnectCluster:
    name: str = ""
    url: str = ""
    statuses: str = ""
    config: str = ""
    offsets: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectCluster":
        return cls(
            name=data.get("name") or "",
            url=data.get("url") or "",
            statuses=data.get("statuses") or "",
            config=data.get("config") or "",
            offsets=data.get("offsets") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "statuses": self.statuses,
            "config": self.config,
            "offsets": self.offsets,
        }


@dataclass
class LSQLValidation:
    """Validation result for a SQL statement; ``line``/``column`` point at the error."""

    is_valid: bool = False
    line: int = 0
    column: int = 0
    message: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LSQLValidation":
        return cls(
            is_valid=bool(data.get("isValid", False)),
            line=int(data.get("line") or 0),
            column=int(data.get("column") or 0),
            message=data.get("message") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "line": self.line,
            "column": self.column,
            "message": self.message,
        }


@dataclass
class RunningQuery:
    id: int = 0
    sql: str = ""
    user: str = ""
    timestamp: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunningQuery":
        return cls(
            id=int(data.get("id") or 0),
            sql=data.get("sql") or "",
            user=data.get("user") or "",
            timestamp=int(data.get("ts") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "sql": self.sql, "user": self.user, "ts": self.timestamp}


@dataclass
class Topic:
    topic_name: str = ""
    key_type: str = ""
    value_type: str = ""
    partitions: int = 0
    replication: int = 0
    is_control_topic: bool = False
    messages_per_second: int = 0
    total_messages: int = 0
    configs: List[Dict[str, Any]] = field(default_factory=list)
    is_marked_for_deletion: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Topic":
        return cls(
            topic_name=data.get("topicName") or "",
            key_type=data.get("keyType") or "",
            value_type=data.get("valueType") or "",
            partitions=int(data.get("partitions") or 0),
            replication=int(data.get("replication") or 0),
            is_control_topic=bool(data.get("isControlTopic", False)),
            messages_per_second=int(data.get("messagesPerSecond") or 0),
            total_messages=int(data.get("totalMessages") or 0),
            configs=list(data.get("config") or []),
            is_marked_for_deletion=bool(data.get("isMarkedForDeletion", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topicName": self.topic_name,
            "keyType": self.key_type,
            "valueType": self.value_type,
            "partitions": self.partitions,
            "replication": self.replication,
            "isControlTopic": self.is_control_topic,
            "messagesPerSecond": self.messages_per_second,
            "totalMessages": self.total_messages,
            "config": self.configs,
            "isMarkedForDeletion": self.is_marked_for_deletion,
        }


@dataclass
class Connector:
    name: str = ""
    config: Dict[str, Any] = field(default_factory=dict)
    tasks: List[Dict[str, Any]] = field(default_factory=list)
    cluster_name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Connector":
        return cls(
            name=data.get("name") or "",
            config=dict(data.get("config") or {}),
            tasks=list(data.get("tasks") or []),
            cluster_name=data.get("clusterName") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.cluster_name:
            data["clusterName"] = self.cluster_name
        if self.config:
            data["config"] = self.config
        if self.tasks:
            data["tasks"] = self.tasks
        return data


@dataclass
class Schema:
    """A schema registered under a subject (``name``)."""

    id: int = 0
    name: str = ""
    version: int = 0
    avro_schema: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Schema":
        return cls(
            id=int(data.get("id") or 0),
            name=data.get("subject") or "",
            version=int(data.get("version") or 0),
            avro_schema=data.get("schema") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.name,
            "version": self.version,
            "schema": self.avro_schema,
        }


# Operations allowed per ACL resource type.
ACL_OPERATIONS: Dict[str, List[str]] = {
    "TOPIC": ["ALL", "READ", "WRITE", "DESCRIBE", "DESCRIBE_CONFIGS", "ALTER_CONFIGS"],
    "GROUP": ["ALL", "READ", "DESCRIBE", "DELETE"],
    "CLUSTER": [
        "ALL",
        "CREATE",
        "CLUSTER_ACTION",
        "DESCRIBE",
        "DESCRIBE_CONFIGS",
        "ALTER",
        "ALTER_CONFIGS",
        "IDEMPOTENT_WRITE",
    ],
    "TRANSACTIONAL_ID": ["ALL", "DESCRIBE", "WRITE"],
    "DELEGATION_TOKEN": ["ALL", "DESCRIBE"],
}


@dataclass
class ACL:
    """A single Kafka access control list entry."""

    resource_name: str = ""
    resource_type: str = ""
    principal: str = ""
    permission_type: str = ""
    host: str = ""
    operation: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ACL":
        return cls(
            resource_name=data.get("resourceName") or "",
            resource_type=data.get("resourceType") or "",
            principal=data.get("principal") or "",
            permission_type=data.get("permissionType") or "",
            host=data.get("host") or "",
            operation=data.get("operation") or "",
        )

    def validate(self) -> None:
        """Normalize case and defaults, and check the operation fits the resource type.

        Raises:
            LensesError: If the resource type is unknown or the operation is not
                allowed for it
        """
        if self.operation == "*":
            self.operation = "ALL"

        self.resource_type = self.resource_type.upper()
        self.permission_type = self.permission_type.upper()
        self.operation = self.operation.upper()

        valid_operations = ACL_OPERATIONS.get(self.resource_type)
        if valid_operations is None:
            raise LensesError(
                "invalid resource type. Valid resource types are: "
                "[TOPIC], [GROUP], [CLUSTER] or [TRANSACTIONAL_ID]"
            )
        if self.operation not in valid_operations:
            raise LensesError(
                f"invalid operation for resource type: [{self.resource_type}]. "
                f"The valid operations for this type are: [{' '.join(valid_operations)}]"
            )

        if not self.host:
            self.host = "*"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resourceName": self.resource_name,
            "resourceType": self.resource_type,
            "principal": self.principal,
            "permissionType": self.permission_type,
            "host": self.host,
            "operation": self.operation,
        }


@dataclass
class Quota:
    entity_name: str = ""
    entity_type: str = ""
    child: str = ""
    properties: Dict[str, str] = field(default_factory=dict)
    url: str = ""
    is_authorized: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quota":
        return cls(
            entity_name=data.get("entityName") or "",
            entity_type=data.get("entityType") or "",
            child=data.get("child") or "",
            properties=dict(data.get("properties") or {}),
            url=data.get("url") or "",
            is_authorized=bool(data.get("isAuthorized", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "entityName": self.entity_name,
            "entityType": self.entity_type,
            "properties": self.properties,
            "url": self.url,
            "isAuthorized": self.is_authorized,
        }
        if self.child:
            data["child"] = self.child
        return data


@dataclass
class AlertLabels:
    severity: str = ""
    category: str = ""
    instance: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertLabels":
        return cls(
            severity=data.get("severity") or "",
            category=data.get("category") or "",
            instance=data.get("instance") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"severity": self.severity}
        if self.category:
            data["category"] = self.category
        if self.instance:
            data["instance"] = self.instance
        return data


@dataclass
class AlertAnnotations:
    summary: str = ""
    source: str = ""
    docs: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertAnnotations":
        return cls(
            summary=data.get("summary") or "",
            source=data.get("source") or "",
            docs=data.get("docs") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"summary": self.summary}
        if self.source:
            data["source"] = self.source
        if self.docs:
            data["docs"] = self.docs
        return data


@dataclass
class Alert:
    """
    An alert as registered and as listed.

    ``alert_id`` refers to the alert setting the alert belongs to. A
    registered alert must carry a severity label.
    """

    alert_id: int = 0
    labels: AlertLabels = field(default_factory=AlertLabels)
    annotations: AlertAnnotations = field(default_factory=AlertAnnotations)
    generator_url: str = ""
    starts_at: str = ""
    ends_at: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Alert":
        return cls(
            alert_id=int(data.get("alertId") or 0),
            labels=AlertLabels.from_dict(data.get("labels") or {}),
            annotations=AlertAnnotations.from_dict(data.get("annotations") or {}),
            generator_url=data.get("generatorURL") or "",
            starts_at=data.get("startsAt") or "",
            ends_at=data.get("endsAt") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alertId": self.alert_id,
            "labels": self.labels.to_dict(),
            "annotations": self.annotations.to_dict(),
            "generatorURL": self.generator_url,
            "startsAt": self.starts_at,
            "endsAt": self.ends_at,
        }


@dataclass
class AlertSetting:
    id: int = 0
    description: str = ""
    category: str = ""
    enabled: bool = False
    is_available: bool = False
    conditions: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertSetting":
        return cls(
            id=int(data.get("id") or 0),
            description=data.get("description") or "",
            category=data.get("category") or "",
            enabled=bool(data.get("enabled", False)),
            is_available=bool(data.get("isAvailable", False)),
            conditions=dict(data.get("conditions") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "category": self.category,
            "enabled": self.enabled,
            "isAvailable": self.is_available,
            "conditions": self.conditions,
        }


@dataclass
class AlertSettings:
    """Alert settings grouped by category."""

    infrastructure: List[AlertSetting] = field(default_factory=list)
    consumers: List[AlertSetting] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertSettings":
        categories = data.get("categories") or {}
        return cls(
            infrastructure=[
                AlertSetting.from_dict(item) for item in categories.get("infrastructure") or []
            ],
            consumers=[AlertSetting.from_dict(item) for item in categories.get("consumers") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": {
                "infrastructure": [setting.to_dict() for setting in self.infrastructure],
                "consumers": [setting.to_dict() for setting in self.consumers],
            }
        }


@dataclass
class AuditEntry:
    type: str = ""
    change: str = ""
    user_id: str = ""
    timestamp: int = 0
    content: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditEntry":
        return cls(
            type=data.get("type") or "",
            change=data.get("change") or "",
            user_id=data.get("userId") or "",
            timestamp=int(data.get("timestamp") or 0),
            content=dict(data.get("content") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "change": self.change,
            "userId": self.user_id,
            "timestamp": self.timestamp,
            "content": self.content,
        }


@dataclass
class LogLine:
    level: str = ""
    thread: str = ""
    logger: str = ""
    message: str = ""
    stacktrace: str = ""
    timestamp: int = 0
    time: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogLine":
        return cls(
            level=data.get("level") or "",
            thread=data.get("thread") or "",
            logger=data.get("logger") or "",
            message=data.get("message") or "",
            stacktrace=data.get("stacktrace") or "",
            timestamp=int(data.get("timestamp") or 0),
            time=data.get("time") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "thread": self.thread,
            "logger": self.logger,
            "message": self.message,
            "stacktrace": self.stacktrace,
            "timestamp": self.timestamp,
            "time": self.time,
        }


@dataclass
class ProcessorLog:
    """A structured log record from a SQL processor pod."""

    timestamp: str = ""
    version: int = 0
    message: str = ""
    level: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessorLog":
        return cls(
            timestamp=data.get("@timestamp") or "",
            version=int(data.get("@version") or 0),
            message=data.get("message") or "",
            level=data.get("level") or "",
        )

    def formatted_time(self) -> str:
        """The timestamp as ``YYYY-mm-dd HH:MM:SS`` when it parses as RFC 3339, else as sent."""
        try:
            parsed = datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))
        except ValueError:
            return self.timestamp
        return parsed.strftime("%Y-%m-%d %H:%M:%S")


@dataclass
class DataPolicy:
    id: str = ""
    name: str = ""
    last_updated: str = ""
    versions: int = 0
    impact_type: str = ""
    impact: Dict[str, Any] = field(default_factory=dict)
    category: str = ""
    fields: List[str] = field(default_factory=list)
    obfuscation: str = ""
    last_updated_user: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataPolicy":
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            last_updated=data.get("lastUpdated") or "",
            versions=int(data.get("versions") or 0),
            impact_type=data.get("impactType") or "",
            impact=dict(data.get("impact") or {}),
            category=data.get("category") or "",
            fields=list(data.get("fields") or []),
            obfuscation=data.get("obfuscation") or "",
            last_updated_user=data.get("lastUpdatedUser") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "lastUpdated": self.last_updated,
            "versions": self.versions,
            "impactType": self.impact_type,
            "impact": self.impact,
            "category": self.category,
            "fields": self.fields,
            "obfuscation": self.obfuscation,
            "lastUpdatedUser": self.last_updated_user,
        }


@dataclass
class UserMember:
    """A Lenses user account (not the session user)."""

    username: str = ""
    email: str = ""
    groups: List[str] = field(default_factory=list)
    type: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserMember":
        return cls(
            username=data.get("username") or "",
            email=data.get("email") or "",
            groups=list(data.get("groups") or []),
            type=data.get("type") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "email": self.email,
            "groups": self.groups,
            "type": self.type,
        }


@dataclass
class Group:
    name: str = ""
    description: str = ""
    namespaces: List[Dict[str, Any]] = field(default_factory=list)
    scoped_permissions: List[str] = field(default_factory=list)
    admin_permissions: List[str] = field(default_factory=list)
    user_accounts: int = 0
    service_accounts: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Group":
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            namespaces=list(data.get("namespaces") or []),
            scoped_permissions=list(data.get("scopedPermissions") or []),
            admin_permissions=list(data.get("adminPermissions") or []),
            user_accounts=int(data.get("userAccounts") or 0),
            service_accounts=int(data.get("serviceAccounts") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "namespaces": self.namespaces,
            "scopedPermissions": self.scoped_permissions,
            "adminPermissions": self.admin_permissions,
            "userAccounts": self.user_accounts,
            "serviceAccounts": self.service_accounts,
        }
