"""
Resource Operations
===================

``LensesClient`` adds typed operations for each Lenses resource on top of
the transport in ``Client``. Every operation validates its input before
contacting the server and performs a single round trip; the live operations
hold one streaming response until it ends.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import quote_plus

import httpx

from lenses_cli.api.client import Client
from lenses_cli.api.constants import (
    ACL_PATH,
    ALERT_SETTINGS_PATH,
    ALERTS_LIVE_PATH,
    ALERTS_PATH,
    AUDIT_LIVE_PATH,
    AUDIT_PATH,
    COMPATIBILITY_LEVEL_PATH,
    CONFIG_PATH,
    CONNECT_CLUSTERS_KEY,
    CONNECTORS_PATH,
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_SCHEMA_JSON,
    DEFAULT_PROCESSOR_LOG_LINES,
    EXECUTION_MODE_KEY,
    GROUPS_PATH,
    LICENSE_PATH,
    LOGS_INFO_PATH,
    LOGS_METRICS_PATH,
    POLICY_PATH,
    PROCESSOR_LOGS_LIVE_PATH,
    QUERIES_PATH,
    QUOTAS_PATH,
    SCHEMA_BY_ID_PATH,
    SCHEMA_LATEST_VERSION,
    SUBJECTS_PATH,
    TOPICS_PATH,
    USERS_PATH,
    VALIDATE_SQL_PATH,
)
from lenses_cli.api.errors import LensesError, RequiredFieldError
from lenses_cli.api.models import (
    ACL,
    Alert,
    AlertSettings,
    AuditEntry,
    ConnectCluster,
    Connector,
    DataPolicy,
    ExecutionMode,
    Group,
    LicenseInfo,
    LogLine,
    LSQLValidation,
    ProcessorLog,
    Quota,
    RunningQuery,
    Schema,
    Topic,
    UserMember,
)
from lenses_cli.api.options import (
    CONFIG_ACCEPT_OPTION,
    EVENT_STREAM_OPTION,
    SCHEMA_API_OPTION,
)

AlertHandler = Callable[[Alert], Any]
AuditEntryHandler = Callable[[AuditEntry], Any]
ProcessorLogHandler = Callable[[str, str], Any]

_MAX_SCHEMA_VERSION = 2**31 - 1


def _require(value: Any, name: str) -> None:
    if not value:
        raise RequiredFieldError(name)


def _encode(payload: Any) -> bytes:
    return json.dumps(payload).encode("utf-8")


class LensesClient(Client):
    """
    Typed Lenses API client.

    Covers:
    - Session, license and box configuration
    - SQL validation and running queries
    - Topics, connectors, schemas, ACLs and quotas
    - Alerts, audit entries and logs, including their live streams
    - Data policies, users and groups
    """

    # =========================================================================
    # License and Box Configuration
    # =========================================================================

    def get_license_info(self) -> LicenseInfo:
        """License of the connected box, with the time left until it expires."""
        response = self.do("GET", LICENSE_PATH)
        info = self.read_json(response, LicenseInfo)
        info.compute_expiry()
        return info

    def get_config(self) -> Dict[str, Any]:
        """The whole, read-only box configuration."""
        response = self.do("GET", CONFIG_PATH, options=[CONFIG_ACCEPT_OPTION])
        return self.read_json(response)

    def get_config_entry(self, *keys: str) -> Any:
        """First value found for ``keys`` in the box configuration.

        Raises:
            LensesError: If the configuration is empty or none of the keys exist
        """
        config = self.get_config()
        if not config:
            raise LensesError(f"{list(keys)}: cannot be extracted: unable to retrieve the config")

        for key in keys:
            if key in config:
                return config[key]

        raise LensesError(f"[{keys[-1] if keys else ''}]: couldn't find the corresponding key from config")

    def get_execution_mode(self) -> ExecutionMode:
        config = self.get_config()
        return ExecutionMode.match(config.get(EXECUTION_MODE_KEY))

    def get_connect_clusters(self) -> List[ConnectCluster]:
        value = self.get_config_entry(CONNECT_CLUSTERS_KEY)
        # An unset key comes back as an empty string.
        if not isinstance(value, list):
            return []
        return [ConnectCluster.from_dict(item) for item in value]

    # =========================================================================
    # SQL
    # =========================================================================

    def validate_lsql(self, sql: str) -> LSQLValidation:
        """Validate, without running, a SQL statement.

        An invalid statement is not an error: the server answers 400 with
        the position and message of the problem.
        """
        if not sql:
            raise LensesError("client: sql is empty")

        path = VALIDATE_SQL_PATH + quote_plus(sql)
        response = self.do("GET", path, CONTENT_TYPE_JSON)
        return self.read_json(response, LSQLValidation)

    def get_running_queries(self) -> List[RunningQuery]:
        response = self.do("GET", QUERIES_PATH)
        return [RunningQuery.from_dict(item) for item in self.read_json(response) or []]

    def cancel_query(self, query_id: int) -> bool:
        """Stop a running query. Returns whether the server cancelled it."""
        response = self.do("DELETE", f"{QUERIES_PATH}/{query_id}")
        return bool(self.read_json(response))

    # =========================================================================
    # Topics
    # =========================================================================

    def get_topics(self) -> List[Topic]:
        response = self.do("GET", TOPICS_PATH)
        return [Topic.from_dict(item) for item in self.read_json(response) or []]

    def get_topics_names(self) -> List[str]:
        return [topic.topic_name for topic in self.get_topics()]

    def get_topic(self, name: str) -> Topic:
        _require(name, "topicName")
        response = self.do("GET", f"{TOPICS_PATH}/{name}")
        return self.read_json(response, Topic)

    def create_topic(
        self,
        name: str,
        replication: int,
        partitions: int,
        configs: Optional[Dict[str, Any]] = None,
    ) -> None:
        _require(name, "topicName")
        payload = {
            "topicName": name,
            "replication": replication,
            "partitions": partitions,
            "configs": configs or {},
        }
        response = self.do("POST", TOPICS_PATH, CONTENT_TYPE_JSON, _encode(payload))
        self.close_response(response)

    def delete_topic(self, name: str) -> None:
        _require(name, "topicName")
        response = self.do("DELETE", f"{TOPICS_PATH}/{name}")
        self.close_response(response)

    # =========================================================================
    # Connectors
    # =========================================================================

    def _connector_path(self, cluster: str, name: Optional[str] = None, suffix: str = "") -> str:
        _require(cluster, "clusterName")
        path = CONNECTORS_PATH.format(cluster=cluster)
        if name is not None:
            _require(name, "name")
            path = f"{path}/{name}"
        return path + suffix

    def get_connectors(self, cluster: str) -> List[str]:
        """Names of the active connectors of a connect cluster."""
        response = self.do("GET", self._connector_path(cluster), CONTENT_TYPE_JSON)
        return list(self.read_json(response) or [])

    def get_connector(self, cluster: str, name: str) -> Connector:
        response = self.do("GET", self._connector_path(cluster, name), CONTENT_TYPE_JSON)
        connector = self.read_json(response, Connector)
        connector.cluster_name = cluster
        return connector

    def create_connector(self, cluster: str, name: str, config: Dict[str, Any]) -> Connector:
        path = self._connector_path(cluster)
        _require(name, "name")
        payload = _encode({"name": name, "config": config})
        response = self.do("POST", path, CONTENT_TYPE_JSON, payload)
        return self.read_json(response, Connector)

    def update_connector(self, cluster: str, name: str, config: Dict[str, Any]) -> Connector:
        """Replace the configuration of a connector, creating it if needed."""
        path = self._connector_path(cluster, name, "/config")
        response = self.do("PUT", path, CONTENT_TYPE_JSON, _encode(config))
        return self.read_json(response, Connector)

    def pause_connector(self, cluster: str, name: str) -> None:
        # Answered with 202 Accepted.
        response = self.do("PUT", self._connector_path(cluster, name, "/pause"))
        self.close_response(response)

    def resume_connector(self, cluster: str, name: str) -> None:
        response = self.do("PUT", self._connector_path(cluster, name, "/resume"))
        self.close_response(response)

    def restart_connector(self, cluster: str, name: str) -> None:
        """Restart a connector and its tasks; 409 while a rebalance is running."""
        response = self.do("POST", self._connector_path(cluster, name, "/restart"))
        self.close_response(response)

    def delete_connector(self, cluster: str, name: str) -> None:
        response = self.do("DELETE", self._connector_path(cluster, name))
        self.close_response(response)

    # =========================================================================
    # Schemas
    # =========================================================================

    def get_subjects(self) -> List[str]:
        response = self.do("GET", SUBJECTS_PATH, options=[SCHEMA_API_OPTION])
        return list(self.read_json(response) or [])

    def get_subject_versions(self, subject: str) -> List[int]:
        _require(subject, "subject")
        path = f"{SUBJECTS_PATH}/{subject}/versions"
        response = self.do("GET", path, options=[SCHEMA_API_OPTION])
        return list(self.read_json(response) or [])

    def get_schema(self, schema_id: int) -> str:
        """The schema text registered under a global schema id."""
        path = SCHEMA_BY_ID_PATH.format(id=schema_id)
        response = self.do("GET", path, options=[SCHEMA_API_OPTION])
        return (self.read_json(response) or {}).get("schema", "")

    def _get_subject_schema(self, subject: str, version: Union[int, str]) -> Schema:
        _require(subject, "subject")
        if isinstance(version, str):
            if version != SCHEMA_LATEST_VERSION:
                raise LensesError(
                    f"client: [{version}] string is not a valid value for the versionID "
                    f'input parameter [versionID == "{SCHEMA_LATEST_VERSION}"]'
                )
        elif version <= 0 or version > _MAX_SCHEMA_VERSION:
            raise LensesError(
                f"client: [{version}] integer is not a valid value for the versionID "
                "input parameter [ versionID > 0 && versionID <= 2^31-1]"
            )

        path = f"{SUBJECTS_PATH}/{subject}/versions/{version}"
        response = self.do("GET", path, options=[SCHEMA_API_OPTION])
        return self.read_json(response, Schema)

    def get_latest_schema(self, subject: str) -> Schema:
        return self._get_subject_schema(subject, SCHEMA_LATEST_VERSION)

    def get_schema_at_version(self, subject: str, version: int) -> Schema:
        return self._get_subject_schema(subject, version)

    def register_schema(self, subject: str, avro_schema: str) -> int:
        """Register a schema under ``subject`` and return its global id."""
        _require(subject, "subject")
        _require(avro_schema, "avroSchema")

        path = f"{SUBJECTS_PATH}/{subject}/versions"
        response = self.do(
            "POST",
            path,
            CONTENT_TYPE_SCHEMA_JSON,
            _encode({"schema": avro_schema}),
            options=[SCHEMA_API_OPTION],
        )
        return int((self.read_json(response) or {}).get("id", 0))

    def get_global_compatibility_level(self) -> str:
        response = self.do("GET", COMPATIBILITY_LEVEL_PATH, options=[SCHEMA_API_OPTION])
        return (self.read_json(response) or {}).get("compatibilityLevel", "")

    # =========================================================================
    # ACLs and Quotas
    # =========================================================================

    def _no_authorizer_check(self, response) -> None:
        # The ACL API answers 400 with a plain text body when no authorizer is set.
        if response.status_code == 400:
            self.close_response(response)
            raise LensesError("no authorizer is configured on the broker")

    def get_acls(self) -> List[ACL]:
        response = self.do("GET", ACL_PATH)
        self._no_authorizer_check(response)
        return [ACL.from_dict(item) for item in self.read_json(response) or []]

    def create_or_update_acl(self, acl: ACL) -> None:
        acl.validate()
        response = self.do("PUT", ACL_PATH, CONTENT_TYPE_JSON, _encode(acl.to_dict()))
        self._no_authorizer_check(response)
        self.close_response(response)

    def delete_acl(self, acl: ACL) -> None:
        acl.validate()
        response = self.do("DELETE", ACL_PATH, CONTENT_TYPE_JSON, _encode(acl.to_dict()))
        self._no_authorizer_check(response)
        self.close_response(response)

    def get_quotas(self) -> List[Quota]:
        response = self.do("GET", QUOTAS_PATH)
        return [Quota.from_dict(item) for item in self.read_json(response) or []]

    # =========================================================================
    # Alerts
    # =========================================================================

    def get_alerts(self) -> List[Alert]:
        response = self.do("GET", ALERTS_PATH)
        return [Alert.from_dict(item) for item in self.read_json(response) or []]

    def register_alert(self, alert: Alert) -> None:
        """Register an alert. The severity label is required and sent upper-cased."""
        if not alert.labels.severity:
            raise RequiredFieldError("Labels.Severity")
        alert.labels.severity = alert.labels.severity.upper()

        response = self.do("POST", ALERTS_PATH, CONTENT_TYPE_JSON, _encode(alert.to_dict()))
        self.close_response(response)

    def get_alert_settings(self) -> AlertSettings:
        response = self.do("GET", ALERT_SETTINGS_PATH)
        return self.read_json(response, AlertSettings)

    def enable_alert_setting(self, setting_id: int, enable: bool = True) -> None:
        path = f"{ALERT_SETTINGS_PATH}/{setting_id}"
        response = self.do("PUT", path, send=json.dumps(enable).encode("utf-8"))
        self.close_response(response)

    def get_alerts_live(self, handler: AlertHandler) -> None:
        """Call ``handler`` with each alert as the server raises it.

        Blocks until the server closes the stream or ``handler`` raises.
        """
        _require(handler, "handler")
        response = self.do(
            "GET",
            ALERTS_LIVE_PATH,
            CONTENT_TYPE_JSON,
            options=[EVENT_STREAM_OPTION, SCHEMA_API_OPTION],
        )
        self.stream_events(response, lambda payload: Alert.from_dict(json.loads(payload)), handler)

    # =========================================================================
    # Audit
    # =========================================================================

    def get_audit_entries(self) -> List[AuditEntry]:
        response = self.do("GET", AUDIT_PATH)
        return [AuditEntry.from_dict(item) for item in self.read_json(response) or []]

    def get_audit_entries_live(self, handler: AuditEntryHandler) -> None:
        """Call ``handler`` with each audit entry as it is recorded."""
        _require(handler, "handler")
        response = self.do(
            "GET", AUDIT_LIVE_PATH, CONTENT_TYPE_JSON, options=[EVENT_STREAM_OPTION]
        )
        self.stream_events(
            response, lambda payload: AuditEntry.from_dict(json.loads(payload)), handler
        )

    # =========================================================================
    # Logs
    # =========================================================================

    def get_logs_info(self) -> List[LogLine]:
        response = self.do("GET", LOGS_INFO_PATH)
        return [LogLine.from_dict(item) for item in self.read_json(response) or []]

    def get_logs_metrics(self) -> List[LogLine]:
        response = self.do("GET", LOGS_METRICS_PATH)
        return [LogLine.from_dict(item) for item in self.read_json(response) or []]

    def get_processors_logs(
        self,
        cluster: str,
        namespace: str,
        pod: str,
        follow: bool,
        lines: int,
        handler: ProcessorLogHandler,
    ) -> None:
        """Tail the logs of a SQL processor pod.

        Only available when the box runs processors on Kubernetes. The
        handler receives ``(level, text)``: structured records give their
        level and ``"<time> <message>"``, records that fail to parse give
        ``"info"`` and the raw payload, and plain lines give an empty level.

        Args:
            cluster: Kubernetes cluster name
            namespace: Kubernetes namespace
            pod: Processor pod name
            follow: Keep the stream open for new lines
            lines: Lines of history when following; non-positive means 100
            handler: Called with ``(level, text)`` for each line
        """
        _require(handler, "handler")
        mode = ExecutionMode.INVALID
        try:
            mode = self.get_execution_mode()
        except (LensesError, httpx.HTTPError, json.JSONDecodeError) as e:
            if self.debug:
                self.logger.debug("execution_mode_unavailable", error=str(e))
        if mode is not ExecutionMode.KUBERNETES:
            raise LensesError("unable to retrieve logs, execution mode is not KUBERNETES")

        path = PROCESSOR_LOGS_LIVE_PATH.format(cluster=cluster, namespace=namespace, pod=pod)
        if follow:
            if lines <= 0:
                lines = DEFAULT_PROCESSOR_LOG_LINES
            path += f"?follow=true&lines={lines}"

        response = self.do("GET", path, CONTENT_TYPE_JSON, options=[EVENT_STREAM_OPTION])
        self.stream_events(
            response,
            lambda payload: payload,
            lambda payload: _dispatch_processor_log(payload, handler),
            strict=False,
        )

    # =========================================================================
    # Data Policies
    # =========================================================================

    def get_policies(self) -> List[DataPolicy]:
        response = self.do("GET", POLICY_PATH)
        return [DataPolicy.from_dict(item) for item in self.read_json(response) or []]

    def get_policy(self, policy_id: str) -> DataPolicy:
        _require(policy_id, "id")
        response = self.do("GET", f"{POLICY_PATH}/{policy_id}")
        return self.read_json(response, DataPolicy)

    def delete_policy(self, policy_id: str) -> None:
        _require(policy_id, "id")
        response = self.do("DELETE", f"{POLICY_PATH}/{policy_id}")
        self.close_response(response)

    # =========================================================================
    # Users and Groups
    # =========================================================================

    def get_users(self) -> List[UserMember]:
        response = self.do("GET", USERS_PATH, CONTENT_TYPE_JSON)
        return [UserMember.from_dict(item) for item in self.read_json(response) or []]

    def get_groups(self) -> List[Group]:
        response = self.do("GET", GROUPS_PATH, CONTENT_TYPE_JSON)
        return [Group.from_dict(item) for item in self.read_json(response) or []]


def _dispatch_processor_log(payload: bytes, handler: ProcessorLogHandler) -> None:
    text = payload.decode("utf-8", errors="replace")
    if not payload.startswith(b"{"):
        # Plain lines carry their own level.
        handler("", text)
        return

    try:
        record = ProcessorLog.from_dict(json.loads(payload))
    except (ValueError, TypeError):
        handler("info", text)
        return

    handler(record.level, f"{record.formatted_time()} {record.message}")
