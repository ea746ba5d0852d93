from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from gamenite.control.errors import ErrorKind, GameNiteError, service_creation_failed
from gamenite.control.models import (
    CreateServiceOptions,
    DeployTemplateOptions,
    ServerInstance,
    TcpProxy,
    WorkflowStatus,
    parse_timestamp,
)
from gamenite.games.registry import ServiceSource
from gamenite.logging_config import get_logger
from gamenite.railway.client import GraphQLClient, GraphQLError
from gamenite.railway.proxies import create_tcp_proxy, get_tcp_proxies
from gamenite.railway.services import (
    create_service,
    delete_service,
    deploy_template,
    fetch_project,
    redeploy_service_instance,
    upsert_variable,
)
from gamenite.railway.volumes import create_volume, delete_volume, find_service_volume_ids
from gamenite.railway.workflows import get_workflow_status

logger = get_logger(__name__)

_EPOCH = datetime.fromtimestamp(0, timezone.utc)


def _reason(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


class ServerGateway:
    """Railway-backed operations on game-server services.

    Mutations on the service itself fail loudly with a GameNiteError.
    Volume cleanup after a delete is best-effort and only logged.
    """

    def __init__(
        self, client: GraphQLClient, project_id: str, environment_id: str,
        workspace_id: str = "", max_cleanup_workers: int = 4,
    ):
        self.client = client
        self.project_id = project_id
        self.environment_id = environment_id
        self.workspace_id = workspace_id
        self.max_cleanup_workers = max_cleanup_workers

    def list_services(self) -> list[ServerInstance]:
        try:
            project = fetch_project(self.client, self.project_id)
        except GraphQLError as e:
            logger.error("fetch_services_failed", project_id=self.project_id, error=e.error.message)
            raise GameNiteError(
                ErrorKind.FETCH_FAILED, f"Failed to fetch services: {e.error.message}",
            ) from e

        if not project:
            logger.warning("project_missing", project_id=self.project_id)
            return []

        services = []
        for edge in (project.get("services") or {}).get("edges") or []:
            node = edge.get("node") or {}
            deployments = (node.get("deployments") or {}).get("edges") or []
            latest = (deployments[0].get("node") or {}) if deployments else {}
            services.append(ServerInstance(
                id=node["id"],
                name=node.get("name", ""),
                project_id=project.get("id", self.project_id),
                project_name=project.get("name", ""),
                environment_id=self.environment_id,
                created_at=parse_timestamp(node.get("createdAt")) or _EPOCH,
                updated_at=parse_timestamp(node.get("updatedAt")),
                source=ServiceSource.from_meta(latest.get("meta")),
                deployment_status=latest.get("status"),
                status_updated_at=parse_timestamp(latest.get("statusUpdatedAt")),
            ))
        return services

    def get_service_by_id(self, service_id: str) -> ServerInstance | None:
        for service in self.list_services():
            if service.id == service_id:
                return service
        return None

    def get_tcp_proxies(self, environment_id: str, service_id: str) -> list[TcpProxy]:
        try:
            proxies = get_tcp_proxies(self.client, environment_id, service_id)
        except GraphQLError as e:
            logger.error("fetch_tcp_proxies_failed", service_id=service_id, error=e.error.message)
            raise GameNiteError(
                ErrorKind.FETCH_FAILED, f"Failed to fetch TCP proxies: {e.error.message}",
            ) from e
        return [
            TcpProxy(
                domain=p.get("domain", ""),
                proxy_port=int(p.get("proxyPort") or 0),
                service_id=p.get("serviceId", service_id),
            )
            for p in proxies
        ]

    def get_workflow_status(self, workflow_id: str) -> WorkflowStatus:
        try:
            result = get_workflow_status(self.client, workflow_id)
        except GraphQLError as e:
            logger.error("fetch_workflow_status_failed", workflow_id=workflow_id, error=e.error.message)
            raise GameNiteError(
                ErrorKind.FETCH_FAILED, f"Failed to fetch workflow status: {e.error.message}",
            ) from e
        return WorkflowStatus(status=result["status"], error=result["error"])

    def deploy_template(self, options: DeployTemplateOptions) -> str:
        try:
            workflow_id = deploy_template(
                self.client,
                service_name=options.service_name,
                template_code=options.source.template_code,
                tcp_proxy_application_port=options.tcp_proxy_application_port,
                variables=options.variables,
                volume_mount_path=options.volume_mount_path or "",
                project_id=self.project_id,
                environment_id=self.environment_id,
                workspace_id=self.workspace_id,
            )
        except GraphQLError as e:
            logger.error("deploy_template_failed", service_name=options.service_name, error=e.error.message)
            raise GameNiteError(
                ErrorKind.DEPLOY_FAILED, f"Failed to deploy template: {e.error.message}",
            ) from e
        logger.info("template_deployed", service_name=options.service_name, workflow_id=workflow_id)
        return workflow_id

    def create_service(self, options: CreateServiceOptions) -> ServerInstance:
        """Create a service directly, then set its variables and attach a volume and TCP proxy."""
        try:
            node = create_service(
                self.client, name=options.name, source=options.source.to_dict(),
                project_id=self.project_id, environment_id=self.environment_id,
            )
            service_id = node["id"]
        except GraphQLError as e:
            logger.error("create_service_failed", name=options.name, error=e.error.message)
            raise service_creation_failed(e.error.message) from e
        except (KeyError, ValueError) as e:
            logger.error("create_service_failed", name=options.name, error=_reason(e))
            raise service_creation_failed(_reason(e)) from e

        try:
            self._configure_service(service_id, options)
        except Exception as e:
            reason = e.error.message if isinstance(e, GraphQLError) else _reason(e)
            logger.error("configure_service_failed", service_id=service_id, error=reason)
            self._rollback_service(service_id)
            raise service_creation_failed(reason) from e

        logger.info("service_created", service_id=service_id, name=options.name)
        return ServerInstance(
            id=service_id,
            name=node.get("name", options.name),
            project_id=self.project_id,
            project_name="",
            environment_id=self.environment_id,
            created_at=parse_timestamp(node.get("createdAt")) or datetime.now(timezone.utc),
            updated_at=parse_timestamp(node.get("updatedAt")),
            source=options.source,
        )

    def _configure_service(self, service_id: str, options: CreateServiceOptions) -> None:
        for key, value in options.variables.items():
            upsert_variable(
                self.client, project_id=self.project_id,
                environment_id=self.environment_id, service_id=service_id,
                name=key, value=value,
            )
        if options.volume_mount_path:
            create_volume(
                self.client, project_id=self.project_id,
                environment_id=self.environment_id, service_id=service_id,
                mount_path=options.volume_mount_path,
            )
        if options.tcp_proxy_application_port:
            create_tcp_proxy(
                self.client, environment_id=self.environment_id,
                service_id=service_id,
                application_port=options.tcp_proxy_application_port,
            )

    def _rollback_service(self, service_id: str) -> None:
        """Remove a half-configured service; it has no deployment, so listings never show it."""
        try:
            delete_service(self.client, service_id)
        except Exception as e:
            logger.error("rollback_service_failed", service_id=service_id, error=_reason(e))
            return
        logger.info("service_rolled_back", service_id=service_id)
        self._delete_volumes_for_service(service_id)

    def delete_service(self, service_id: str) -> None:
        logger.info("deleting_service", service_id=service_id)
        try:
            delete_service(self.client, service_id)
        except GraphQLError as e:
            logger.error("delete_service_failed", service_id=service_id, error=e.error.message)
            raise GameNiteError(
                ErrorKind.DELETE_FAILED, f"Failed to delete service: {e.error.message}",
            ) from e
        logger.info("service_deleted", service_id=service_id)
        self._delete_volumes_for_service(service_id)

    def _delete_volumes_for_service(self, service_id: str) -> None:
        try:
            volume_ids = find_service_volume_ids(self.client, self.project_id, service_id)
        except Exception as e:
            logger.warning("volume_query_failed", service_id=service_id, error=_reason(e))
            return

        if not volume_ids:
            logger.info("no_volumes_to_delete", service_id=service_id)
            return

        logger.info("deleting_volumes", service_id=service_id, count=len(volume_ids))
        workers = min(self.max_cleanup_workers, len(volume_ids))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {vid: executor.submit(delete_volume, self.client, vid) for vid in volume_ids}
            for volume_id, future in futures.items():
                try:
                    future.result()
                    logger.info("volume_deleted", volume_id=volume_id)
                except Exception as e:
                    logger.error("volume_delete_failed", volume_id=volume_id, error=_reason(e))

    def restart_service(self, service_id: str) -> None:
        try:
            redeploy_service_instance(self.client, service_id, self.environment_id)
        except GraphQLError as e:
            logger.error("restart_service_failed", service_id=service_id, error=e.error.message)
            raise GameNiteError(
                ErrorKind.RESTART_FAILED, f"Failed to restart service: {e.error.message}",
            ) from e
        logger.info("service_restarted", service_id=service_id)
