from gamenite.control.errors import GameNiteError, template_deployment_failed, template_not_found
from gamenite.control.gateway import ServerGateway
from gamenite.control.models import (
    CreateServiceOptions,
    DeployTemplateOptions,
    ServerInstance,
    ShareDetails,
    TcpProxy,
    WorkflowStatus,
)
from gamenite.games.registry import Game, GameCatalog, matches_source


class ServerService:
    """Game-aware use cases on top of the Railway gateway."""

    def __init__(self, gateway: ServerGateway, catalog: GameCatalog):
        self.gateway = gateway
        self.catalog = catalog

    def list_servers(self, game_id: str) -> list[ServerInstance]:
        game = self.catalog.get_game(game_id)
        if not game:
            return []
        return [s for s in self.gateway.list_services() if matches_source(game, s.source)]

    def deploy_template(
        self, game: Game, name: str, custom_env: dict[str, str] | None = None,
    ) -> str:
        """Deploy a new server for ``game`` and return the workflow ID to poll.

        Name uniqueness is not checked here; callers check it first.
        """
        if not game.can_deploy():
            raise template_not_found(game.id)
        try:
            return self.gateway.deploy_template(DeployTemplateOptions(
                service_name=name,
                source=game.source,
                tcp_proxy_application_port=game.default_port,
                variables=game.environment_variables_with_port(custom_env),
                volume_mount_path=game.volume_mount_path,
            ))
        except GameNiteError:
            raise
        except Exception as e:
            raise template_deployment_failed(str(e) or type(e).__name__) from e

    def create_server(
        self, game: Game, name: str, custom_env: dict[str, str] | None = None,
    ) -> ServerInstance:
        """Create a server without the template flow (service, variables, volume, proxy)."""
        if not game.can_deploy():
            raise template_not_found(game.id)
        return self.gateway.create_service(CreateServiceOptions(
            name=name,
            source=game.source,
            variables=game.environment_variables_with_port(custom_env),
            tcp_proxy_application_port=game.default_port,
            volume_mount_path=game.volume_mount_path,
        ))

    def restart_server(self, service_id: str) -> None:
        self.gateway.restart_service(service_id)

    def delete_server(self, service_id: str) -> None:
        self.gateway.delete_service(service_id)

    def get_server_by_id(self, service_id: str) -> ServerInstance | None:
        return self.gateway.get_service_by_id(service_id)

    def get_workflow_status(self, workflow_id: str) -> WorkflowStatus:
        return self.gateway.get_workflow_status(workflow_id)

    def get_tcp_proxies(self, server: ServerInstance) -> list[TcpProxy]:
        return self.gateway.get_tcp_proxies(server.environment_id, server.id)

    def share_details(self, service_id: str) -> ShareDetails | None:
        """Connection details for the public share page, or None if not shareable."""
        server = self.get_server_by_id(service_id)
        if not server or not server.source.is_set:
            return None
        proxies = self.get_tcp_proxies(server)
        if not proxies:
            return None
        game = self.catalog.find_by_source(server.source)
        if not game:
            return None
        return ShareDetails(
            server_id=server.id,
            server_name=server.name,
            game=game.name,
            address=proxies[0].domain,
            port=str(proxies[0].proxy_port),
        )
