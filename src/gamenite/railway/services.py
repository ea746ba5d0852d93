from gamenite.railway.client import GraphQLClient

GET_PROJECT_QUERY = """
query GetProject($projectId: String!) {
  project(id: $projectId) {
    id
    name
    services {
      edges {
        node {
          id
          name
          createdAt
          updatedAt
          deployments(first: 1) {
            edges {
              node {
                id
                environmentId
                status
                statusUpdatedAt
                staticUrl
                meta
              }
            }
          }
        }
      }
    }
  }
}
"""

DEPLOY_TEMPLATE_MUTATION = """
mutation DeployTemplate(
  $serviceId: String!
  $serviceName: String!
  $templateId: String!
  $tcpProxyApplicationPort: Int!
  $environmentId: String!
  $projectId: String!
  $workspaceId: String!
  $variables: EnvironmentVariables!
  $volumeMountPath: String!
  $volumeName: String!
) {
  templateDeploy(
    input: {
      services: {
        id: $serviceId
        serviceName: $serviceName
        template: $templateId
        tcpProxyApplicationPort: $tcpProxyApplicationPort
        variables: $variables
        volumes: { mountPath: $volumeMountPath, volumeName: $volumeName }
      }
      environmentId: $environmentId
      projectId: $projectId
      templateCode: $templateId
      workspaceId: $workspaceId
    }
  ) {
    projectId
    workflowId
  }
}
"""

SERVICE_CREATE_MUTATION = """
mutation ServiceCreate($input: ServiceCreateInput!) {
  serviceCreate(input: $input) {
    id
    name
    createdAt
    updatedAt
  }
}
"""

DELETE_SERVICE_MUTATION = """
mutation DeleteService($serviceId: String!) {
  serviceDelete(id: $serviceId)
}
"""

RESTART_SERVICE_MUTATION = """
mutation RestartService($serviceId: String!, $environmentId: String!) {
  serviceInstanceRedeploy(serviceId: $serviceId, environmentId: $environmentId)
}
"""

VARIABLE_UPSERT_MUTATION = """
mutation VariableUpsert($input: VariableUpsertInput!) {
  variableUpsert(input: $input)
}
"""


def fetch_project(client: GraphQLClient, project_id: str) -> dict | None:
    """Return the raw project node with services and latest deployments."""
    data = client.execute(GET_PROJECT_QUERY, {"projectId": project_id})
    return data.get("project")


def deploy_template(
    client: GraphQLClient, *, service_name: str, template_code: str,
    tcp_proxy_application_port: int, variables: dict[str, str],
    volume_mount_path: str, project_id: str, environment_id: str,
    workspace_id: str,
) -> str:
    data = client.execute(DEPLOY_TEMPLATE_MUTATION, {
        "serviceId": service_name,
        "serviceName": service_name,
        "templateId": template_code,
        "tcpProxyApplicationPort": tcp_proxy_application_port,
        "environmentId": environment_id,
        "projectId": project_id,
        "workspaceId": workspace_id,
        "variables": variables,
        "volumeMountPath": volume_mount_path,
        "volumeName": service_name,
    })
    return (data.get("templateDeploy") or {}).get("workflowId") or ""


def create_service(
    client: GraphQLClient, *, name: str, source: dict[str, str],
    project_id: str, environment_id: str,
) -> dict:
    data = client.execute(SERVICE_CREATE_MUTATION, {"input": {
        "projectId": project_id,
        "environmentId": environment_id,
        "name": name,
        "source": source,
    }})
    node = data.get("serviceCreate")
    if not node:
        raise ValueError("serviceCreate returned no service")
    return node


def delete_service(client: GraphQLClient, service_id: str) -> None:
    client.execute(DELETE_SERVICE_MUTATION, {"serviceId": service_id})


def redeploy_service_instance(client: GraphQLClient, service_id: str, environment_id: str) -> None:
    client.execute(RESTART_SERVICE_MUTATION, {
        "serviceId": service_id,
        "environmentId": environment_id,
    })


def upsert_variable(
    client: GraphQLClient, *, project_id: str, environment_id: str,
    service_id: str, name: str, value: str,
) -> None:
    client.execute(VARIABLE_UPSERT_MUTATION, {"input": {
        "projectId": project_id,
        "environmentId": environment_id,
        "serviceId": service_id,
        "name": name,
        "value": value,
    }})
